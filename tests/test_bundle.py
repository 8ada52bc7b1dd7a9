import io
import json
import os
import sys
import zipfile
from decimal import Decimal

import httpx
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.db.models.inventory import StockMovement
from app.db.models.operations import Attachment
from app.exports.bundle import AttachmentFetcher, attach_unit_labels, bundle_object_path
from app.repositories.tenant_data import COLLECTIONS
from app.schemas.export import ExportJobCreate
from app.services.exceptions import AttachmentDownloadError
from app.services.export_services import build_export_job_service


@pytest.fixture
def attachments(db, tenant):
    stored = Attachment(business_id=tenant.business_id, filename="invoice.pdf", url="https://files.test/invoice.pdf", storage_key="receipts/invoice.pdf")
    db.add(stored)
    db.flush()
    linked = Attachment(business_id=tenant.business_id, filename="photo.png", url="https://files.test/photo.png")
    db.add(linked)
    db.flush()
    broken = Attachment(business_id=tenant.business_id, filename="missing.pdf", url="https://files.test/missing.pdf")
    db.add(broken)
    db.add(StockMovement(
        business_id=tenant.business_id,
        branch_id=tenant.branch_id,
        variant_id=tenant.variant_id,
        unit_id=tenant.unit_id,
        quantity=Decimal("-2"),
        movement_type="SALE",
    ))
    db.commit()
    return stored, linked, broken


@pytest.fixture
def bundle_job(db, owner, storage, attachment_transport, attachments):
    service = build_export_job_service(db, storage=storage, attachment_transport=attachment_transport)
    job = service.create_job(owner, ExportJobCreate(type="EXPORT_ON_EXIT"))
    return service.run_job(job.id)


def _archive(minio, job):
    key = bundle_object_path(job.business_id, job.id)
    stored = minio.objects[("exports", key)]
    assert stored["content_type"] == "application/zip"
    return zipfile.ZipFile(io.BytesIO(stored["data"]))


def test_bundle_completes_despite_failed_attachment(bundle_job, tenant):
    assert bundle_job.status == "COMPLETED"
    assert bundle_job.last_error is None
    metadata = bundle_job.job_metadata
    assert metadata["attachmentFailures"] == 1
    assert metadata["zipUrl"] == f"http://cdn.test/exports/exports/{tenant.business_id}/{bundle_job.id}/export-on-exit.zip"
    assert [f["filename"] for f in metadata["files"]] == [f"{name}.csv" for name, _, _ in COLLECTIONS]
    assert len(metadata["attachments"]) == 3


def test_bundle_archive_contents(bundle_job, minio, attachments):
    stored, linked, broken = attachments
    with _archive(minio, bundle_job) as zf:
        names = zf.namelist()
        assert f"attachments/{stored.id}-invoice.pdf" in names
        assert f"attachments/{linked.id}-photo.png" in names
        assert not any(name.startswith(f"attachments/{broken.id}") for name in names)
        assert names[-2:] == ["manifest.json", "attachments_manifest.json"]

        # The stored attachment is fetched through a presigned URL
        assert zf.read(f"attachments/{stored.id}-invoice.pdf") == b"bytes of /exports/receipts/invoice.pdf"

        manifest = json.loads(zf.read("manifest.json"))
        assert manifest["fileCount"] == len(COLLECTIONS)
        assert manifest["attachmentCount"] == 3
        assert manifest["generatedAt"].endswith("Z")

        entries = {entry["id"]: entry for entry in json.loads(zf.read("attachments_manifest.json"))}
        assert entries[stored.id]["downloadStatus"] == "OK"
        assert entries[stored.id]["storageKey"] == "receipts/invoice.pdf"
        assert entries[stored.id]["sizeBytes"] == len(b"bytes of /exports/receipts/invoice.pdf")
        assert "errorMessage" not in entries[stored.id]
        assert entries[broken.id]["downloadStatus"] == "FAILED"
        assert entries[broken.id]["errorMessage"] == "HTTP 404"
        assert "sizeBytes" not in entries[broken.id]


def test_bundle_csvs_are_tenant_scoped_and_unit_labeled(bundle_job, minio, tenant):
    with _archive(minio, bundle_job) as zf:
        business = zf.read("business.csv").decode("utf-8").split("\n")
        assert len(business) == 2
        assert tenant.business_id in business[1]
        assert tenant.other_business_id not in zf.read("business.csv").decode("utf-8")

        movements = zf.read("stock_movements.csv").decode("utf-8").split("\n")
        header = movements[0].split(",")
        row = movements[1].split(",")
        assert row[header.index("unit_code")] == "PCS"
        assert row[header.index("unit_label")] == "Piece"
        assert row[header.index("quantity")] == "-2"

        snapshots = zf.read("stock_snapshots.csv").decode("utf-8").split("\n")
        header = snapshots[0].split(",")
        assert {line.split(",")[header.index("unit_code")] for line in snapshots[1:]} == {"PCS"}

        # Collections with no rows are still present, as empty files
        assert zf.read("purchases.csv") == b""


def test_bundle_upload_failure_fails_job(db, owner, failing_storage, attachment_transport, attachments):
    service = build_export_job_service(db, storage=failing_storage, attachment_transport=attachment_transport)
    job = service.create_job(owner, ExportJobCreate(type="EXPORT_ON_EXIT"))

    failed = service.run_job(job.id)

    assert failed.status == "FAILED"
    assert failed.last_error == "Storage upload failed: bucket unavailable"


def test_attach_unit_labels_in_place():
    collections = {
        "units": [{"id": "u1", "code": "KG", "label": "Kilogram"}],
        "variants": [{"id": "v1", "base_unit_id": "u1"}, {"id": "v2", "base_unit_id": None}],
        "sale_lines": [{"id": "l1", "unit_id": "u1"}, {"id": "l2", "unit_id": None}],
        "stock_snapshots": [{"id": "s1", "variant_id": "v1"}, {"id": "s2", "variant_id": "v2"}],
    }

    attach_unit_labels(collections)

    assert collections["sale_lines"] == [
        {"id": "l1", "unit_id": "u1", "unit_code": "KG", "unit_label": "Kilogram"},
        {"id": "l2", "unit_id": None, "unit_code": "", "unit_label": ""},
    ]
    assert collections["stock_snapshots"] == [
        {"id": "s1", "variant_id": "v1", "unit_id": "u1", "unit_code": "KG", "unit_label": "Kilogram"},
        {"id": "s2", "variant_id": "v2", "unit_id": "", "unit_code": "", "unit_label": ""},
    ]
    assert collections["purchase_lines"] == []


def test_fetcher_wraps_transport_errors(storage):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = AttachmentFetcher(storage, transport=httpx.MockTransport(handler))

    with pytest.raises(AttachmentDownloadError) as exc:
        fetcher.fetch({"id": "a1", "url": "https://files.test/a.pdf"})
    assert exc.value.error_code == "EXPORTS_DOWNLOAD_FAILED"
    assert "connection refused" in exc.value.message
