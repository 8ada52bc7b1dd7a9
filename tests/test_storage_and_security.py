import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.api.dependencies.storage import _normalize_minio_endpoint
from app.core.security import create_access_token, create_principal_token, decode_access_token
from app.services.exceptions import (
    AuthenticationError,
    ExportJobNotFoundError,
    StorageError,
    StorageNotConfiguredError,
)
from app.services.storage_services import StorageService


def test_object_keys_are_prefixed_and_collapsed(minio):
    storage = StorageService(client=minio, bucket="exports", prefix="/tenant-data/", base_url="http://cdn.test/exports/")
    assert storage.build_object_key("exports/b1//j1/export-on-exit.zip") == "tenant-data/exports/b1/j1/export-on-exit.zip"
    assert storage.public_url("a/b.zip") == "http://cdn.test/exports/a/b.zip"

    unprefixed = StorageService(client=minio, bucket="exports", prefix="", base_url="http://cdn.test/exports")
    assert unprefixed.build_object_key("exports/b1/j1/x.zip") == "exports/b1/j1/x.zip"


def test_upload_and_presign(storage, minio):
    stored = storage.upload_object("exports/b1/j1/x.zip", b"PK", content_type="application/zip")
    assert stored.bucket == "exports"
    assert stored.public_url == "http://cdn.test/exports/exports/b1/j1/x.zip"
    assert minio.objects[("exports", "exports/b1/j1/x.zip")] == {"data": b"PK", "content_type": "application/zip"}

    upload = storage.create_presigned_upload("incoming/a.pdf", content_type="application/pdf")
    assert upload.url.startswith("http://minio.test/exports/incoming/a.pdf?")
    assert upload.public_url == "http://cdn.test/exports/incoming/a.pdf"
    assert upload.headers == {"Content-Type": "application/pdf"}
    assert storage.create_presigned_upload("incoming/blob").headers == {"Content-Type": "application/octet-stream"}

    assert storage.create_presigned_download("incoming/a.pdf").startswith("http://minio.test/exports/incoming/a.pdf?")


def test_storage_errors(failing_storage, minio):
    with pytest.raises(StorageError) as exc:
        failing_storage.upload_object("k", b"data")
    assert exc.value.message == "Storage upload failed: bucket unavailable"
    assert exc.value.details["key"] == "k"

    unconfigured = StorageService(client=minio, bucket="", base_url="http://cdn.test")
    with pytest.raises(StorageNotConfiguredError):
        unconfigured.upload_object("k", b"data")


def test_normalize_minio_endpoint():
    assert _normalize_minio_endpoint("https://s3.example.com/bucket", False) == ("s3.example.com", True)
    assert _normalize_minio_endpoint("http://localhost:9000", True) == ("localhost:9000", False)
    assert _normalize_minio_endpoint("minio:9000", False) == ("minio:9000", False)


def test_principal_token_round_trip():
    token = create_principal_token("u1", "b1", ["br1", ""])
    principal = decode_access_token(token)
    assert principal.user_id == "u1"
    assert principal.business_id == "b1"
    assert principal.branch_scope == ["br1"]
    assert principal.is_branch_restricted


def test_token_without_business_is_rejected():
    with pytest.raises(AuthenticationError):
        decode_access_token(create_access_token({"sub": "u1"}))
    with pytest.raises(AuthenticationError):
        decode_access_token("garbage")


def test_service_error_to_dict_hides_internals():
    error = ExportJobNotFoundError("j1", business_id="b1", correlation_id="c1")
    assert error.http_status.value == 404
    assert str(error) == error.message
    public = error.to_dict()
    assert public["error_code"] == "EXPORTJOB_NOT_FOUND"
    assert public["correlation_id"] == "c1"
    assert "details" not in public
    assert error.to_dict(include_sensitive=True)["details"] == {"resource_type": "ExportJob", "resource_id": "j1", "business_id": "b1"}
