"""Full-tenant backup bundle (EXPORT_ON_EXIT).

The bundle is a stored ZIP holding one CSV per tenant collection, every
downloadable attachment under ``attachments/`` and two JSON manifests. A failed
attachment download is recorded in ``attachments_manifest.json`` and never
aborts the bundle; a failed upload of the finished archive does.
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from app.core.observability import log_outbound_call
from app.db.base_class import utcnow
from app.exports.archive import ArchiveEntry, create_zip
from app.exports.tabular import CsvFile, build_csv_file, serialize_value
from app.repositories.tenant_data import TenantDataRepository
from app.schemas.export import (
	AttachmentManifestEntry,
	BundleAttachmentSummary,
	BundleExportResult,
	BundleFileSummary,
)
from app.services.exceptions import AttachmentDownloadError
from app.services.storage_services import StorageService

logger = logging.getLogger(__name__)

# Line collections whose unit_id gains the unit's code and label
UNIT_LABELED_COLLECTIONS = (
	"stock_movements",
	"sale_lines",
	"sale_refund_lines",
	"purchase_lines",
	"purchase_order_lines",
	"receiving_lines",
	"supplier_return_lines",
)

BUNDLE_FILENAME = "export-on-exit.zip"


def bundle_object_path(business_id: str, job_id: str) -> str:
	return f"exports/{business_id}/{job_id}/{BUNDLE_FILENAME}"


class AttachmentFetcher:
	"""Downloads attachment bytes, via a presigned URL when the object is in our bucket."""

	def __init__(
		self,
		storage: StorageService,
		timeout: float = 30.0,
		transport: Optional[httpx.BaseTransport] = None,
		correlation_id: Optional[str] = None,
	):
		self.storage = storage
		self.timeout = timeout
		self.transport = transport
		self.correlation_id = correlation_id

	def resolve_url(self, attachment: Dict[str, Any]) -> str:
		if attachment.get("storage_key"):
			return self.storage.create_presigned_download(attachment["storage_key"])
		return attachment["url"]

	def fetch(self, attachment: Dict[str, Any]) -> bytes:
		url = self.resolve_url(attachment)
		try:
			with httpx.Client(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
				response = log_outbound_call(
					"http", urlparse(url).netloc, "attachment_download", self.correlation_id,
					lambda: client.get(url),
				)
		except httpx.HTTPError as e:
			raise AttachmentDownloadError(attachment["id"], str(e) or type(e).__name__, correlation_id=self.correlation_id) from e

		if not response.is_success:
			raise AttachmentDownloadError(
				attachment["id"],
				f"HTTP {response.status_code}",
				status_code=response.status_code,
				correlation_id=self.correlation_id,
			)
		return response.content


def attach_unit_labels(collections: Dict[str, List[Dict[str, Any]]]) -> None:
	"""Denormalize unit code/label onto line rows and stock snapshots, in place."""
	units = {unit["id"]: unit for unit in collections.get("units", [])}
	variant_units = {variant["id"]: variant.get("base_unit_id") for variant in collections.get("variants", [])}

	def labels(unit_id: Optional[str]) -> Dict[str, str]:
		unit = units.get(unit_id) if unit_id else None
		return {
			"unit_code": unit["code"] if unit else "",
			"unit_label": unit["label"] if unit else "",
		}

	for name in UNIT_LABELED_COLLECTIONS:
		collections[name] = [{**row, **labels(row.get("unit_id"))} for row in collections.get(name, [])]

	snapshots = []
	for row in collections.get("stock_snapshots", []):
		unit_id = variant_units.get(row["variant_id"])
		snapshots.append({**row, "unit_id": unit_id or "", **labels(unit_id)})
	collections["stock_snapshots"] = snapshots


class BundleBuilder:
	def __init__(
		self,
		tenant_repo: TenantDataRepository,
		storage: StorageService,
		fetcher: AttachmentFetcher,
		correlation_id: Optional[str] = None,
	):
		self.tenant_repo = tenant_repo
		self.storage = storage
		self.fetcher = fetcher
		self.correlation_id = correlation_id

	def build_files(self, business_id: str) -> tuple[List[CsvFile], List[Dict[str, Any]]]:
		"""CSV files in archive order, plus the raw attachment rows."""
		collections = self.tenant_repo.snapshot(business_id)
		attach_unit_labels(collections)
		files = [build_csv_file(f"{name}.csv", rows) for name, rows in collections.items()]
		return files, collections.get("attachments", [])

	def download_attachments(self, attachments: List[Dict[str, Any]]) -> tuple[List[ArchiveEntry], List[AttachmentManifestEntry]]:
		entries: List[ArchiveEntry] = []
		manifest: List[AttachmentManifestEntry] = []
		for attachment in attachments:
			fields = {
				"id": attachment["id"],
				"filename": attachment["filename"],
				"url": attachment["url"],
				"storage_key": attachment.get("storage_key"),
				"status": attachment["status"],
			}
			try:
				data = self.fetcher.fetch(attachment)
			except Exception as e:
				# Partial failure: recorded in the manifest, bundle continues
				logger.warning(
					"Attachment download failed",
					extra={"correlation_id": self.correlation_id, "attachment_id": attachment["id"], "error": str(e)},
				)
				manifest.append(AttachmentManifestEntry(**fields, download_status="FAILED", error_message=str(e) or "Attachment download failed."))
				continue
			entries.append(ArchiveEntry(name=f"attachments/{attachment['id']}-{attachment['filename']}", data=data))
			manifest.append(AttachmentManifestEntry(**fields, download_status="OK", size_bytes=len(data)))
		return entries, manifest

	def build(self, business_id: str, job_id: str) -> BundleExportResult:
		files, attachments = self.build_files(business_id)
		entries = [ArchiveEntry(name=f.filename, data=f.csv.encode("utf-8")) for f in files]

		attachment_entries, attachment_manifest = self.download_attachments(attachments)
		entries.extend(attachment_entries)

		manifest = {
			"generatedAt": serialize_value(utcnow()),
			"fileCount": len(files),
			"attachmentCount": len(attachments),
		}
		entries.append(ArchiveEntry(name="manifest.json", data=json.dumps(manifest, indent=2).encode("utf-8")))
		entries.append(ArchiveEntry(
			name="attachments_manifest.json",
			data=json.dumps([_manifest_json(entry) for entry in attachment_manifest], indent=2).encode("utf-8"),
		))

		archive = create_zip(entries)
		key = self.storage.build_object_key(bundle_object_path(business_id, job_id))
		stored = self.storage.upload_object(key, archive, content_type="application/zip")

		failures = sum(1 for entry in attachment_manifest if entry.download_status != "OK")
		logger.info(
			"Bundle built",
			extra={
				"correlation_id": self.correlation_id,
				"job_id": job_id,
				"file_count": len(files),
				"attachment_count": len(attachments),
				"attachment_failures": failures,
				"size_bytes": len(archive),
			},
		)
		return BundleExportResult(
			zip_url=stored.public_url,
			files=[BundleFileSummary(filename=f.filename, rows=f.rows) for f in files],
			attachments=[
				BundleAttachmentSummary(id=a["id"], filename=a["filename"], status=a["status"])
				for a in attachments
			],
			attachment_failures=failures,
		)


def _manifest_json(entry: AttachmentManifestEntry) -> Dict[str, Any]:
	data = entry.model_dump(by_alias=True)
	# Only one of sizeBytes / errorMessage applies to an entry
	for key in ("sizeBytes", "errorMessage"):
		if data.get(key) is None:
			data.pop(key, None)
	return data
