from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List, Literal
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class ExportJobType(str, Enum):
	STOCK = "STOCK"
	PRODUCTS = "PRODUCTS"
	OPENING_STOCK = "OPENING_STOCK"
	PRICE_UPDATES = "PRICE_UPDATES"
	SUPPLIERS = "SUPPLIERS"
	BRANCHES = "BRANCHES"
	USERS = "USERS"
	AUDIT_LOGS = "AUDIT_LOGS"
	CUSTOMER_REPORTS = "CUSTOMER_REPORTS"
	EXPORT_ON_EXIT = "EXPORT_ON_EXIT"


class ExportJobStatus(str, Enum):
	PENDING = "PENDING"
	RUNNING = "RUNNING"
	COMPLETED = "COMPLETED"
	FAILED = "FAILED"


# Only these exports can be narrowed to a single branch
BRANCH_SCOPED_TYPES = frozenset({
	ExportJobType.STOCK,
	ExportJobType.OPENING_STOCK,
	ExportJobType.AUDIT_LOGS,
	ExportJobType.CUSTOMER_REPORTS,
})


class CamelModel(BaseModel):
	"""snake_case attributes, camelCase on the wire."""

	class Config:
		populate_by_name = True
		alias_generator = to_camel
		from_attributes = True


class ExportJobCreate(CamelModel):
	# Kept as a plain string so unknown types surface as an export error, not a 422
	type: str
	acknowledgement: Optional[str] = None
	branch_id: Optional[str] = None

	@field_validator("type")
	@classmethod
	def normalize_type(cls, v: str) -> str:
		return v.strip().upper()


class ExportJobRun(CamelModel):
	acknowledgement: Optional[str] = None


class ExportJobRead(CamelModel):
	id: str
	business_id: str
	branch_id: Optional[str] = None
	type: str
	status: ExportJobStatus
	attempts: int
	requested_by_user_id: Optional[str] = None
	started_at: Optional[datetime] = None
	completed_at: Optional[datetime] = None
	last_error: Optional[str] = None
	metadata: Dict[str, Any] = Field(
		default_factory=dict,
		validation_alias=AliasChoices("job_metadata", "metadata"),
		serialization_alias="metadata",
	)
	created_at: datetime
	updated_at: Optional[datetime] = None


class ExportJobPage(CamelModel):
	items: List[ExportJobRead]
	next_cursor: Optional[str] = None
	total: Optional[int] = None


class CsvExportResult(BaseModel):
	"""Completed single-table export."""
	filename: str
	csv: str


class BundleFileSummary(BaseModel):
	filename: str
	rows: int


class BundleAttachmentSummary(BaseModel):
	id: str
	filename: str
	status: str


class BundleExportResult(CamelModel):
	"""Completed full-tenant bundle; persisted as ``zipUrl`` / ``attachmentFailures``."""
	zip_url: str
	files: List[BundleFileSummary]
	attachments: List[BundleAttachmentSummary]
	attachment_failures: int


class AttachmentManifestEntry(CamelModel):
	id: str
	filename: str
	url: str
	storage_key: Optional[str] = None
	status: str
	download_status: Literal["OK", "FAILED"]
	size_bytes: Optional[int] = None
	error_message: Optional[str] = None


class QueueDepth(BaseModel):
	pending: int
	running: int
	failed: int


class LastJob(CamelModel):
	id: str
	type: str
	status: ExportJobStatus
	created_at: datetime
	completed_at: Optional[datetime] = None


class WorkerStatus(CamelModel):
	enabled: bool
	interval_ms: int
	max_attempts: int
	queue: QueueDepth
	last_job: Optional[LastJob] = None
