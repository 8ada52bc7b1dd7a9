"""Export job lifecycle.

A job is created PENDING, claimed into RUNNING by exactly one runner through a
conditional update, and finishes COMPLETED (result stored in ``metadata``) or
FAILED (message stored in ``last_error``). Anything raised while a claimed job
runs is caught here and recorded on the job; callers never see it.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.export_job import ExportJob
from app.exports.bundle import AttachmentFetcher, BundleBuilder
from app.exports.generators import ExportGenerators
from app.exports.tabular import CsvFile
from app.repositories.audit_log import AuditLogRepository
from app.repositories.export_job import ExportJobRepository
from app.repositories.tenant_data import TenantDataRepository
from app.schemas.auth import Principal
from app.schemas.export import (
	BRANCH_SCOPED_TYPES,
	CsvExportResult,
	ExportJobCreate,
	ExportJobPage,
	ExportJobRead,
	ExportJobStatus,
	ExportJobType,
	LastJob,
	QueueDepth,
	WorkerStatus,
)
from app.services.audit_services import AuditService
from app.services.base import BaseService
from app.services.exceptions import (
	BranchScopeError,
	ExportJobNotFoundError,
	UnsupportedExportTypeError,
)
from app.services.storage_services import StorageService

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
SYSTEM_USER = "system"


def resolve_branch_scope(branch_scope: List[str], branch_id: Optional[str]) -> Optional[str]:
	"""Branch a new export is pinned to; restricted callers must name one of theirs."""
	if not branch_scope:
		return branch_id or None
	if not branch_id:
		raise BranchScopeError("Branch-scoped exports require a branch.")
	if branch_id not in branch_scope:
		raise BranchScopeError("Branch-scoped role restriction.", branch_id=branch_id)
	return branch_id


def resolve_branch_scope_filter(branch_scope: List[str], branch_id: Optional[str]) -> Optional[List[str]]:
	"""Branch ids a listing may return; ``None`` means every branch."""
	if not branch_scope:
		return [branch_id] if branch_id else None
	if branch_id:
		if branch_id not in branch_scope:
			raise BranchScopeError("Branch-scoped role restriction.", branch_id=branch_id)
		return [branch_id]
	return list(branch_scope)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
	if value is None or value.tzinfo is None:
		return value
	return value.astimezone(timezone.utc)


class ExportJobService(BaseService):
	"""Service for export job creation, execution and inspection."""

	def __init__(
		self,
		job_repo: ExportJobRepository,
		audit_service: AuditService,
		generators: ExportGenerators,
		bundle_builder: BundleBuilder,
		max_attempts: int = 3,
		correlation_id: Optional[str] = None
	):
		super().__init__(correlation_id)
		self._set_repositories(job_repo=job_repo)
		self.audit_service = audit_service
		self.generators = generators
		self.bundle_builder = bundle_builder
		self.max_attempts = max_attempts

	@property
	def db(self) -> Session:
		return self.job_repo.db

	# ------------------------------------------------------------------
	# Creation
	# ------------------------------------------------------------------

	def create_job(self, principal: Principal, data: ExportJobCreate) -> ExportJob:
		try:
			job_type = ExportJobType(data.type)
		except ValueError:
			raise UnsupportedExportTypeError(data.type, correlation_id=self.correlation_id)

		branch_id = resolve_branch_scope(principal.branch_scope, data.branch_id)
		if principal.is_branch_restricted and job_type not in BRANCH_SCOPED_TYPES:
			raise BranchScopeError("Branch-scoped export type not allowed.", branch_id=branch_id, correlation_id=self.correlation_id)

		def _create() -> ExportJob:
			job = self.job_repo.create({
				"business_id": principal.business_id,
				"branch_id": branch_id,
				"type": job_type.value,
				"status": ExportJobStatus.PENDING.value,
				"attempts": 0,
				"requested_by_user_id": principal.user_id,
				"job_metadata": {"acknowledgement": data.acknowledgement} if data.acknowledgement else {},
			})
			self.audit_service.log_event(
				business_id=principal.business_id,
				user_id=principal.user_id,
				action="EXPORT_REQUESTED",
				resource_type="ExportJob",
				resource_id=job.id,
				outcome="SUCCESS",
				metadata={"type": job_type.value},
				branch_id=branch_id,
			)
			return job

		job = self.run_in_transaction(self.db, _create, "create_export_job")
		self.log_operation("export_job_created", job_id=job.id, job_type=job.type, business_id=job.business_id)
		return job

	# ------------------------------------------------------------------
	# Execution
	# ------------------------------------------------------------------

	def run_job(self, job_id: str, acknowledgement: Optional[str] = None) -> Optional[ExportJob]:
		"""Claim and execute one job.

		Returns ``None`` for an unknown id. Completed jobs, jobs at the attempt
		cap and jobs another runner holds are returned as they are.
		"""
		existing = self.job_repo.get_by_id(job_id)
		if existing is None:
			return None
		if existing.status == ExportJobStatus.COMPLETED.value:
			return existing
		if existing.attempts >= self.max_attempts:
			self.log_operation("export_job_attempts_exhausted", job_id=job_id, attempts=existing.attempts)
			return existing

		claimed = self.run_in_transaction(self.db, lambda: self.job_repo.claim(job_id), "claim_export_job")
		if not claimed:
			self.db.refresh(existing)
			self.log_operation("export_job_claim_lost", job_id=job_id, status=existing.status)
			return existing

		job = self.job_repo.get_by_id(job_id)
		if job is None:
			return None
		self.db.refresh(job)
		self.log_operation("export_job_claimed", job_id=job.id, job_type=job.type, attempts=job.attempts)

		stored = job.job_metadata if isinstance(job.job_metadata, dict) else {}
		resolved_ack = acknowledgement if acknowledgement is not None else stored.get("acknowledgement")

		try:
			result = self._execute(job, resolved_ack)
			return self.run_in_transaction(self.db, lambda: self._complete(job, result), "complete_export_job")
		except Exception as e:
			# Lifecycle boundary: every failure is recorded on the job instead of raised
			self.db.rollback()
			message = str(e) or "Export failed."
			self.logger.error(
				"Export job failed",
				extra={
					"correlation_id": self.correlation_id,
					"service": self.__class__.__name__,
					"job_id": job_id,
					"error": message,
					"error_type": type(e).__name__,
				},
			)
			job = self.job_repo.get_by_id(job_id)
			return self.run_in_transaction(self.db, lambda: self._fail(job, message), "fail_export_job")

	def run_next_pending_job(self) -> Optional[ExportJob]:
		"""Run the oldest runnable PENDING job, if any."""
		pending = self.job_repo.find_next_pending(self.max_attempts)
		if pending is None:
			return None
		return self.run_job(pending.id)

	def _execute(self, job: ExportJob, acknowledgement: Optional[str]) -> Dict[str, Any]:
		if job.type == ExportJobType.EXPORT_ON_EXIT.value:
			bundle = self.bundle_builder.build(job.business_id, job.id)
			return bundle.model_dump(by_alias=True)
		payload = self.generators.generate(job.type, job.business_id, job.branch_id, acknowledgement)
		return CsvExportResult(filename=payload.filename, csv=payload.csv).model_dump()

	def _complete(self, job: ExportJob, result: Dict[str, Any]) -> ExportJob:
		self.job_repo.mark_completed(job, result)
		self.audit_service.log_event(
			business_id=job.business_id,
			user_id=job.requested_by_user_id or SYSTEM_USER,
			action="EXPORT_COMPLETED",
			resource_type="ExportJob",
			resource_id=job.id,
			outcome="SUCCESS",
			metadata={"type": job.type},
			branch_id=job.branch_id,
		)
		self.log_operation("export_job_completed", job_id=job.id, job_type=job.type)
		return job

	def _fail(self, job: ExportJob, message: str) -> ExportJob:
		self.job_repo.mark_failed(job, message)
		self.audit_service.log_event(
			business_id=job.business_id,
			user_id=job.requested_by_user_id or SYSTEM_USER,
			action="EXPORT_FAILED",
			resource_type="ExportJob",
			resource_id=job.id,
			outcome="FAILURE",
			reason=message,
			metadata={"type": job.type},
			branch_id=job.branch_id,
		)
		return job

	# ------------------------------------------------------------------
	# Inspection
	# ------------------------------------------------------------------

	def get_job(self, principal: Principal, job_id: str) -> ExportJob:
		job = self.job_repo.get_for_business(job_id, principal.business_id)
		if job is None:
			raise ExportJobNotFoundError(job_id, principal.business_id, correlation_id=self.correlation_id)
		return job

	def run_job_for(self, principal: Principal, job_id: str, acknowledgement: Optional[str] = None) -> ExportJob:
		"""``run_job`` for an HTTP caller; jobs of other businesses are not found."""
		self.get_job(principal, job_id)
		job = self.run_job(job_id, acknowledgement)
		if job is None:
			raise ExportJobNotFoundError(job_id, principal.business_id, correlation_id=self.correlation_id)
		return job

	def download(self, principal: Principal, job_id: str) -> Dict[str, Any]:
		"""Stored metadata of a job: the CSV payload, the bundle summary, or pending state."""
		job = self.get_job(principal, job_id)
		return dict(job.job_metadata or {})

	def list_jobs(
		self,
		principal: Principal,
		*,
		status: Optional[str] = None,
		job_type: Optional[str] = None,
		branch_id: Optional[str] = None,
		created_from: Optional[datetime] = None,
		created_to: Optional[datetime] = None,
		search: Optional[str] = None,
		limit: Optional[int] = None,
		cursor: Optional[str] = None,
		include_total: bool = False,
	) -> ExportJobPage:
		take = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
		branch_ids = resolve_branch_scope_filter(principal.branch_scope, branch_id)
		items, total = self.job_repo.search(
			principal.business_id,
			branch_ids=branch_ids,
			status=status,
			job_type=job_type,
			search=(search or "").strip() or None,
			created_from=_as_utc(created_from),
			created_to=_as_utc(created_to),
			cursor=cursor,
			limit=take,
			include_total=include_total,
		)
		next_cursor = items[-1].id if len(items) >= take else None
		return ExportJobPage(
			items=[ExportJobRead.model_validate(item) for item in items],
			next_cursor=next_cursor,
			total=total,
		)

	def get_worker_status(self, business_id: Optional[str] = None) -> WorkerStatus:
		latest = self.job_repo.latest(business_id)
		return WorkerStatus(
			enabled=settings.EXPORTS_WORKER_ENABLED,
			interval_ms=settings.EXPORTS_WORKER_INTERVAL_MS,
			max_attempts=self.max_attempts,
			queue=QueueDepth(
				pending=self.job_repo.count_by_status(ExportJobStatus.PENDING, business_id),
				running=self.job_repo.count_by_status(ExportJobStatus.RUNNING, business_id),
				failed=self.job_repo.count_by_status(ExportJobStatus.FAILED, business_id),
			),
			last_job=LastJob.model_validate(latest) if latest else None,
		)

	def export_stock_csv(self, principal: Principal, branch_id: Optional[str] = None) -> CsvFile:
		"""Synchronous stock export, outside the job queue."""
		scoped_branch = resolve_branch_scope(principal.branch_scope, branch_id)
		return self.generators.stock(principal.business_id, scoped_branch)


def build_export_job_service(
	db: Session,
	storage: Optional[StorageService] = None,
	attachment_transport: Optional[httpx.BaseTransport] = None,
	correlation_id: Optional[str] = None,
) -> ExportJobService:
	"""Wire an ExportJobService and its collaborators onto one session."""
	storage = storage or StorageService(correlation_id=correlation_id)
	tenant_repo = TenantDataRepository(db, correlation_id=correlation_id)
	fetcher = AttachmentFetcher(
		storage,
		timeout=settings.EXPORTS_ATTACHMENT_TIMEOUT_SECONDS,
		transport=attachment_transport,
		correlation_id=correlation_id,
	)
	return ExportJobService(
		job_repo=ExportJobRepository(db, correlation_id=correlation_id),
		audit_service=AuditService(AuditLogRepository(db, correlation_id=correlation_id), correlation_id=correlation_id),
		generators=ExportGenerators(tenant_repo, audit_acknowledgement=settings.EXPORTS_AUDIT_ACKNOWLEDGEMENT),
		bundle_builder=BundleBuilder(tenant_repo, storage, fetcher, correlation_id=correlation_id),
		max_attempts=settings.EXPORTS_WORKER_MAX_ATTEMPTS,
		correlation_id=correlation_id,
	)
