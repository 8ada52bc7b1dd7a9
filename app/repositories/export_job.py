"""Export job repository: the lifecycle's only shared mutable state."""

from datetime import datetime
from typing import Optional, Dict, Any, List, Sequence

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from app.repositories.base import BaseRepository
from app.db.base_class import utcnow
from app.db.models.export_job import ExportJob
from app.schemas.export import ExportJobStatus, ExportJobType

CLAIMABLE_STATUSES = (ExportJobStatus.PENDING.value, ExportJobStatus.FAILED.value)


class ExportJobRepository(BaseRepository[ExportJob]):
	"""Repository for ExportJob entity operations."""

	def __init__(self, db: Session, correlation_id: Optional[str] = None):
		super().__init__(db, ExportJob, correlation_id)

	def get_for_business(self, job_id: str, business_id: str) -> Optional[ExportJob]:
		result = self.db.query(self.model).filter(
			self.model.id == job_id,
			self.model.business_id == business_id,
		).first()
		self._log_operation("get_for_business", job_id=job_id, business_id=business_id, found=result is not None)
		return result

	def claim(self, job_id: str, now: Optional[datetime] = None) -> bool:
		"""Atomically move a PENDING/FAILED job to RUNNING.

		One conditional UPDATE; when several workers race on the same job only
		one of them sees a row affected. Returns whether this caller won.
		"""
		stmt = (
			update(self.model)
			.where(self.model.id == job_id, self.model.status.in_(CLAIMABLE_STATUSES))
			.values(
				status=ExportJobStatus.RUNNING.value,
				started_at=now or utcnow(),
				attempts=self.model.attempts + 1,
				last_error=None,
			)
			.execution_options(synchronize_session=False)
		)
		result = self.db.execute(stmt)
		claimed = result.rowcount == 1
		self._log_operation("claim", job_id=job_id, claimed=claimed)
		return claimed

	def mark_completed(self, job: ExportJob, result_metadata: Dict[str, Any]) -> ExportJob:
		job.status = ExportJobStatus.COMPLETED.value
		job.completed_at = utcnow()
		job.job_metadata = result_metadata
		self.db.flush()
		self._log_operation("mark_completed", job_id=job.id)
		return job

	def mark_failed(self, job: ExportJob, message: str) -> ExportJob:
		job.status = ExportJobStatus.FAILED.value
		job.completed_at = utcnow()
		job.last_error = message
		self.db.flush()
		self._log_operation("mark_failed", job_id=job.id)
		return job

	def find_next_pending(self, max_attempts: int) -> Optional[ExportJob]:
		result = self.db.query(self.model).filter(
			self.model.status == ExportJobStatus.PENDING.value,
			self.model.attempts < max_attempts,
		).order_by(self.model.created_at.asc(), self.model.id.asc()).first()
		self._log_operation("find_next_pending", found=result is not None)
		return result

	def search(
		self,
		business_id: str,
		*,
		branch_ids: Optional[Sequence[str]] = None,
		status: Optional[str] = None,
		job_type: Optional[str] = None,
		search: Optional[str] = None,
		created_from: Optional[datetime] = None,
		created_to: Optional[datetime] = None,
		cursor: Optional[str] = None,
		limit: int = 25,
		include_total: bool = False,
	) -> tuple[List[ExportJob], Optional[int]]:
		"""Newest-first listing with keyset pagination on (created_at, id)."""
		query = self.db.query(self.model).filter(self.model.business_id == business_id)
		if branch_ids is not None:
			query = query.filter(self.model.branch_id.in_(list(branch_ids)))
		if status:
			query = query.filter(self.model.status == status)
		if job_type:
			query = query.filter(self.model.type == job_type)
		if search:
			pattern = f"%{search.lower()}%"
			term = search.upper()
			clauses = [
				func.lower(self.model.id).like(pattern),
				func.lower(self.model.last_error).like(pattern),
			]
			if term in {t.value for t in ExportJobType}:
				clauses.append(self.model.type == term)
			if term in {s.value for s in ExportJobStatus}:
				clauses.append(self.model.status == term)
			query = query.filter(or_(*clauses))
		if created_from:
			query = query.filter(self.model.created_at >= created_from)
		if created_to:
			query = query.filter(self.model.created_at <= created_to)

		total = query.count() if include_total else None

		if cursor:
			anchor = self.db.query(self.model).filter(self.model.id == cursor).first()
			if anchor is not None:
				query = query.filter(or_(
					self.model.created_at < anchor.created_at,
					(self.model.created_at == anchor.created_at) & (self.model.id < anchor.id),
				))

		items = query.order_by(self.model.created_at.desc(), self.model.id.desc()).limit(limit).all()
		self._log_operation("search", business_id=business_id, count=len(items), total=total)
		return items, total

	def count_by_status(self, status: ExportJobStatus, business_id: Optional[str] = None) -> int:
		query = self.db.query(func.count(self.model.id)).filter(self.model.status == status.value)
		if business_id:
			query = query.filter(self.model.business_id == business_id)
		return query.scalar() or 0

	def latest(self, business_id: Optional[str] = None) -> Optional[ExportJob]:
		query = self.db.query(self.model)
		if business_id:
			query = query.filter(self.model.business_id == business_id)
		return query.order_by(self.model.created_at.desc(), self.model.id.desc()).first()
