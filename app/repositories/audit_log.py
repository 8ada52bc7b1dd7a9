from typing import Optional

from sqlalchemy.orm import Session

from app.repositories.base import BaseRepository
from app.db.models.audit_log import AuditLog


class AuditLogRepository(BaseRepository[AuditLog]):
	"""Append-only; rows are never updated or deleted."""

	def __init__(self, db: Session, correlation_id: Optional[str] = None):
		super().__init__(db, AuditLog, correlation_id)

	def latest_hash(self, business_id: str) -> Optional[str]:
		row = self.db.query(self.model.hash).filter(
			self.model.business_id == business_id
		).order_by(self.model.created_at.desc(), self.model.id.desc()).first()
		return row[0] if row else None
