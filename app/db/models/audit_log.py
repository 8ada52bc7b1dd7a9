from sqlalchemy import Column, String, Text, DateTime, JSON
from sqlalchemy.sql import func

from app.db.base_class import Base, IdMixin, utcnow


class AuditLog(Base, IdMixin):
	"""Append-only audit trail; rows are hash chained per business."""
	__tablename__ = "audit_logs"

	created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)
	business_id = Column(String(36), nullable=False, index=True)
	user_id = Column(String(36), nullable=True, index=True)
	role_id = Column(String(36), nullable=True)
	branch_id = Column(String(36), nullable=True, index=True)
	request_id = Column(String(64), nullable=True)
	session_id = Column(String(64), nullable=True)
	correlation_id = Column(String(64), nullable=True)
	action = Column(String(64), nullable=False, index=True)
	resource_type = Column(String(64), nullable=False)
	resource_id = Column(String(64), nullable=True)
	outcome = Column(String(16), nullable=False)
	reason = Column(Text, nullable=True)
	log_metadata = Column("metadata", JSON, nullable=True)
	before = Column(JSON, nullable=True)
	after = Column(JSON, nullable=True)
	diff = Column(JSON, nullable=True)
	device_id = Column(String(36), nullable=True)
	offline_at = Column(DateTime(timezone=True), nullable=True)
	previous_hash = Column(String(64), nullable=True)
	hash = Column(String(64), nullable=False)
