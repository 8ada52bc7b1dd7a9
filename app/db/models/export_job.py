from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, DateTime, JSON
from app.db.base_class import Base, IdMixin, TimestampMixin


class ExportJob(Base, IdMixin, TimestampMixin):
	__tablename__ = "export_jobs"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), nullable=True, index=True)
	type = Column(String(32), nullable=False, index=True)  # ExportJobType
	status = Column(String(16), nullable=False, index=True, default="PENDING")  # PENDING, RUNNING, COMPLETED, FAILED
	attempts = Column(Integer, nullable=False, default=0)
	requested_by_user_id = Column(String(36), nullable=True)
	started_at = Column(DateTime(timezone=True), nullable=True)
	completed_at = Column(DateTime(timezone=True), nullable=True)
	last_error = Column(Text, nullable=True)
	# Acknowledgement while pending, result document once completed
	job_metadata = Column("metadata", JSON, nullable=False, default=dict)

	__table_args__ = (
		Index("ix_export_jobs_business_id_branch_id", "business_id", "branch_id"),
	)
