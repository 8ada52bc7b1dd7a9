from sqlalchemy import Column, ForeignKey, String, Text, DateTime, Numeric, JSON
from app.db.base_class import Base, IdMixin, TimestampMixin


class Approval(Base, IdMixin, TimestampMixin):
	__tablename__ = "approvals"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	action_type = Column(String, nullable=False)
	status = Column(String, nullable=False, default="PENDING")
	requested_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	approved_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	payload = Column(JSON, nullable=True)
	reason = Column(Text, nullable=True)


class ApprovalPolicy(Base, IdMixin, TimestampMixin):
	__tablename__ = "approval_policies"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	action_type = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")
	threshold_amount = Column(Numeric(18, 2), nullable=True)
	threshold_percent = Column(Numeric(5, 2), nullable=True)


class Notification(Base, IdMixin, TimestampMixin):
	__tablename__ = "notifications"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=True)
	title = Column(String, nullable=False)
	message = Column(Text, nullable=False)
	priority = Column(String, nullable=False, default="INFO")
	status = Column(String, nullable=False, default="UNREAD")
	read_at = Column(DateTime(timezone=True), nullable=True)


class OfflineDevice(Base, IdMixin, TimestampMixin):
	__tablename__ = "offline_devices"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=True)
	device_name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")
	last_seen_at = Column(DateTime(timezone=True), nullable=True)


class OfflineAction(Base, IdMixin, TimestampMixin):
	__tablename__ = "offline_actions"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	device_id = Column(String(36), ForeignKey("offline_devices.id"), nullable=False)
	action_type = Column(String, nullable=False)
	status = Column(String, nullable=False, default="PENDING")
	payload = Column(JSON, nullable=True)
	error_message = Column(Text, nullable=True)


class Attachment(Base, IdMixin, TimestampMixin):
	__tablename__ = "attachments"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=True)
	supplier_return_id = Column(String(36), ForeignKey("supplier_returns.id"), nullable=True)
	filename = Column(String, nullable=False)
	url = Column(String, nullable=False)
	storage_key = Column(String, nullable=True)
	mime_type = Column(String, nullable=True)
	size_mb = Column(Numeric(10, 3), nullable=True)
	status = Column(String, nullable=False, default="ACTIVE")
	uploaded_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
