from sqlalchemy import Column, ForeignKey, String, Text, DateTime, JSON
from app.db.base_class import Base, IdMixin, TimestampMixin


class Business(Base, IdMixin, TimestampMixin):
	__tablename__ = "businesses"

	name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")
	default_currency = Column(String(3), nullable=True)
	country = Column(String, nullable=True)


class BusinessSettings(Base, IdMixin, TimestampMixin):
	__tablename__ = "business_settings"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, unique=True)
	default_language = Column(String(8), nullable=False, default="en")
	receipt_footer = Column(Text, nullable=True)
	stock_policies = Column(JSON, nullable=True)
	approval_defaults = Column(JSON, nullable=True)


class Branch(Base, IdMixin, TimestampMixin):
	__tablename__ = "branches"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")
	address = Column(Text, nullable=True)
	phone = Column(String, nullable=True)


class Subscription(Base, IdMixin, TimestampMixin):
	__tablename__ = "subscriptions"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, unique=True)
	tier = Column(String, nullable=False)
	status = Column(String, nullable=False)
	trial_ends_at = Column(DateTime(timezone=True), nullable=True)
	expires_at = Column(DateTime(timezone=True), nullable=True)


class SubscriptionHistory(Base, IdMixin, TimestampMixin):
	__tablename__ = "subscription_history"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	previous_tier = Column(String, nullable=True)
	new_tier = Column(String, nullable=True)
	previous_status = Column(String, nullable=True)
	new_status = Column(String, nullable=True)
	changed_by_user_id = Column(String(36), nullable=True)
	reason = Column(Text, nullable=True)
