from sqlalchemy import Column, ForeignKey, String, Text, Date, Numeric
from sqlalchemy.orm import relationship
from app.db.base_class import Base, IdMixin, TimestampMixin


class StockSnapshot(Base, IdMixin, TimestampMixin):
	__tablename__ = "stock_snapshots"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False, index=True)
	quantity = Column(Numeric(18, 4), nullable=False, default=0)

	variant = relationship("Variant")


class StockMovement(Base, IdMixin, TimestampMixin):
	__tablename__ = "stock_movements"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False, index=True)
	batch_id = Column(String(36), ForeignKey("batches.id"), nullable=True)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	unit_quantity = Column(Numeric(18, 4), nullable=True)
	movement_type = Column(String, nullable=False)
	reason = Column(Text, nullable=True)
	created_by_user_id = Column(String(36), nullable=True)


class Batch(Base, IdMixin, TimestampMixin):
	__tablename__ = "batches"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	code = Column(String, nullable=False)
	expiry_date = Column(Date, nullable=True)
	unit_cost = Column(Numeric(18, 2), nullable=True)
