from sqlalchemy import Column, ForeignKey, String, Text, Date, DateTime, Numeric
from app.db.base_class import Base, IdMixin, TimestampMixin


class Supplier(Base, IdMixin, TimestampMixin):
	__tablename__ = "suppliers"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")
	phone = Column(String, nullable=True)
	email = Column(String, nullable=True)
	address = Column(Text, nullable=True)
	notes = Column(Text, nullable=True)


class Purchase(Base, IdMixin, TimestampMixin):
	__tablename__ = "purchases"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False)
	supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=True)
	status = Column(String, nullable=False, default="DRAFT")
	total = Column(Numeric(18, 2), nullable=False, default=0)


class PurchaseLine(Base, IdMixin, TimestampMixin):
	__tablename__ = "purchase_lines"

	purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	unit_cost = Column(Numeric(18, 2), nullable=False)


class PurchaseOrder(Base, IdMixin, TimestampMixin):
	__tablename__ = "purchase_orders"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False)
	supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=True)
	status = Column(String, nullable=False, default="DRAFT")
	expected_at = Column(DateTime(timezone=True), nullable=True)


class PurchaseOrderLine(Base, IdMixin, TimestampMixin):
	__tablename__ = "purchase_order_lines"

	purchase_order_id = Column(String(36), ForeignKey("purchase_orders.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	unit_cost = Column(Numeric(18, 2), nullable=True)


class ReceivingLine(Base, IdMixin, TimestampMixin):
	__tablename__ = "receiving_lines"

	purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=True, index=True)
	purchase_order_id = Column(String(36), ForeignKey("purchase_orders.id"), nullable=True, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	unit_cost = Column(Numeric(18, 2), nullable=True)
	batch_code = Column(String, nullable=True)
	expiry_date = Column(Date, nullable=True)


class PurchasePayment(Base, IdMixin, TimestampMixin):
	__tablename__ = "purchase_payments"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=False)
	method = Column(String, nullable=False)
	amount = Column(Numeric(18, 2), nullable=False)
	reference = Column(String, nullable=True)


class SupplierReturn(Base, IdMixin, TimestampMixin):
	__tablename__ = "supplier_returns"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False)
	supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False)
	purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=True)
	status = Column(String, nullable=False, default="COMPLETED")
	reason = Column(Text, nullable=True)


class SupplierReturnLine(Base, IdMixin, TimestampMixin):
	__tablename__ = "supplier_return_lines"

	supplier_return_id = Column(String(36), ForeignKey("supplier_returns.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	unit_cost = Column(Numeric(18, 2), nullable=True)
