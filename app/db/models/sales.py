from sqlalchemy import Column, ForeignKey, String, Text, DateTime, Numeric, JSON
from app.db.base_class import Base, IdMixin, TimestampMixin


class Customer(Base, IdMixin, TimestampMixin):
	__tablename__ = "customers"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	phone = Column(String, nullable=True)
	email = Column(String, nullable=True)
	status = Column(String, nullable=False, default="ACTIVE")
	credit_limit = Column(Numeric(18, 2), nullable=True)


class Sale(Base, IdMixin, TimestampMixin):
	__tablename__ = "sales"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False, index=True)
	customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True, index=True)
	cashier_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	status = Column(String, nullable=False, default="DRAFT")
	subtotal = Column(Numeric(18, 2), nullable=False, default=0)
	vat_total = Column(Numeric(18, 2), nullable=False, default=0)
	total = Column(Numeric(18, 2), nullable=False, default=0)
	completed_at = Column(DateTime(timezone=True), nullable=True)


class SaleLine(Base, IdMixin, TimestampMixin):
	__tablename__ = "sale_lines"

	sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	unit_price = Column(Numeric(18, 2), nullable=False)
	line_total = Column(Numeric(18, 2), nullable=False)
	vat_mode = Column(String, nullable=False, default="INCLUSIVE")


class SalePayment(Base, IdMixin, TimestampMixin):
	__tablename__ = "sale_payments"

	sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False, index=True)
	method = Column(String, nullable=False)
	amount = Column(Numeric(18, 2), nullable=False)
	reference = Column(String, nullable=True)


class SaleRefund(Base, IdMixin, TimestampMixin):
	__tablename__ = "sale_refunds"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False)
	status = Column(String, nullable=False, default="COMPLETED")
	total = Column(Numeric(18, 2), nullable=False)
	reason = Column(Text, nullable=True)


class SaleRefundLine(Base, IdMixin, TimestampMixin):
	__tablename__ = "sale_refund_lines"

	refund_id = Column(String(36), ForeignKey("sale_refunds.id"), nullable=False, index=True)
	sale_line_id = Column(String(36), ForeignKey("sale_lines.id"), nullable=False)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	quantity = Column(Numeric(18, 4), nullable=False)
	amount = Column(Numeric(18, 2), nullable=False)


class SaleSettlement(Base, IdMixin, TimestampMixin):
	__tablename__ = "sale_settlements"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False)
	method = Column(String, nullable=False)
	amount = Column(Numeric(18, 2), nullable=False)
	received_at = Column(DateTime(timezone=True), nullable=True)


class Receipt(Base, IdMixin, TimestampMixin):
	__tablename__ = "receipts"

	sale_id = Column(String(36), ForeignKey("sales.id"), nullable=False, index=True)
	receipt_number = Column(String, nullable=False)
	data = Column(JSON, nullable=True)


class PriceList(Base, IdMixin, TimestampMixin):
	__tablename__ = "price_lists"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")


class PriceListItem(Base, IdMixin, TimestampMixin):
	__tablename__ = "price_list_items"

	price_list_id = Column(String(36), ForeignKey("price_lists.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	price = Column(Numeric(18, 2), nullable=False)


class Shift(Base, IdMixin, TimestampMixin):
	__tablename__ = "shifts"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False)
	opened_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	closed_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
	status = Column(String, nullable=False, default="OPEN")
	opening_cash = Column(Numeric(18, 2), nullable=True)
	closing_cash = Column(Numeric(18, 2), nullable=True)
	opened_at = Column(DateTime(timezone=True), nullable=True)
	closed_at = Column(DateTime(timezone=True), nullable=True)
