"""Read-only access to a tenant's operational data for exports."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import func, inspect, or_, select
from sqlalchemy.orm import Session, Query, joinedload, selectinload

from app.db.models.tenant import Business, BusinessSettings, Branch, Subscription, SubscriptionHistory
from app.db.models.rbac import User, BusinessUser, Role, Permission, RolePermission, UserRole
from app.db.models.catalog import Category, Unit, Product, Variant, Barcode, ProductImage, BranchVariantAvailability
from app.db.models.inventory import StockSnapshot, StockMovement, Batch
from app.db.models.sales import (
	Customer, Sale, SaleLine, SalePayment, SaleRefund, SaleRefundLine, SaleSettlement,
	Receipt, PriceList, PriceListItem, Shift,
)
from app.db.models.purchasing import (
	Supplier, Purchase, PurchaseLine, PurchaseOrder, PurchaseOrderLine, ReceivingLine,
	PurchasePayment, SupplierReturn, SupplierReturnLine,
)
from app.db.models.operations import Approval, ApprovalPolicy, Notification, OfflineDevice, OfflineAction, Attachment
from app.db.models.audit_log import AuditLog
from app.db.models.export_job import ExportJob

# Dialects that can pin a consistent snapshot for the whole bundle read
REPEATABLE_READ_DIALECTS = {"postgresql", "mysql"}

CollectionQuery = Callable[[Session, str], Query]


def _scoped(model) -> CollectionQuery:
	return lambda s, business_id: s.query(model).filter(model.business_id == business_id)


def _via(model, parent, fk) -> CollectionQuery:
	return lambda s, business_id: (
		s.query(model).join(parent, fk == parent.id).filter(parent.business_id == business_id)
	)


# Bundle collections, in archive order
COLLECTIONS: Tuple[Tuple[str, Any, CollectionQuery], ...] = (
	("business", Business, lambda s, b: s.query(Business).filter(Business.id == b)),
	("business_settings", BusinessSettings, _scoped(BusinessSettings)),
	("branches", Branch, _scoped(Branch)),
	("subscription", Subscription, _scoped(Subscription)),
	("subscription_history", SubscriptionHistory, _scoped(SubscriptionHistory)),
	("export_jobs", ExportJob, _scoped(ExportJob)),
	("users", User, lambda s, b: (
		s.query(User)
		.filter(User.id.in_(select(BusinessUser.user_id).where(BusinessUser.business_id == b)))
	)),
	("business_users", BusinessUser, _scoped(BusinessUser)),
	("roles", Role, _scoped(Role)),
	("permissions", Permission, lambda s, b: s.query(Permission)),
	("role_permissions", RolePermission, _via(RolePermission, Role, RolePermission.role_id)),
	("user_roles", UserRole, _via(UserRole, Role, UserRole.role_id)),
	("categories", Category, _scoped(Category)),
	("products", Product, _scoped(Product)),
	("variants", Variant, _scoped(Variant)),
	("barcodes", Barcode, _scoped(Barcode)),
	("units", Unit, lambda s, b: s.query(Unit).filter(or_(Unit.business_id == b, Unit.business_id.is_(None)))),
	("product_images", ProductImage, _scoped(ProductImage)),
	("branch_variant_availability", BranchVariantAvailability, _scoped(BranchVariantAvailability)),
	("stock_movements", StockMovement, _scoped(StockMovement)),
	("stock_snapshots", StockSnapshot, _scoped(StockSnapshot)),
	("batches", Batch, _scoped(Batch)),
	("sales", Sale, _scoped(Sale)),
	("sale_lines", SaleLine, _via(SaleLine, Sale, SaleLine.sale_id)),
	("sale_payments", SalePayment, _via(SalePayment, Sale, SalePayment.sale_id)),
	("sale_refunds", SaleRefund, _scoped(SaleRefund)),
	("sale_refund_lines", SaleRefundLine, _via(SaleRefundLine, SaleRefund, SaleRefundLine.refund_id)),
	("sale_settlements", SaleSettlement, _scoped(SaleSettlement)),
	("receipts", Receipt, _via(Receipt, Sale, Receipt.sale_id)),
	("purchases", Purchase, _scoped(Purchase)),
	("purchase_lines", PurchaseLine, _via(PurchaseLine, Purchase, PurchaseLine.purchase_id)),
	("purchase_orders", PurchaseOrder, _scoped(PurchaseOrder)),
	("purchase_order_lines", PurchaseOrderLine, _via(PurchaseOrderLine, PurchaseOrder, PurchaseOrderLine.purchase_order_id)),
	("receiving_lines", ReceivingLine, lambda s, b: s.query(ReceivingLine).filter(or_(
		ReceivingLine.purchase_id.in_(select(Purchase.id).where(Purchase.business_id == b)),
		ReceivingLine.purchase_order_id.in_(select(PurchaseOrder.id).where(PurchaseOrder.business_id == b)),
	))),
	("purchase_payments", PurchasePayment, _scoped(PurchasePayment)),
	("suppliers", Supplier, _scoped(Supplier)),
	("supplier_returns", SupplierReturn, _scoped(SupplierReturn)),
	("supplier_return_lines", SupplierReturnLine, _via(SupplierReturnLine, SupplierReturn, SupplierReturnLine.supplier_return_id)),
	("customers", Customer, _scoped(Customer)),
	("price_lists", PriceList, _scoped(PriceList)),
	("price_list_items", PriceListItem, _via(PriceListItem, PriceList, PriceListItem.price_list_id)),
	("shifts", Shift, _scoped(Shift)),
	("approvals", Approval, _scoped(Approval)),
	("approval_policies", ApprovalPolicy, _scoped(ApprovalPolicy)),
	("notifications", Notification, _scoped(Notification)),
	("offline_devices", OfflineDevice, _scoped(OfflineDevice)),
	("offline_actions", OfflineAction, _scoped(OfflineAction)),
	("attachments", Attachment, _scoped(Attachment)),
	("audit_logs", AuditLog, _scoped(AuditLog)),
)


def row_to_dict(obj: Any) -> Dict[str, Any]:
	"""Column-name keyed copy of a mapped row (``job_metadata`` comes out as ``metadata``)."""
	mapper = inspect(obj).mapper
	return {attr.columns[0].name: getattr(obj, attr.key) for attr in mapper.column_attrs}


class TenantDataRepository:
	"""Queries behind the simple CSV exports and the full-tenant snapshot."""

	def __init__(self, db: Session, correlation_id: Optional[str] = None):
		self.db = db
		self.correlation_id = correlation_id
		self.logger = logging.getLogger(self.__class__.__name__)

	def stock_snapshots(self, business_id: str, branch_id: Optional[str] = None) -> List[StockSnapshot]:
		query = self.db.query(StockSnapshot).options(
			joinedload(StockSnapshot.variant).joinedload(Variant.base_unit)
		).filter(StockSnapshot.business_id == business_id)
		if branch_id:
			query = query.filter(StockSnapshot.branch_id == branch_id)
		return query.order_by(StockSnapshot.created_at, StockSnapshot.id).all()

	def products_with_variants(self, business_id: str) -> List[Product]:
		return self.db.query(Product).options(
			joinedload(Product.category),
			selectinload(Product.variants).selectinload(Variant.barcodes),
			selectinload(Product.variants).joinedload(Variant.base_unit),
			selectinload(Product.variants).joinedload(Variant.sell_unit),
		).filter(Product.business_id == business_id).order_by(Product.created_at, Product.id).all()

	def variants(self, business_id: str) -> List[Variant]:
		return self.db.query(Variant).filter(
			Variant.business_id == business_id
		).order_by(Variant.created_at, Variant.id).all()

	def suppliers(self, business_id: str) -> List[Supplier]:
		return self.db.query(Supplier).filter(
			Supplier.business_id == business_id
		).order_by(Supplier.created_at, Supplier.id).all()

	def branches(self, business_id: str) -> List[Branch]:
		return self.db.query(Branch).filter(
			Branch.business_id == business_id
		).order_by(Branch.created_at, Branch.id).all()

	def users_with_roles(self, business_id: str) -> List[Tuple[User, List[UserRole]]]:
		"""Members of the business paired with their role assignments in it."""
		users = self.db.query(User).filter(
			User.id.in_(select(BusinessUser.user_id).where(BusinessUser.business_id == business_id))
		).options(
			selectinload(User.roles).joinedload(UserRole.role)
		).order_by(User.created_at, User.id).all()
		return [
			(user, [assignment for assignment in user.roles if assignment.role.business_id == business_id])
			for user in users
		]

	def customer_sales_summary(self, business_id: str, branch_id: Optional[str] = None) -> List[Tuple[Optional[str], Any, int]]:
		"""(customer_id, total, count) over completed sales."""
		query = self.db.query(
			Sale.customer_id,
			func.sum(Sale.total),
			func.count(Sale.id),
		).filter(Sale.business_id == business_id, Sale.status == "COMPLETED")
		if branch_id:
			query = query.filter(Sale.branch_id == branch_id)
		return [tuple(row) for row in query.group_by(Sale.customer_id).order_by(Sale.customer_id).all()]

	def audit_logs(self, business_id: str, branch_id: Optional[str] = None) -> List[AuditLog]:
		query = self.db.query(AuditLog).filter(AuditLog.business_id == business_id)
		if branch_id:
			query = query.filter(AuditLog.branch_id == branch_id)
		return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).all()

	def snapshot(self, business_id: str) -> Dict[str, List[Dict[str, Any]]]:
		"""Every tenant collection as column-keyed rows, read in one transaction.

		Keys follow archive order. On dialects that support it the read runs on a
		separate REPEATABLE READ session so that all collections see the same
		point in time.
		"""
		bind = self.db.get_bind()
		if bind.dialect.name not in REPEATABLE_READ_DIALECTS:
			return self._read_collections(self.db, business_id)

		with Session(bind=bind.execution_options(isolation_level="REPEATABLE READ")) as session:
			with session.begin():
				return self._read_collections(session, business_id)

	def _read_collections(self, session: Session, business_id: str) -> Dict[str, List[Dict[str, Any]]]:
		collections: Dict[str, List[Dict[str, Any]]] = {}
		for name, model, build_query in COLLECTIONS:
			rows = build_query(session, business_id).order_by(model.created_at, model.id).all()
			collections[name] = [row_to_dict(row) for row in rows]
		self.logger.debug(
			"Tenant snapshot read",
			extra={
				"correlation_id": self.correlation_id,
				"repository": self.__class__.__name__,
				"business_id": business_id,
				"collections": len(collections),
				"rows": sum(len(rows) for rows in collections.values()),
			}
		)
		return collections
