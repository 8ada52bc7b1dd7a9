# Import all models so that Base.metadata and relationship() resolution see every table
from app.db.base_class import Base  # noqa: F401
from app.db.models.tenant import Business, BusinessSettings, Branch, Subscription, SubscriptionHistory  # noqa: F401
from app.db.models.rbac import User, BusinessUser, Role, Permission, RolePermission, UserRole  # noqa: F401
from app.db.models.catalog import Category, Unit, Product, Variant, Barcode, ProductImage, BranchVariantAvailability  # noqa: F401
from app.db.models.inventory import StockSnapshot, StockMovement, Batch  # noqa: F401
from app.db.models.sales import (  # noqa: F401
	Customer, Sale, SaleLine, SalePayment, SaleRefund, SaleRefundLine, SaleSettlement,
	Receipt, PriceList, PriceListItem, Shift,
)
from app.db.models.purchasing import (  # noqa: F401
	Supplier, Purchase, PurchaseLine, PurchaseOrder, PurchaseOrderLine, ReceivingLine,
	PurchasePayment, SupplierReturn, SupplierReturnLine,
)
from app.db.models.operations import Approval, ApprovalPolicy, Notification, OfflineDevice, OfflineAction, Attachment  # noqa: F401
from app.db.models.audit_log import AuditLog  # noqa: F401
from app.db.models.export_job import ExportJob  # noqa: F401
