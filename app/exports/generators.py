"""Single-table CSV exports.

Each export has a fixed header; rows are built from ORM objects loaded through
``TenantDataRepository``. Branch-scoped exports filter on ``branch_id`` when one
is given.
"""

import logging
from typing import Callable, Dict, Optional

from app.exports.tabular import CsvFile, to_csv
from app.repositories.tenant_data import TenantDataRepository, row_to_dict
from app.schemas.export import BRANCH_SCOPED_TYPES, ExportJobType
from app.services.exceptions import AcknowledgementRequiredError, UnsupportedExportTypeError

logger = logging.getLogger(__name__)

STOCK_HEADERS = ["variant_id", "branch_id", "quantity", "unit_id", "unit_code", "unit_label"]
OPENING_STOCK_HEADERS = STOCK_HEADERS + ["batch_id", "expiry_date", "unit_cost"]
PRODUCT_HEADERS = [
	"name", "category", "status", "description", "sku", "barcode", "price", "cost", "vat_mode",
	"base_unit_code", "base_unit_label", "sell_unit_code", "sell_unit_label", "conversion_factor",
]
PRICE_UPDATE_HEADERS = ["variant_id", "price", "vat_mode"]
SUPPLIER_HEADERS = ["name", "status", "phone", "email", "address", "notes"]
BRANCH_HEADERS = ["name", "status", "address", "phone"]
USER_HEADERS = ["name", "email", "role", "status", "branch_ids"]
CUSTOMER_REPORT_HEADERS = ["customer_id", "sales_total", "sale_count"]
AUDIT_LOG_HEADERS = [
	"id", "business_id", "user_id", "role_id", "branch_id", "request_id", "session_id",
	"correlation_id", "action", "resource_type", "resource_id", "outcome", "reason", "metadata",
	"before", "after", "diff", "device_id", "offline_at", "previous_hash", "hash", "created_at",
]


def _unit_fields(variant) -> Dict[str, str]:
	unit = variant.base_unit
	return {
		"unit_id": variant.base_unit_id or "",
		"unit_code": unit.code if unit else "",
		"unit_label": unit.label if unit else "",
	}


class ExportGenerators:
	def __init__(self, tenant_repo: TenantDataRepository, audit_acknowledgement: str = "YES"):
		self.tenant_repo = tenant_repo
		self.audit_acknowledgement = audit_acknowledgement
		self._dispatch: Dict[ExportJobType, Callable[..., CsvFile]] = {
			ExportJobType.STOCK: self.stock,
			ExportJobType.PRODUCTS: self.products,
			ExportJobType.OPENING_STOCK: self.opening_stock,
			ExportJobType.PRICE_UPDATES: self.price_updates,
			ExportJobType.SUPPLIERS: self.suppliers,
			ExportJobType.BRANCHES: self.branches,
			ExportJobType.USERS: self.users,
			ExportJobType.CUSTOMER_REPORTS: self.customer_reports,
			ExportJobType.AUDIT_LOGS: self.audit_logs,
		}

	def generate(
		self,
		export_type,
		business_id: str,
		branch_id: Optional[str] = None,
		acknowledgement: Optional[str] = None,
	) -> CsvFile:
		"""Run the generator for ``export_type``; the full bundle is not handled here."""
		try:
			job_type = ExportJobType(export_type)
			generator = self._dispatch[job_type]
		except (ValueError, KeyError):
			raise UnsupportedExportTypeError(str(export_type))

		logger.debug("Generating %s export", job_type.value, extra={"business_id": business_id, "branch_id": branch_id})
		if job_type == ExportJobType.AUDIT_LOGS:
			return self.audit_logs(business_id, acknowledgement, branch_id)
		if job_type in BRANCH_SCOPED_TYPES:
			return generator(business_id, branch_id)
		return generator(business_id)

	def stock(self, business_id: str, branch_id: Optional[str] = None) -> CsvFile:
		rows = [
			{
				"variant_id": snapshot.variant_id,
				"branch_id": snapshot.branch_id,
				"quantity": snapshot.quantity,
				**_unit_fields(snapshot.variant),
			}
			for snapshot in self.tenant_repo.stock_snapshots(business_id, branch_id)
		]
		return CsvFile(filename="stock.csv", csv=to_csv(STOCK_HEADERS, rows))

	def products(self, business_id: str) -> CsvFile:
		rows = []
		for product in self.tenant_repo.products_with_variants(business_id):
			for variant in product.variants:
				rows.append({
					"name": product.name,
					"category": product.category.name if product.category else "",
					"status": product.status,
					"description": product.description or "",
					"sku": variant.sku or "",
					"barcode": variant.barcodes[0].code if variant.barcodes else "",
					"price": variant.default_price,
					"cost": variant.default_cost,
					"vat_mode": variant.vat_mode,
					"base_unit_code": variant.base_unit.code if variant.base_unit else "",
					"base_unit_label": variant.base_unit.label if variant.base_unit else "",
					"sell_unit_code": variant.sell_unit.code if variant.sell_unit else "",
					"sell_unit_label": variant.sell_unit.label if variant.sell_unit else "",
					"conversion_factor": variant.conversion_factor,
				})
		return CsvFile(filename="products.csv", csv=to_csv(PRODUCT_HEADERS, rows))

	def opening_stock(self, business_id: str, branch_id: Optional[str] = None) -> CsvFile:
		# Batches are not broken out; the template leaves them for the importer to fill
		rows = [
			{
				"variant_id": snapshot.variant_id,
				"branch_id": snapshot.branch_id,
				"quantity": snapshot.quantity,
				**_unit_fields(snapshot.variant),
				"batch_id": "",
				"expiry_date": "",
				"unit_cost": snapshot.variant.default_cost,
			}
			for snapshot in self.tenant_repo.stock_snapshots(business_id, branch_id)
		]
		return CsvFile(filename="opening_stock.csv", csv=to_csv(OPENING_STOCK_HEADERS, rows))

	def price_updates(self, business_id: str) -> CsvFile:
		rows = [
			{"variant_id": variant.id, "price": variant.default_price, "vat_mode": variant.vat_mode}
			for variant in self.tenant_repo.variants(business_id)
		]
		return CsvFile(filename="price_updates.csv", csv=to_csv(PRICE_UPDATE_HEADERS, rows))

	def suppliers(self, business_id: str) -> CsvFile:
		rows = [row_to_dict(supplier) for supplier in self.tenant_repo.suppliers(business_id)]
		return CsvFile(filename="suppliers.csv", csv=to_csv(SUPPLIER_HEADERS, rows))

	def branches(self, business_id: str) -> CsvFile:
		rows = [row_to_dict(branch) for branch in self.tenant_repo.branches(business_id)]
		return CsvFile(filename="branches.csv", csv=to_csv(BRANCH_HEADERS, rows))

	def users(self, business_id: str) -> CsvFile:
		"""One row per role assignment; members without a role still get one row."""
		rows = []
		for user, assignments in self.tenant_repo.users_with_roles(business_id):
			base = {"name": user.name, "email": user.email, "status": user.status}
			if not assignments:
				rows.append({**base, "role": "", "branch_ids": ""})
				continue
			for assignment in assignments:
				rows.append({**base, "role": assignment.role.name, "branch_ids": assignment.branch_id or ""})
		return CsvFile(filename="users.csv", csv=to_csv(USER_HEADERS, rows))

	def customer_reports(self, business_id: str, branch_id: Optional[str] = None) -> CsvFile:
		rows = [
			{"customer_id": customer_id or "", "sales_total": total or 0, "sale_count": count or 0}
			for customer_id, total, count in self.tenant_repo.customer_sales_summary(business_id, branch_id)
		]
		return CsvFile(filename="customer_reports.csv", csv=to_csv(CUSTOMER_REPORT_HEADERS, rows))

	def audit_logs(self, business_id: str, acknowledgement: Optional[str], branch_id: Optional[str] = None) -> CsvFile:
		# Checked before any audit row is read
		if acknowledgement != self.audit_acknowledgement:
			raise AcknowledgementRequiredError(ExportJobType.AUDIT_LOGS.value)
		rows = [row_to_dict(entry) for entry in self.tenant_repo.audit_logs(business_id, branch_id)]
		return CsvFile(filename="audit_logs.csv", csv=to_csv(AUDIT_LOG_HEADERS, rows))
