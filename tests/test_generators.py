import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.exports.generators import ExportGenerators, AUDIT_LOG_HEADERS
from app.repositories.audit_log import AuditLogRepository
from app.repositories.tenant_data import TenantDataRepository
from app.services.audit_services import AuditService
from app.services.exceptions import AcknowledgementRequiredError, UnsupportedExportTypeError


@pytest.fixture
def generators(db):
    return ExportGenerators(TenantDataRepository(db))


def test_stock_for_one_branch(generators, tenant):
    result = generators.stock(tenant.business_id, tenant.branch_id)
    assert result.filename == "stock.csv"
    assert result.csv == (
        "variant_id,branch_id,quantity,unit_id,unit_code,unit_label\n"
        f"{tenant.variant_id},{tenant.branch_id},12,{tenant.unit_id},PCS,Piece"
    )


def test_stock_for_every_branch(generators, tenant):
    lines = generators.stock(tenant.business_id).csv.split("\n")
    assert len(lines) == 3
    assert set(lines[1:]) == {
        f"{tenant.variant_id},{tenant.branch_id},12,{tenant.unit_id},PCS,Piece",
        f"{tenant.variant_id},{tenant.second_branch_id},2.5,{tenant.unit_id},PCS,Piece",
    }


def test_stock_is_tenant_isolated(generators, tenant):
    assert generators.stock(tenant.other_business_id).csv == "variant_id,branch_id,quantity,unit_id,unit_code,unit_label"


def test_products_one_row_per_variant(generators, tenant):
    lines = generators.products(tenant.business_id).csv.split("\n")
    assert lines[0] == (
        "name,category,status,description,sku,barcode,price,cost,vat_mode,"
        "base_unit_code,base_unit_label,sell_unit_code,sell_unit_label,conversion_factor"
    )
    assert lines[1] == 'Cola,Drinks,ACTIVE,"Cold, fizzy",COLA-50,5000112637922,10.5,7.25,INCLUSIVE,PCS,Piece,CTN,Carton,24'


def test_opening_stock_adds_batch_columns(generators, tenant):
    lines = generators.opening_stock(tenant.business_id, tenant.branch_id).csv.split("\n")
    assert lines[0].endswith(",batch_id,expiry_date,unit_cost")
    assert lines[1] == f"{tenant.variant_id},{tenant.branch_id},12,{tenant.unit_id},PCS,Piece,,,7.25"


def test_price_updates(generators, tenant):
    assert generators.price_updates(tenant.business_id).csv == (
        f"variant_id,price,vat_mode\n{tenant.variant_id},10.5,INCLUSIVE"
    )


def test_suppliers_and_branches(generators, tenant):
    assert generators.suppliers(tenant.business_id).csv == (
        'name,status,phone,email,address,notes\n"Bottlers, Inc.",ACTIVE,0800,sales@bottlers.test,,'
    )
    branches = generators.branches(tenant.business_id).csv.split("\n")
    assert branches[0] == "name,status,address,phone"
    assert set(branches[1:]) == {"Main,ACTIVE,,", "Annex,ACTIVE,,"}


def test_users_one_row_per_role_assignment(generators, tenant):
    lines = generators.users(tenant.business_id).csv.split("\n")
    assert lines[0] == "name,email,role,status,branch_ids"
    assert set(lines[1:]) == {
        "Ada Owner,owner@corner.test,Manager,ACTIVE,",
        "Bo Cashier,cashier@corner.test,,ACTIVE,",
    }


def test_customer_reports_count_completed_sales_only(generators, tenant):
    assert generators.customer_reports(tenant.business_id, tenant.branch_id).csv == (
        f"customer_id,sales_total,sale_count\n{tenant.customer_id},31.5,2"
    )
    assert generators.customer_reports(tenant.business_id, tenant.second_branch_id).rows == 0


def test_audit_logs_require_acknowledgement(generators, tenant):
    with pytest.raises(AcknowledgementRequiredError) as exc:
        generators.generate("AUDIT_LOGS", tenant.business_id, acknowledgement=None)
    assert str(exc.value) == "Audit export requires acknowledgement."

    with pytest.raises(AcknowledgementRequiredError):
        generators.generate("AUDIT_LOGS", tenant.business_id, acknowledgement="yes please")


def test_audit_logs_with_acknowledgement(db, generators, tenant):
    AuditService(AuditLogRepository(db)).log_event(
        business_id=tenant.business_id,
        user_id=tenant.owner_id,
        action="EXPORT_REQUESTED",
        resource_type="ExportJob",
        resource_id="job-1",
        outcome="SUCCESS",
        metadata={"type": "STOCK"},
    )
    db.commit()

    result = generators.generate("AUDIT_LOGS", tenant.business_id, acknowledgement="YES")
    lines = result.csv.split("\n")
    assert lines[0] == ",".join(AUDIT_LOG_HEADERS)
    assert len(lines) == 2
    assert ",EXPORT_REQUESTED,ExportJob,job-1,SUCCESS," in lines[1]
    assert '"{""type"": ""STOCK""}"' in lines[1]


def test_generate_dispatches_branch_scoped_types(generators, tenant):
    result = generators.generate("STOCK", tenant.business_id, tenant.second_branch_id)
    assert result.rows == 1
    assert f",{tenant.second_branch_id},2.5," in result.csv


def test_generate_rejects_unknown_and_bundle_types(generators, tenant):
    with pytest.raises(UnsupportedExportTypeError):
        generators.generate("INVOICES", tenant.business_id)
    with pytest.raises(UnsupportedExportTypeError):
        generators.generate("EXPORT_ON_EXIT", tenant.business_id)
