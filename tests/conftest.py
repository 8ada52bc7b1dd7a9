import os
import sys
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# The in-process worker must not poll the developer database during tests
os.environ.setdefault("EXPORTS_WORKER_ENABLED", "false")

# Ensure project root is on sys.path for 'app' imports
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.db.base_class import Base
from app.db import base as models_import  # noqa: F401 - ensure models are imported
from app.db.models.tenant import Business, Branch
from app.db.models.rbac import User, BusinessUser, Role, UserRole
from app.db.models.catalog import Category, Unit, Product, Variant, Barcode
from app.db.models.inventory import StockSnapshot
from app.db.models.purchasing import Supplier
from app.db.models.sales import Customer, Sale
from app.core.security import create_principal_token
from app.schemas.auth import Principal
from app.services.storage_services import StorageService


class FakeMinio:
    """Records uploads in memory; presigned URLs point at a fake host."""

    def __init__(self, fail_uploads: bool = False):
        self.objects = {}
        self.fail_uploads = fail_uploads

    def put_object(self, bucket, key, data, length, content_type=None):
        if self.fail_uploads:
            raise RuntimeError("bucket unavailable")
        self.objects[(bucket, key)] = {"data": data.read(length), "content_type": content_type}

    def presigned_get_object(self, bucket, key, expires=None):
        return f"http://minio.test/{bucket}/{key}?X-Amz-Signature=test"

    def presigned_put_object(self, bucket, key, expires=None):
        return f"http://minio.test/{bucket}/{key}?X-Amz-Signature=upload"


def attachment_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("missing.pdf"):
        return httpx.Response(404, content=b"not found")
    return httpx.Response(200, content=b"bytes of " + request.url.path.encode("utf-8"))


@pytest.fixture
def engine():
    # One shared in-memory connection; the API thread and the test see the same data
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def minio():
    return FakeMinio()


@pytest.fixture
def storage(minio):
    return StorageService(client=minio, bucket="exports", prefix="", base_url="http://cdn.test/exports")


@pytest.fixture
def failing_storage():
    return StorageService(client=FakeMinio(fail_uploads=True), bucket="exports", prefix="", base_url="http://cdn.test/exports")


@pytest.fixture
def attachment_transport():
    return httpx.MockTransport(attachment_handler)


@pytest.fixture
def tenant(db):
    """A business with two branches, one stocked variant, members and sales."""
    business = Business(name="Corner Shop", default_currency="NGN")
    other_business = Business(name="Elsewhere Ltd")
    db.add_all([business, other_business])
    db.flush()

    branch = Branch(business_id=business.id, name="Main")
    second_branch = Branch(business_id=business.id, name="Annex")
    db.add_all([branch, second_branch])

    piece = Unit(business_id=None, code="PCS", label="Piece")
    carton = Unit(business_id=business.id, code="CTN", label="Carton")
    db.add_all([piece, carton])
    db.flush()

    category = Category(business_id=business.id, name="Drinks")
    db.add(category)
    db.flush()

    product = Product(business_id=business.id, category_id=category.id, name="Cola", description="Cold, fizzy")
    db.add(product)
    db.flush()

    variant = Variant(
        business_id=business.id,
        product_id=product.id,
        name="Cola 50cl",
        sku="COLA-50",
        base_unit_id=piece.id,
        sell_unit_id=carton.id,
        conversion_factor=Decimal("24"),
        default_price=Decimal("10.50"),
        default_cost=Decimal("7.25"),
    )
    db.add(variant)
    db.flush()
    db.add(Barcode(business_id=business.id, variant_id=variant.id, code="5000112637922"))

    db.add_all([
        StockSnapshot(business_id=business.id, branch_id=branch.id, variant_id=variant.id, quantity=Decimal("12")),
        StockSnapshot(business_id=business.id, branch_id=second_branch.id, variant_id=variant.id, quantity=Decimal("2.5")),
    ])

    owner = User(email="owner@corner.test", name="Ada Owner")
    cashier = User(email="cashier@corner.test", name="Bo Cashier")
    outsider = User(email="someone@elsewhere.test", name="Outsider")
    db.add_all([owner, cashier, outsider])
    db.flush()
    db.add_all([
        BusinessUser(business_id=business.id, user_id=owner.id, is_owner=True),
        BusinessUser(business_id=business.id, user_id=cashier.id),
        BusinessUser(business_id=other_business.id, user_id=outsider.id),
    ])
    manager = Role(business_id=business.id, name="Manager")
    db.add(manager)
    db.flush()
    db.add(UserRole(user_id=owner.id, role_id=manager.id, branch_id=None))

    db.add(Supplier(business_id=business.id, name="Bottlers, Inc.", phone="0800", email="sales@bottlers.test"))

    customer = Customer(business_id=business.id, name="Regular")
    db.add(customer)
    db.flush()
    db.add_all([
        Sale(business_id=business.id, branch_id=branch.id, customer_id=customer.id, status="COMPLETED", total=Decimal("21.00")),
        Sale(business_id=business.id, branch_id=branch.id, customer_id=customer.id, status="COMPLETED", total=Decimal("10.50")),
        Sale(business_id=business.id, branch_id=branch.id, customer_id=customer.id, status="DRAFT", total=Decimal("99.00")),
    ])
    db.commit()

    return SimpleNamespace(
        business_id=business.id,
        other_business_id=other_business.id,
        branch_id=branch.id,
        second_branch_id=second_branch.id,
        variant_id=variant.id,
        unit_id=piece.id,
        owner_id=owner.id,
        cashier_id=cashier.id,
        customer_id=customer.id,
    )


@pytest.fixture
def owner(tenant):
    return Principal(user_id=tenant.owner_id, business_id=tenant.business_id)


@pytest.fixture
def branch_manager(tenant):
    return Principal(user_id=tenant.cashier_id, business_id=tenant.business_id, branch_scope=[tenant.branch_id])


@pytest.fixture
def auth_headers():
    def _headers(principal: Principal) -> dict:
        token = create_principal_token(principal.user_id, principal.business_id, principal.branch_scope)
        return {"Authorization": f"Bearer {token}"}
    return _headers
