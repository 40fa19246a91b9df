"""
Pytest fixtures for storefront backend tests.

Provides the app with an in-memory database and a stubbed Kara transport,
per-test table cleanup, and catalog/profile factories.
"""

import itertools
from datetime import timedelta
from decimal import Decimal

import httpx
import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import Product, ProductInventory, ProductPrice, Profile
from storefront.services.kara_client import KaraApiError
from storefront.time_utils import utcnow


ADMIN_KEY = "test-admin-key"

_emails = itertools.count(1)


def kara_handler(request: httpx.Request) -> httpx.Response:
    """Kara stand-in for the app-wide client: healthy, empty catalog."""
    if request.url.path.endswith("/health"):
        return httpx.Response(200, json={"success": True, "message": "ok", "version": "2.4.0"})
    return httpx.Response(200, json={"success": True, "data": []})


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'KARA_API_URL': 'http://kara.test/api',
        'KARA_TRANSPORT': httpx.MockTransport(kara_handler),
        'ADMIN_API_KEY': ADMIN_KEY,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_KEY)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


# =============================================================================
# FACTORIES
# =============================================================================


def make_profile(session, *, user_type="b2c", email=None):
    profile = Profile(email=email or f"{user_type}-{next(_emails)}@example.com", user_type=user_type)
    session.add(profile)
    session.commit()
    return profile


def make_product(
    session,
    *,
    sku="SKU-1",
    name="Product",
    retail=None,
    wholesale=None,
    wholesale_min=1,
    stock=100,
    reserved=0,
    weight=None,
    min_order_quantity=1,
    max_order_quantity=None,
    kara_id=None,
):
    """Active product with optional retail/wholesale prices and one warehouse row."""
    product = Product(
        kara_id=kara_id,
        name=name,
        slug=sku.lower(),
        sku=sku,
        weight=weight,
        min_order_quantity=min_order_quantity,
        max_order_quantity=max_order_quantity,
    )
    session.add(product)
    session.flush()

    yesterday = utcnow() - timedelta(days=1)
    if retail is not None:
        session.add(ProductPrice(
            product_id=product.id, price_type="retail", price=Decimal(retail), min_quantity=1,
            effective_from=yesterday,
        ))
    if wholesale is not None:
        session.add(ProductPrice(
            product_id=product.id, price_type="wholesale", price=Decimal(wholesale),
            min_quantity=wholesale_min, effective_from=yesterday,
        ))
    if stock is not None:
        session.add(ProductInventory(
            product_id=product.id, warehouse_kara_id="main", quantity=stock, reserved_quantity=reserved,
        ))
    session.commit()
    return product


@pytest.fixture
def b2c_user(db_session):
    return make_profile(db_session, user_type="b2c", email="consumer@example.com")


@pytest.fixture
def b2b_user(db_session):
    return make_profile(db_session, user_type="b2b", email="buyer@example.com")


# =============================================================================
# KARA STAND-IN
# =============================================================================


class FakeKaraClient:
    """Serves canned records per entity type; an exception value is raised on fetch."""

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def fetch(self, entity_type, updated_since=None):
        self.calls.append((entity_type, updated_since))
        response = self.responses.get(entity_type, [])
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def kara_down():
    return KaraApiError("HTTP error! status: 503", endpoint="products", status_code=503)
