"""
Pytest fixtures for shopledger backend tests.

Provides the app on an in-memory SQLite database, a per-test clean slate,
two tenants with products, and bearer-token headers for each tenant.
"""

import pytest
from shopledger import create_app
from shopledger.extensions import db
from shopledger.models import Tenant, Product
from shopledger.services.auth_service import hash_password
from shopledger.services.session_service import create_session

TENANT_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
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
    """Empty every table before each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


def _make_tenant(session, name: str, email: str) -> Tenant:
    tenant = Tenant(
        name=name,
        email=email,
        password_hash=hash_password(TENANT_PASSWORD),
        phone="9800000000",
        city="Pune",
        branch="Main",
        gstin="27AAAAA0000A1Z5",
    )
    session.add(tenant)
    session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """First tenant (shop A)."""
    return _make_tenant(db_session, "Shop A", "owner_a@example.com")


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Second tenant (shop B)."""
    return _make_tenant(db_session, "Shop B", "owner_b@example.com")


def make_product(session, tenant: Tenant, name: str, price_cents: int, quantity: int) -> Product:
    product = Product(tenant_id=tenant.id, name=name, price_cents=price_cents, quantity=quantity)
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product_a(db_session, tenant_a):
    """p1 in shop A: price 50.00, 10 in stock."""
    return make_product(db_session, tenant_a, "Notebook", 5000, 10)


@pytest.fixture(scope='function')
def product_a2(db_session, tenant_a):
    return make_product(db_session, tenant_a, "Pen", 1000, 20)


@pytest.fixture(scope='function')
def product_b(db_session, tenant_b):
    """Product in shop B."""
    return make_product(db_session, tenant_b, "Stapler", 2000, 5)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(tenant_a):
    _, token = create_session(tenant_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def headers_b(tenant_b):
    _, token = create_session(tenant_b.id)
    return auth_headers(token)


def stock_of(product_id: int) -> int:
    """Current quantity straight from the database, bypassing the identity map."""
    return db.session.query(Product.quantity).filter(Product.id == product_id).scalar()


def checkout_payload(*cart, charges=None, **overrides) -> dict:
    """cart entries are (product_id, quantity) pairs."""
    payload = {
        "customer_name": "Asha",
        "customer_contact": 9876543210,
        "billing_mode": "cash",
        "cart_items": [{"product": pid, "quantity": qty} for pid, qty in cart],
    }
    if charges is not None:
        payload["extra_charges"] = charges
    payload.update(overrides)
    return payload
