"""
Pytest fixtures for farmstore backend tests.

Provides the app against an in-memory database, per-test table cleanup,
buyers of each classification, admins, a seeded product and auth headers.
"""

import pytest

from farmstore import create_app
from farmstore.extensions import db
from farmstore.models import BulkPriceTier, Product, User
from farmstore.models.auth import (
    CLASSIFICATION_RETAIL,
    CLASSIFICATION_WHOLESALE_PENDING,
    CLASSIFICATION_WHOLESALE_VERIFIED,
    ROLE_ADMIN,
    ROLE_SUPER_ADMIN,
    ROLE_USER,
)
from farmstore.services import token_service
from farmstore.services.auth_service import hash_password


DEFAULT_PASSWORD = "Password123!"

SHIPPING_ADDRESS = {
    "name": "Ada Obi",
    "address": "12 Market Road",
    "city": "Ibadan",
    "state": "Oyo",
    "zipCode": "200001",
    "phone": "+2348012345678",
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'JWT_ACCESS_SECRET': 'test-access-secret',
        'JWT_REFRESH_SECRET': 'test-refresh-secret',
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
    """Fresh data for each test (schema is kept)."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user("a@x.com", classification=..., role=...)."""
    def _make(email, classification=CLASSIFICATION_RETAIL, role=ROLE_USER, name="Test Buyer", is_active=True):
        user = User(
            email=email,
            password_hash=hash_password(DEFAULT_PASSWORD),
            name=name,
            classification=classification,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def retail_user(make_user):
    return make_user("retail@farm.test", name="Retail Buyer")


@pytest.fixture(scope='function')
def pending_user(make_user):
    return make_user("pending@farm.test", classification=CLASSIFICATION_WHOLESALE_PENDING, name="Pending Buyer")


@pytest.fixture(scope='function')
def wholesale_user(make_user):
    return make_user("wholesale@farm.test", classification=CLASSIFICATION_WHOLESALE_VERIFIED, name="Wholesale Buyer")


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin@farm.test", role=ROLE_ADMIN, name="Store Admin")


@pytest.fixture(scope='function')
def super_admin_user(make_user):
    return make_user("root@farm.test", role=ROLE_SUPER_ADMIN, name="Super Admin")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for products; tiers are (min_quantity, price_per_unit) pairs."""
    def _make(product_id, name="Organic Tomatoes", price=7500, stock=100, tiers=(), category="vegetables",
              unit="per kg", low_stock_threshold=10):
        product = Product(
            id=product_id,
            name=name,
            category=category,
            base_price=price,
            unit=unit,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
        )
        product.bulk_tiers = [BulkPriceTier(min_quantity=q, price_per_unit=p) for q, p in tiers]
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def tomatoes(make_product):
    """Organic Tomatoes: N7,500/kg retail, 10+ at N6,500, 50+ at N6,000."""
    return make_product(1, tiers=((10, 6500), (50, 6000)))


def auth_headers(user) -> dict:
    """Authorization header carrying a fresh access token for `user`."""
    return {'Authorization': f'Bearer {token_service.issue_access_token(user)}'}


@pytest.fixture(scope='function')
def retail_headers(retail_user):
    return auth_headers(retail_user)


@pytest.fixture(scope='function')
def wholesale_headers(wholesale_user):
    return auth_headers(wholesale_user)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(admin_user)
