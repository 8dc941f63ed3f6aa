"""
Pytest fixtures for shoppos backend tests.

Provides test database setup, a signed-in user, and test client.
"""

from datetime import datetime

import pytest
from shoppos import create_app
from shoppos.extensions import db
from shoppos.models import Product
from shoppos.services.auth_service import create_user
from shoppos.services.session_service import create_session


TEST_PASSWORD = "Password123!"
REGISTRATION_KEY = "test-registration-key"

# Mid-day UTC so "today" is the same business day in every fixture
FIXED_NOW = datetime(2026, 3, 10, 15, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'REGISTRATION_KEY': REGISTRATION_KEY,
        'STORE_TIMEZONE': 'UTC',
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


@pytest.fixture(scope='function')
def user(db_session):
    """Cashier account with a display name."""
    return create_user(email="ana@shop.local", password=TEST_PASSWORD, display_name="Ana")


@pytest.fixture(scope='function')
def auth_headers(user):
    """Authorization headers for the user fixture."""
    _, token = create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for catalog entries; keyword arguments override the defaults."""
    def _make(**overrides):
        fields = {
            "name": "Product",
            "category": "general",
            "cost_price_cents": 600,
            "market_price_cents": 1200,
            "sale_price_cents": 1000,
            "wholesale_price_cents": 800,
            "stock": 5,
            "min_stock": 1,
            "is_backorder": False,
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def customer_info():
    return {
        "name": "Maria Lopez",
        "phone": "5551234567",
        "address": "Calle 5 #12",
        "notes": "Pays on Fridays",
    }
