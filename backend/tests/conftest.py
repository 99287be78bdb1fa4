"""
Pytest fixtures for PharmaCare backend tests.

Provides the application, a clean in-memory database per test, and the demo
roster/inventory.
"""

from datetime import timedelta

import pytest
from pharmacare import create_app
from pharmacare.config import TestingConfig
from pharmacare.extensions import db
from pharmacare.models import Category, Medicine, User
from pharmacare.services.seed_service import seed_demo_data
from pharmacare.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before each test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def seeded(db_session):
    """Demo users, categories and medicines."""
    return seed_demo_data()


@pytest.fixture(scope='function')
def cashier_user(db_session):
    """A till operator to attribute sales to."""
    user = User(
        name="Till Operator",
        username="till",
        email="till@pharmacy.com",
        role="cashier",
        password="password",
        created_at=utcnow(),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Pain Relief", description="Analgesics")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def make_medicine(db_session, category):
    """Factory for medicines inserted directly (bypassing form parsing)."""
    def _make(
        name="Paracetamol",
        price_cents=500,
        stock_quantity=3,
        expiry_in_days=365,
        batch_number=None,
        manufacturer="Acme Pharma",
    ):
        now = utcnow()
        medicine = Medicine(
            name=name,
            batch_number=batch_number or f"B-{name[:3].upper()}-{db_session.query(Medicine).count() + 1:03d}",
            manufacturer=manufacturer,
            category_id=category.id,
            price_cents=price_cents,
            stock_quantity=stock_quantity,
            expiry_date=now + timedelta(days=expiry_in_days),
            created_at=now,
            updated_at=now,
        )
        db_session.add(medicine)
        db_session.commit()
        return medicine

    return _make
