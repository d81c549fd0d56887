"""
Pytest fixtures for the tire shop backend tests.

Provides an in-memory database app, per-test table cleanup, a test client,
and small catalog factories.
"""

import pytest
from tireshop import create_app
from tireshop.extensions import db

from factories import make_category, make_product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TIRE_FEE': '1.75',
        'DEFAULT_GLOBAL_TAX_RATE': '9.5',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def tires(db_session):
    """The "Tires" category."""
    return make_category(db_session, "Tires", "All types of tires")


@pytest.fixture(scope='function')
def new_tire(db_session, tires):
    """New tire, no explicit per-item tax, stock 10."""
    return make_product(
        db_session,
        sku="TIRE-225-65R17",
        name="All-Season 225/65R17",
        quantity=10,
        selling_price="100.00",
        category=tires,
    )

