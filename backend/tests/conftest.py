"""
Pytest fixtures for retailpos backend tests.

Provides a file-backed test database (so concurrency tests can use real
threads, one app context per thread), catalog/customer fixtures, an actor
and the test client.
"""

from decimal import Decimal

import pytest
from retailpos import create_app
from retailpos.extensions import db
from retailpos.models import Customer, Product
from retailpos.services.invoice_service import get_store_settings
from retailpos.services.session_service import ActorContext


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    db_path = tmp_path_factory.mktemp("db") / "retailpos-test.sqlite3"
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SALE_RETRY_ATTEMPTS': 5,
        'SALE_RETRY_BACKOFF': 0.01,
        'LOG_LEVEL': 'DEBUG',
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
def actor():
    return ActorContext(actor_id="cashier-1", actor_name="Casey Cashier", actor_role="cashier")


@pytest.fixture(scope='function')
def actor_headers(actor):
    return {
        "X-Actor-Id": actor.actor_id,
        "X-Actor-Name": actor.actor_name,
        "X-Actor-Role": actor.actor_role,
    }


@pytest.fixture(scope='function')
def settings(db_session):
    """Store settings singleton with the counter at 1."""
    row = get_store_settings()
    db_session.commit()
    return row


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(stock=..., price_cents=..., ...) -> committed Product."""
    counter = {"n": 0}

    def _make(
        *,
        name=None,
        stock=10,
        price_cents=1000,
        cost_cents=600,
        discount_percent=0,
        tax_percent=0,
        status="active",
        reorder_level=10,
    ):
        counter["n"] += 1
        n = counter["n"]
        product = Product(
            name=name or f"Product {n}",
            sku=f"SKU-{n:04d}",
            barcode=f"40000000{n:04d}",
            category="General",
            selling_price_cents=price_cents,
            cost_price_cents=cost_cents,
            discount_percent=Decimal(str(discount_percent)),
            tax_percent=Decimal(str(tax_percent)),
            stock=stock,
            reorder_level=reorder_level,
            status=status,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def customer(db_session):
    row = Customer(name="Dana Customer", phone="555-0100")
    db_session.add(row)
    db_session.commit()
    return row


def stock_of(product_id: int) -> int:
    """Current on-hand stock straight from the database (bypasses the identity map)."""
    return db.session.query(Product.stock).filter(Product.id == product_id).scalar()
