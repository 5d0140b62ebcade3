"""
Pytest fixtures for retailpos backend tests.

Provides an in-memory application per test, a test client and a product
factory that goes through the catalog service.
"""

import pytest

from retailpos import create_app
from retailpos.extensions import db
from retailpos.services import catalog_service


@pytest.fixture(scope='function')
def app():
    """Create application for testing with a fresh in-memory database."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'CHECKOUT_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def make_product(app):
    """Factory: create an active product. Prices in cents, GST in basis points."""
    counter = {"n": 0}

    def _make(name=None, *, price=10000, cost=6000, gst=500, stock=10, min_stock=0, **extra):
        counter["n"] += 1
        patch = {
            "name": name or f"Product {counter['n']}",
            "sku": f"SKU-{counter['n']:03d}",
            "selling_price_cents": price,
            "cost_price_cents": cost,
            "gst_rate_bps": gst,
            "stock": stock,
            "min_stock": min_stock,
        }
        patch.update(extra)
        return catalog_service.create_product(patch=patch)

    return _make
