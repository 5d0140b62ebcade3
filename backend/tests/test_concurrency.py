"""
Concurrent checkouts against a file-backed SQLite database.

Each worker thread runs in its own app context (own session and connection),
so the write serialization in checkout_service is exercised for real.
"""

import threading

import pytest

from retailpos import create_app
from retailpos.errors import InsufficientStock
from retailpos.extensions import db
from retailpos.models import Product, Transaction
from retailpos.schemas import CartLine, CheckoutRequest
from retailpos.services import checkout_service


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.db'}",
        'CHECKOUT_RETRY_ATTEMPTS': 5,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _create_product(app, stock):
    with app.app_context():
        product = Product(name="Concurrent Product", sku="CONCUR-1", selling_price_cents=1000,
                          cost_price_cents=500, gst_rate_bps=0, stock=stock)
        db.session.add(product)
        db.session.commit()
        return product.id


def _run_checkouts(app, product_id, quantities):
    barrier = threading.Barrier(len(quantities))
    results = []
    lock = threading.Lock()

    def worker(qty):
        with app.app_context():
            barrier.wait()
            try:
                tx = checkout_service.checkout(
                    CheckoutRequest(items=(CartLine(product_id=product_id, quantity=qty),))
                )
                outcome = ("ok", tx.invoice_no)
            except InsufficientStock as exc:
                outcome = ("insufficient", exc.details["available"])
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker, args=(qty,)) for qty in quantities]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_two_checkouts_for_more_than_available_only_one_wins(file_app):
    product_id = _create_product(file_app, stock=5)

    results = _run_checkouts(file_app, product_id, [3, 3])

    assert sorted(r[0] for r in results) == ["insufficient", "ok"]
    failed = [r for r in results if r[0] == "insufficient"][0]
    assert failed[1] in (2, 5)

    with file_app.app_context():
        assert db.session.get(Product, product_id).stock == 2
        assert db.session.query(Transaction).count() == 1


def test_concurrent_checkouts_get_distinct_sequential_invoices(file_app):
    product_id = _create_product(file_app, stock=100)

    results = _run_checkouts(file_app, product_id, [1] * 6)

    assert all(status == "ok" for status, _ in results)
    invoices = sorted(invoice for _, invoice in results)
    suffixes = [int(inv.rsplit("-", 1)[1]) for inv in invoices]
    assert suffixes == [1, 2, 3, 4, 5, 6]

    with file_app.app_context():
        assert db.session.get(Product, product_id).stock == 94
