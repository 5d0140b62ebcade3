"""Transaction ledger: append-only storage, lookups and ordering."""

from datetime import timedelta

import pytest

from retailpos.errors import ImmutableRecordError, TransactionNotFound
from retailpos.extensions import db
from retailpos.models import ActivityLog, InvoiceSequence, Transaction
from retailpos.schemas import CartLine, CheckoutRequest
from retailpos.services import activity_service, checkout_service, ledger_service
from retailpos.time_utils import utcnow


def _sell(product, qty=1):
    return checkout_service.checkout(
        CheckoutRequest(items=(CartLine(product_id=product.id, quantity=qty),))
    )


def test_get_and_get_by_invoice_return_same_record(make_product):
    tx = _sell(make_product(stock=5))

    assert ledger_service.get_transaction(tx.id).invoice_no == tx.invoice_no
    assert ledger_service.get_by_invoice(tx.invoice_no).id == tx.id
    # Repeated reads are stable
    assert ledger_service.get_transaction(tx.id).to_dict() == ledger_service.get_transaction(tx.id).to_dict()


def test_missing_transaction(app):
    with pytest.raises(TransactionNotFound):
        ledger_service.get_transaction(1)
    with pytest.raises(TransactionNotFound):
        ledger_service.get_by_invoice("INV-1999-0001")


def test_list_is_ascending_by_created_at(make_product):
    p = make_product(stock=10)
    txs = [_sell(p) for _ in range(3)]

    listed = ledger_service.list_transactions()

    assert [tx.id for tx in listed] == [tx.id for tx in txs]


def test_list_range_is_inclusive(make_product):
    p = make_product(stock=10)
    first = _sell(p)
    second = _sell(p)

    listed = ledger_service.list_transactions(start=first.created_at, end=first.created_at)
    assert first.id in [tx.id for tx in listed]

    later = ledger_service.list_transactions(start=second.created_at + timedelta(seconds=1))
    assert later == []


def test_transactions_cannot_be_updated(make_product):
    tx = _sell(make_product(stock=5))

    tx.total_cents = 1
    with pytest.raises(ImmutableRecordError):
        db.session.commit()
    db.session.rollback()

    assert db.session.get(Transaction, tx.id).total_cents != 1


def test_transaction_items_cannot_be_updated(make_product):
    tx = _sell(make_product(stock=5))

    tx.items[0].quantity = 99
    with pytest.raises(ImmutableRecordError):
        db.session.commit()
    db.session.rollback()


def test_transactions_cannot_be_deleted(make_product):
    tx = _sell(make_product(stock=5))

    db.session.delete(tx)
    with pytest.raises(ImmutableRecordError):
        db.session.commit()
    db.session.rollback()

    assert db.session.query(Transaction).count() == 1


def test_invoice_sequence_seeds_from_existing_year_count(make_product):
    p = make_product(stock=10)
    year = utcnow().year
    _sell(p)
    _sell(p)

    # A lost counter row is re-seeded from the transactions already in the year
    db.session.query(InvoiceSequence).delete()
    db.session.commit()

    tx = _sell(p)
    assert tx.invoice_no == f"INV-{year}-0003"


def test_activity_log_is_append_only_and_newest_first(app):
    actor = activity_service.SYSTEM_ACTOR
    first = activity_service.record(actor, "first", timestamp=utcnow() - timedelta(minutes=1))
    second = activity_service.record(actor, "second")

    assert [e.id for e in activity_service.list_activity()] == [second.id, first.id]
    assert len(activity_service.list_activity(limit=1)) == 1

    first.action = "rewritten"
    with pytest.raises(ImmutableRecordError):
        db.session.commit()
    db.session.rollback()
    assert db.session.get(ActivityLog, first.id).action == "first"
