# Overview: Append-only transaction ledger and invoice number allocation.

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from flask import current_app
from sqlalchemy import func, update

from ..errors import TransactionNotFound
from ..extensions import db
from ..models import InvoiceSequence, Transaction, TransactionItem
from ..time_utils import local_midnight_utc
from .pricing import Quote
"""
Transaction Ledger Invariants (authoritative)

- Append-only: append_transaction() is the only writer and is called by the
  checkout engine inside its write transaction. No update/delete API exists;
  ORM attempts are rejected by the model listeners.
- A transaction and all of its items are flushed together and become visible
  at the checkout commit, never partially.
- list_transactions() is ascending by created_at (storage order); "recent"
  views sort descending themselves.
- Range filters are inclusive: start <= created_at <= end.
"""


def _count_transactions_in_year(year: int) -> int:
    tz = current_app.config.get("REPORT_TIMEZONE", "UTC")
    start = local_midnight_utc(date(year, 1, 1), tz)
    end = local_midnight_utc(date(year + 1, 1, 1), tz)
    return (
        db.session.query(func.count(Transaction.id))
        .filter(Transaction.created_at >= start, Transaction.created_at < end)
        .scalar()
        or 0
    )


def next_invoice_number(year: int, *, pad: int = 4) -> str:
    """
    Allocate the next invoice number for a calendar year.

    The counter row is bumped with a single UPDATE inside the caller's write
    transaction. A year's first allocation seeds the counter from the number
    of transactions already in that year, so the sequence is "prior
    transactions this year + 1". Two writers seeding the same year collide on
    the primary key; the checkout retry loop absorbs that.
    """
    stmt = (
        update(InvoiceSequence)
        .where(InvoiceSequence.year == year)
        .values(next_number=InvoiceSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(InvoiceSequence.next_number)
            .filter(InvoiceSequence.year == year)
            .scalar()
        )
        seq = current - 1
    else:
        seq = _count_transactions_in_year(year) + 1
        db.session.add(InvoiceSequence(year=year, next_number=seq + 1))
        db.session.flush()

    return f"INV-{year}-{seq:0{pad}d}"


def append_transaction(
    *,
    quote: Quote,
    invoice_no: str,
    payment_method: str,
    customer_phone: str,
    cashier_id: str,
    cashier_name: str,
    created_at: datetime,
) -> Transaction:
    """
    Append a priced sale to the ledger. Flushes, does not commit.

    Only checkout_service calls this; the commit belongs to the checkout.
    """
    tx = Transaction(
        invoice_no=invoice_no,
        subtotal_cents=quote.subtotal_cents,
        discount_cents=quote.discount_cents,
        gst_amount_cents=quote.gst_amount_cents,
        total_cents=quote.total_cents,
        payment_method=payment_method,
        customer_phone=customer_phone,
        cashier_id=cashier_id,
        cashier_name=cashier_name,
        created_at=created_at,
    )
    for line in quote.lines:
        tx.items.append(
            TransactionItem(
                line_no=line.line_no,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                gst_rate_bps=line.gst_rate_bps,
                line_total_cents=line.line_total_cents,
            )
        )
    db.session.add(tx)
    db.session.flush()  # assigns ids; surfaces invoice_no collisions now
    return tx


def get_transaction(transaction_id: int) -> Transaction:
    tx = db.session.get(Transaction, transaction_id)
    if tx is None:
        raise TransactionNotFound(transaction_id)
    return tx


def get_by_invoice(invoice_no: str) -> Transaction:
    tx = db.session.query(Transaction).filter(Transaction.invoice_no == invoice_no).first()
    if tx is None:
        raise TransactionNotFound(invoice_no)
    return tx


def list_transactions(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Transaction]:
    query = db.session.query(Transaction)
    if start is not None:
        query = query.filter(Transaction.created_at >= start)
    if end is not None:
        query = query.filter(Transaction.created_at <= end)
    return query.order_by(Transaction.created_at.asc(), Transaction.id.asc()).all()
