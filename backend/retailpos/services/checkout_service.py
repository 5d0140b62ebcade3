"""
Checkout Engine

Turns a cart into a committed Transaction as one all-or-nothing state change:

1. EmptyCart is rejected before anything touches the database.
2. Inside a write transaction (BEGIN IMMEDIATE on SQLite, row locks
   elsewhere) every product is loaded once and the cart is validated against
   that snapshot: unknown ids fail with ProductNotFound, per-product totals
   above stock fail with InsufficientStock.
3. Prices and GST rates are snapshotted by the pure pricing pass.
4. Stock is decremented with conditional UPDATEs, an invoice number is
   allocated and the transaction is appended, then a single commit.
   Any failure rolls back the whole DB transaction, decrements included.
5. The activity entry is written after the commit, best effort.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Mapping, Sequence

from flask import current_app

from ..errors import EmptyCart, InsufficientStock, PosError, ProductNotFound
from ..extensions import db
from ..models import Product, Transaction
from ..money import format_amount
from ..schemas import CartLine, CheckoutRequest
from ..time_utils import local_date, utcnow
from . import activity_service
from .catalog_service import adjust_stock
from .concurrency import begin_write_transaction, lock_for_update, run_checkout_with_retry
from .ledger_service import append_transaction, next_invoice_number
from .pricing import Quote, price_cart


def _load_products(lines: Sequence[CartLine], product_ids: Sequence[int], *, lock: bool) -> dict[int, Product]:
    query = (
        db.session.query(Product)
        .filter(Product.id.in_(product_ids), Product.is_active.is_(True))
        .order_by(Product.id.asc())  # stable lock order
        .populate_existing()
    )
    if lock:
        query = lock_for_update(query)
    products = {p.id: p for p in query.all()}

    for line in lines:
        if line.product_id not in products:
            raise ProductNotFound(line.product_id)
    return products


def _validate_stock(lines: Sequence[CartLine], products: Mapping[int, Product]) -> None:
    """Duplicate product lines are summed; each product is checked once."""
    requested: OrderedDict[int, int] = OrderedDict()
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    for product_id, qty in requested.items():
        product = products[product_id]
        if qty > product.stock:
            raise InsufficientStock(
                product_id=product.id,
                product_name=product.name,
                requested=qty,
                available=product.stock,
            )


def quote(request: CheckoutRequest) -> Quote:
    """Price a cart against current catalog state without committing anything."""
    if not request.items:
        raise EmptyCart()

    try:
        products = _load_products(request.items, request.product_ids, lock=False)
        _validate_stock(request.items, products)
        return price_cart(request.items, products, request.discount_cents)
    finally:
        db.session.rollback()


def checkout(request: CheckoutRequest) -> Transaction:
    """
    Validate, price and atomically commit a sale.

    Raises:
        EmptyCart, ProductNotFound, InsufficientStock: nothing was changed
        ConcurrencyConflict: retries exhausted; nothing was changed
    """
    if not request.items:
        raise EmptyCart()

    tz = current_app.config.get("REPORT_TIMEZONE", "UTC")

    def _op() -> Transaction:
        try:
            begin_write_transaction()
            products = _load_products(request.items, request.product_ids, lock=True)
            _validate_stock(request.items, products)
            priced = price_cart(request.items, products, request.discount_cents)

            for line in request.items:
                adjust_stock(line.product_id, -line.quantity, commit=False)

            created_at = utcnow()
            invoice_no = next_invoice_number(local_date(created_at, tz).year)
            tx = append_transaction(
                quote=priced,
                invoice_no=invoice_no,
                payment_method=request.payment_method,
                customer_phone=request.customer_phone,
                cashier_id=request.cashier_id,
                cashier_name=request.cashier_name,
                created_at=created_at,
            )
            db.session.commit()
            return tx
        except PosError:
            db.session.rollback()
            raise

    tx = run_checkout_with_retry(_op)

    current_app.logger.info(
        "Checkout committed invoice=%s lines=%d total_cents=%d",
        tx.invoice_no, len(tx.items), tx.total_cents,
    )

    summary = ", ".join(f"{item.quantity}x {item.product_name}" for item in tx.items)
    activity_service.record(
        activity_service.cashier_actor(request.cashier_id, request.cashier_name),
        f"Sold {summary}",
        f"Invoice {tx.invoice_no} - Total: Rs.{format_amount(tx.total_cents)}",
        timestamp=tx.created_at,
    )
    return tx
