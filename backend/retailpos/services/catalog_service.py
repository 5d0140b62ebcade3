# backend/retailpos/services/catalog_service.py
"""
Product Catalog Service

Authoritative stock levels and pricing. Every mutation stamps last_updated.

STOCK: adjust_stock() is the only path that changes Product.stock after
creation. It is a single conditional UPDATE (stock + delta >= 0), so a
negative result can never be written, even by racing callers.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..errors import InsufficientStock, MarginWarning, ProductNotFound, ValidationError
from ..extensions import db
from ..models import Product
from ..time_utils import utcnow
from ..validation import enforce_rules_product, enforce_rules_quantity
from . import activity_service
from .activity_service import SYSTEM_ACTOR, Actor
from .concurrency import run_with_retry

PRODUCT_MUTABLE_FIELDS = {
    "name", "sku", "barcode", "category",
    "selling_price_cents", "cost_price_cents", "gst_rate_bps",
    "min_stock", "unit", "manufacturing_date", "expiry_date",
    "supplier", "batch_no", "section",
}
# Initial stock is accepted on create only; afterwards stock moves through adjust_stock()
PRODUCT_CREATE_FIELDS = PRODUCT_MUTABLE_FIELDS | {"stock"}


def apply_product_patch(p: Product, patch: dict, allowed: set[str] = PRODUCT_MUTABLE_FIELDS) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(p, k, v)


def list_products(*, include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int, *, include_inactive: bool = True) -> Product:
    p = db.session.get(Product, product_id)
    if p is None or (not include_inactive and not p.is_active):
        raise ProductNotFound(product_id)
    return p


def create_product(*, patch: dict, actor: Actor = SYSTEM_ACTOR) -> Product:
    """
    Create a product from a validated patch dict (column keys).

    Raises:
        ValidationError: negative prices, manufacturing date after expiry
    """
    if not patch.get("name"):
        raise ValidationError("name is required")
    enforce_rules_product(patch)

    now = utcnow()
    p = Product(created_at=now, last_updated=now)
    apply_product_patch(p, patch, PRODUCT_CREATE_FIELDS)

    db.session.add(p)
    db.session.commit()

    current_app.logger.info("Created product id=%s name=%r", p.id, p.name)
    activity_service.record(
        actor,
        f"Added new product: {p.name}",
        f"Product {p.name} added to inventory",
    )
    return p


def _check_margin(p: Product, patch: dict, confirm_loss: bool) -> None:
    if "selling_price_cents" not in patch and "cost_price_cents" not in patch:
        return
    selling = patch.get("selling_price_cents", p.selling_price_cents)
    cost = patch.get("cost_price_cents", p.cost_price_cents)
    if selling < cost and not confirm_loss:
        raise MarginWarning(
            "Selling price is less than cost price",
            details={
                "product_id": p.id,
                "selling_price_cents": selling,
                "cost_price_cents": cost,
            },
        )


def update_product(
    *,
    product_id: int,
    patch: dict,
    confirm_loss: bool = False,
    actor: Actor = SYSTEM_ACTOR,
) -> Product:
    """
    Update product fields (never id or stock).

    A price change that leaves selling < cost raises MarginWarning unless the
    caller re-submits with confirm_loss=True.

    Raises:
        ProductNotFound, ValidationError, MarginWarning, ConcurrencyConflict
    """
    blocked = sorted(k for k in patch if k not in PRODUCT_MUTABLE_FIELDS)
    if blocked:
        raise ValidationError(f"Field not allowed: {', '.join(blocked)}")
    if "name" in patch and not (patch["name"] or "").strip():
        raise ValidationError("name cannot be blank")

    def _op() -> Product:
        p = get_product(product_id)
        enforce_rules_product(patch, existing=p)
        _check_margin(p, patch, confirm_loss)
        apply_product_patch(p, patch)
        p.last_updated = utcnow()
        db.session.commit()
        return p

    try:
        p = run_with_retry(_op)
    except (ProductNotFound, ValidationError, MarginWarning):
        db.session.rollback()
        raise

    activity_service.record(
        actor,
        f"Updated product: {p.name}",
        f"Updated fields: {', '.join(sorted(patch.keys()))}",
    )
    return p


def adjust_stock(product_id: int, delta: int, *, commit: bool = True) -> Product:
    """
    Atomically add delta (positive restock, negative sale) to stock.

    The decrement is conditioned on the stored value in the same statement,
    so no read-then-write window exists. With commit=False the caller owns the
    surrounding DB transaction (checkout).

    Raises:
        ProductNotFound: unknown id
        InsufficientStock: stock + delta would be negative; nothing applied
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")

    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock + delta >= 0)
        .values(
            stock=Product.stock + delta,
            last_updated=utcnow(),
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    # Reload so identity-mapped instances see the new stock and version
    p = db.session.get(Product, product_id, populate_existing=True)
    if p is None or not result.rowcount:
        if p is None:
            exc = ProductNotFound(product_id)
        else:
            exc = InsufficientStock(
                product_id=p.id,
                product_name=p.name,
                requested=-delta,
                available=p.stock,
            )
        if commit:
            db.session.rollback()
        raise exc

    if commit:
        db.session.commit()
    return p


def restock(product_id: int, quantity, *, actor: Actor = SYSTEM_ACTOR) -> Product:
    quantity = enforce_rules_quantity(quantity, "quantity")
    p = run_with_retry(lambda: adjust_stock(product_id, quantity))

    current_app.logger.info("Restocked product id=%s by %d to %d", p.id, quantity, p.stock)
    activity_service.record(
        actor,
        f"Updated Stock: {p.name} (+{quantity})",
        f"Stock updated to {p.stock}",
    )
    return p


def deactivate_product(product_id: int, *, actor: Actor = SYSTEM_ACTOR) -> Product:
    """
    Soft-delete a product.

    Rows stay so historical transaction items and analytics still resolve
    the product (category, cost price).
    """
    def _op() -> Product:
        p = get_product(product_id)
        if p.is_active:
            p.is_active = False
            p.last_updated = utcnow()
        db.session.commit()
        return p

    try:
        p = run_with_retry(_op)
    except ProductNotFound:
        db.session.rollback()
        raise

    activity_service.record(
        actor,
        f"Removed product: {p.name}",
        f"Product {p.name} deactivated (sku={p.sku})",
    )
    return p
