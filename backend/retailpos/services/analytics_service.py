# Overview: Read-only dashboard, alert and report computations over the ledger and catalog.

from __future__ import annotations

import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Mapping

from flask import current_app

from ..extensions import db
from ..models import Product, Transaction
from ..money import cents_to_amount, round_half_up
from ..time_utils import (
    local_date,
    local_midnight_utc,
    parse_iso_date,
    parse_iso_datetime,
    to_iso_date,
    to_utc_z,
    utcnow,
)
from .ledger_service import list_transactions

"""
Analytics semantics

- Stateless: every call scans the ledger and catalog; nothing is cached or
  written.
- Revenue is the sum of transaction totals (GST included, discount applied).
- COST BASIS: profit uses each product's *current* cost_price, not the cost at
  the time of sale. This mirrors the existing reports and drifts when costs
  change after a sale. Items whose product no longer resolves contribute no
  cost.
- Category revenue groups line totals by the product's *current* category.
- Calendar days ("today", the 7-day trend) are taken in REPORT_TIMEZONE.
"""

SECONDS_PER_DAY = 86400


class ReportError(Exception):
    """Raised when report parameters are unusable."""
    pass


def _is_date_only(value: str) -> bool:
    return "T" not in value and " " not in value.strip()


def _parse_bound(value: str | None, tz: str, *, end: bool) -> datetime | None:
    """
    Datetimes are taken as-is. A bare "YYYY-MM-DD" covers that whole calendar
    day in the report timezone: start of day for `start`, last microsecond of
    the day for `end`.
    """
    if not value:
        return None
    if _is_date_only(value):
        day = parse_iso_date(value)
        if end:
            return local_midnight_utc(day + timedelta(days=1), tz) - timedelta(microseconds=1)
        return local_midnight_utc(day, tz)
    return parse_iso_datetime(value)


def parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    tz = current_app.config.get("REPORT_TIMEZONE", "UTC")
    try:
        start_dt = _parse_bound(start, tz, end=False)
        end_dt = _parse_bound(end, tz, end=True)
    except ValueError:
        raise ReportError("start and end must be ISO-8601 dates or datetimes")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def _resolve_as_of(as_of: datetime | str | None) -> datetime:
    if as_of is None:
        return utcnow()
    if isinstance(as_of, str):
        try:
            parsed = parse_iso_datetime(as_of)
        except ValueError:
            raise ReportError("as_of must be an ISO-8601 datetime")
        return parsed or utcnow()
    return as_of


def _products_by_id() -> dict[int, Product]:
    return {p.id: p for p in db.session.query(Product).order_by(Product.id.asc()).all()}


def _transaction_cost_cents(tx: Transaction, products: Mapping[int, Product]) -> int:
    cost = 0
    for item in tx.items:
        product = products.get(item.product_id)
        if product is not None:
            cost += product.cost_price_cents * item.quantity
    return cost


def _payment_breakdown(transactions: Iterable[Transaction]) -> dict:
    totals: dict[str, dict] = {}
    for tx in transactions:
        bucket = totals.setdefault(tx.payment_method, {"count": 0, "total_cents": 0})
        bucket["count"] += 1
        bucket["total_cents"] += tx.total_cents
    return {
        method: {"count": bucket["count"], "total": cents_to_amount(bucket["total_cents"])}
        for method, bucket in totals.items()
    }


def _days_remaining(expiry, as_of: datetime, tz: str) -> int:
    expires_at = local_midnight_utc(expiry, tz)
    return math.ceil((expires_at - as_of).total_seconds() / SECONDS_PER_DAY)


def low_stock_alerts(products: Iterable[Product] | None = None) -> list[dict]:
    """Active products at or under min_stock (zero stock included)."""
    if products is None:
        products = _products_by_id().values()
    return [
        {"id": p.id, "name": p.name, "stock": p.stock, "min_stock": p.min_stock}
        for p in products
        if p.is_active and p.stock <= p.min_stock
    ]


def expiring_alerts(*, as_of: datetime | str | None = None, products: Iterable[Product] | None = None) -> list[dict]:
    """
    Active products expiring within EXPIRY_ALERT_DAYS.

    days_left = ceil((expiry - as_of) / 1 day); alert when 0 < days_left <= window.
    potential_loss = cost_price * stock.
    """
    as_of_dt = _resolve_as_of(as_of)
    tz = current_app.config.get("REPORT_TIMEZONE", "UTC")
    window = current_app.config.get("EXPIRY_ALERT_DAYS", 30)
    if products is None:
        products = _products_by_id().values()

    alerts = []
    for p in products:
        if not p.is_active or p.expiry_date is None:
            continue
        days_left = _days_remaining(p.expiry_date, as_of_dt, tz)
        if 0 < days_left <= window:
            alerts.append(
                {
                    "id": p.id,
                    "name": p.name,
                    "expiry_date": to_iso_date(p.expiry_date),
                    "days_left": days_left,
                    "stock": p.stock,
                    "cost_price": cents_to_amount(p.cost_price_cents),
                    "potential_loss": cents_to_amount(p.cost_price_cents * p.stock),
                }
            )
    return alerts


def dashboard_stats(*, as_of: datetime | str | None = None) -> dict:
    as_of_dt = _resolve_as_of(as_of)
    tz = current_app.config.get("REPORT_TIMEZONE", "UTC")

    transactions = list_transactions(end=as_of_dt)
    products = _products_by_id()
    active_products = [p for p in products.values() if p.is_active]

    today = local_date(as_of_dt, tz)
    tx_days = {tx.id: local_date(tx.created_at, tz) for tx in transactions}
    tx_costs = {tx.id: _transaction_cost_cents(tx, products) for tx in transactions}

    total_revenue = sum(tx.total_cents for tx in transactions)
    total_cost = sum(tx_costs.values())
    today_tx = [tx for tx in transactions if tx_days[tx.id] == today]

    category_revenue: dict[str, int] = {}
    for tx in transactions:
        for item in tx.items:
            product = products.get(item.product_id)
            if product is not None:
                category_revenue[product.category] = (
                    category_revenue.get(product.category, 0) + item.line_total_cents
                )

    last_7_days = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        day_tx = [tx for tx in transactions if tx_days[tx.id] == day]
        revenue = sum(tx.total_cents for tx in day_tx)
        cost = sum(tx_costs[tx.id] for tx in day_tx)
        last_7_days.append(
            {
                "date": day.isoformat(),
                "revenue": cents_to_amount(revenue),
                "profit": cents_to_amount(revenue - cost),
            }
        )

    low_stock = low_stock_alerts(active_products)
    expiring = expiring_alerts(as_of=as_of_dt, products=active_products)

    return {
        "as_of": to_utc_z(as_of_dt),
        "timezone": tz,
        "total_revenue": cents_to_amount(total_revenue),
        "today_revenue": cents_to_amount(sum(tx.total_cents for tx in today_tx)),
        "net_profit": cents_to_amount(total_revenue - total_cost),
        "total_transactions": len(transactions),
        "today_transactions": len(today_tx),
        "total_products": len(active_products),
        "low_stock_count": len(low_stock),
        "expiring_count": len(expiring),
        "inventory_value": cents_to_amount(sum(p.cost_price_cents * p.stock for p in active_products)),
        "total_gst": cents_to_amount(sum(tx.gst_amount_cents for tx in transactions)),
        "category_revenue": {k: cents_to_amount(v) for k, v in category_revenue.items()},
        "payment_methods": _payment_breakdown(transactions),
        "last_7_days": last_7_days,
        "low_stock_products": low_stock,
        "expiring_products": expiring,
    }


def sales_report(*, start: str | None = None, end: str | None = None) -> dict:
    start_dt, end_dt = parse_range(start, end)

    transactions = list_transactions(start=start_dt, end=end_dt)
    products = _products_by_id()

    total_revenue = sum(tx.total_cents for tx in transactions)
    total_cost = sum(_transaction_cost_cents(tx, products) for tx in transactions)
    count = len(transactions)
    avg_cents = round_half_up(Decimal(total_revenue) / count) if count else 0

    product_sales: dict[int, dict] = {}
    cashier_perf: dict[str, dict] = {}
    items_sold = 0
    for tx in transactions:
        for item in tx.items:
            items_sold += item.quantity
            row = product_sales.setdefault(
                item.product_id,
                {"product_id": item.product_id, "name": item.product_name, "quantity": 0, "revenue_cents": 0},
            )
            row["quantity"] += item.quantity
            row["revenue_cents"] += item.line_total_cents

        perf = cashier_perf.setdefault(
            tx.cashier_id,
            {"cashier_id": tx.cashier_id, "name": tx.cashier_name, "transactions": 0, "revenue_cents": 0},
        )
        perf["transactions"] += 1
        perf["revenue_cents"] += tx.total_cents

    # sorted() is stable: equal revenue keeps first-sold order
    limit = current_app.config.get("TOP_PRODUCTS_LIMIT", 10)
    ranked = sorted(product_sales.values(), key=lambda r: r["revenue_cents"], reverse=True)[:limit]

    multiplier = current_app.config.get("REORDER_MULTIPLIER", 3)
    reorder = []
    for p in products.values():
        if not p.is_active or p.stock > p.min_stock:
            continue
        suggested = p.min_stock * multiplier
        reorder.append(
            {
                "id": p.id,
                "name": p.name,
                "stock": p.stock,
                "min_stock": p.min_stock,
                "suggested_order": suggested,
                "estimated_cost": cents_to_amount(p.cost_price_cents * suggested),
            }
        )

    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "total_revenue": cents_to_amount(total_revenue),
        "net_profit": cents_to_amount(total_revenue - total_cost),
        "total_transactions": count,
        "avg_transaction": cents_to_amount(avg_cents),
        "total_discount": cents_to_amount(sum(tx.discount_cents for tx in transactions)),
        "total_gst": cents_to_amount(sum(tx.gst_amount_cents for tx in transactions)),
        "items_sold": items_sold,
        "top_products": [
            {
                "product_id": r["product_id"],
                "name": r["name"],
                "quantity": r["quantity"],
                "revenue": cents_to_amount(r["revenue_cents"]),
            }
            for r in ranked
        ],
        "cashier_performance": [
            {
                "cashier_id": c["cashier_id"],
                "name": c["name"],
                "transactions": c["transactions"],
                "revenue": cents_to_amount(c["revenue_cents"]),
            }
            for c in cashier_perf.values()
        ],
        "payment_breakdown": _payment_breakdown(transactions),
        "reorder_suggestions": reorder,
    }
