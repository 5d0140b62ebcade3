"""
Fixed-point money helpers.

Storage is integer minor units (cents) and GST rates are integer basis points
(5% == 500). Arithmetic that can produce fractional cents (GST) stays in
Decimal until a single half-up rounding step.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .errors import ValidationError

ONE = Decimal("1")
HUNDRED = Decimal("100")
BPS_PER_UNIT = Decimal("10000")


def _to_decimal(value: Any, field: str) -> Decimal:
    # bool is an int subclass; "true" is never a price
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        value = repr(value)
    try:
        dec = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not dec.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return dec


def round_half_up(value: Decimal) -> int:
    """Round a cent amount to a whole cent, halves away from zero."""
    return int(value.quantize(ONE, rounding=ROUND_HALF_UP))


def to_cents(value: Any, field: str = "amount") -> int:
    """Decimal amount (number or numeric string) -> integer cents."""
    return round_half_up(_to_decimal(value, field) * HUNDRED)


def percent_to_bps(value: Any, field: str = "gst_rate") -> int:
    """Percentage (e.g. 18 or "2.5") -> integer basis points."""
    return round_half_up(_to_decimal(value, field) * HUNDRED)


def cents_to_amount(cents: int | None) -> float | None:
    """Integer cents -> 2dp decimal number for JSON transport."""
    if cents is None:
        return None
    return float(Decimal(cents) / HUNDRED)


def bps_to_percent(bps: int | None) -> float | None:
    if bps is None:
        return None
    return float(Decimal(bps) / HUNDRED)


def exact_gst_cents(line_total_cents: int, gst_rate_bps: int) -> Decimal:
    """GST on a line, in cents, at full precision (no rounding)."""
    return Decimal(line_total_cents) * Decimal(gst_rate_bps) / BPS_PER_UNIT


def format_amount(cents: int) -> str:
    return str((Decimal(cents) / HUNDRED).quantize(Decimal("0.01")))
