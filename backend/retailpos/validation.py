from __future__ import annotations
from datetime import date, datetime
from retailpos.time_utils import parse_iso_date

from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .money import percent_to_bps, to_cents


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# GST above 100% is a data-entry mistake, not a tax rate
MAX_GST_RATE_BPS = 10_000

# Public payload key -> (column key, converter). Money travels as 2dp decimals
# and GST as a percentage; storage is cents / basis points.
DECIMAL_ALIASES: dict[str, tuple[str, Callable[[Any, str], int]]] = {
    "selling_price": ("selling_price_cents", to_cents),
    "cost_price": ("cost_price_cents", to_cents),
    "gst_rate": ("gst_rate_bps", percent_to_bps),
}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - control_fields: non-column flags accepted alongside the fields (e.g. confirm_loss)
    - non_blank_fields: text fields that may never be set to "", on create or patch
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    control_fields: set[str] = field(default_factory=set)
    non_blank_fields: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Booleans (checked before Integer: bool is an int subclass)
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{col.key} must be an integer")

    # Calendar dates ("YYYY-MM-DD"); blank clears the date
    if isinstance(coltype, Date):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
        raise ValidationError(f"{col.key} must be a date")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name, with only writable fields.
    Control fields are dropped here; callers read them from the raw payload.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k in policy.control_fields:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        col_key = DECIMAL_ALIASES[k][0] if k in DECIMAL_ALIASES else k
        if col_key not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in policy.control_fields:
            continue

        if k in DECIMAL_ALIASES:
            col_key, convert = DECIMAL_ALIASES[k]
            if raw is None:
                raise ValidationError(f"{k} cannot be null")
            patch[col_key] = convert(raw, k)
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for required text fields
        blank_guarded = policy.required_on_create | policy.non_blank_fields
        if k in blank_guarded and isinstance(val, str) and val == "":
            raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict, *, existing=None) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.

    `existing` is the current Product for patch semantics, so the date order
    is checked against the merged record.
    """
    for key in ("selling_price_cents", "cost_price_cents"):
        if key in patch:
            price = patch[key]
            if price < 0:
                raise ValidationError("Prices must be positive")
            if price > MAX_PRICE_CENTS:
                raise ValidationError(f"{key.replace('_cents', '')} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")

    if "gst_rate_bps" in patch:
        rate = patch["gst_rate_bps"]
        if rate < 0 or rate > MAX_GST_RATE_BPS:
            raise ValidationError("gst_rate must be between 0 and 100")

    for key in ("stock", "min_stock"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")

    mfg = patch.get("manufacturing_date", getattr(existing, "manufacturing_date", None))
    exp = patch.get("expiry_date", getattr(existing, "expiry_date", None))
    if mfg and exp and mfg > exp:
        raise ValidationError("Manufacturing date cannot be after expiry date")


def enforce_rules_quantity(value: Any, field: str = "quantity") -> int:
    """Strictly positive integer quantity (cart lines, restocks)."""
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        else:
            raise ValidationError(f"{field} must be a positive integer")
    if value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value
