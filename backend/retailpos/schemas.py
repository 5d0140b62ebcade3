# Overview: Explicit request schemas for checkout and stock operations.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError
from .money import to_cents
from .validation import enforce_rules_quantity

PAYMENT_METHODS = ("Cash", "Card", "UPI")

CHECKOUT_FIELDS = {"items", "payment_method", "customer_phone", "discount", "cashier_id", "cashier_name"}
CART_LINE_FIELDS = {"product_id", "quantity"}


def _to_text(value: Any, field_name: str, max_length: int) -> str:
    if value is None:
        return ""
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a string")
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{field_name} exceeds max length {max_length}")
    return text


def _reject_unknown(payload: dict, allowed: set[str], where: str) -> None:
    unknown = sorted(k for k in payload if k not in allowed)
    if unknown:
        raise ValidationError(f"Field not allowed in {where}: {', '.join(unknown)}")


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int

    @classmethod
    def from_payload(cls, raw: Any, index: int) -> "CartLine":
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        _reject_unknown(raw, CART_LINE_FIELDS, f"items[{index}]")

        product_id = raw.get("product_id")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"items[{index}].product_id must be an integer")

        quantity = enforce_rules_quantity(raw.get("quantity"), f"items[{index}].quantity")
        return cls(product_id=product_id, quantity=quantity)


@dataclass(frozen=True)
class CheckoutRequest:
    """
    Inbound checkout. Lines keep their order and are never merged; duplicate
    product lines are summed only for the stock check.
    """
    items: tuple[CartLine, ...]
    payment_method: str = "Cash"
    discount_cents: int = 0
    customer_phone: str = ""
    cashier_id: str = ""
    cashier_name: str = ""
    product_ids: tuple[int, ...] = field(init=False)

    def __post_init__(self):
        if self.payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}"
            )
        if self.discount_cents < 0:
            raise ValidationError("discount must be >= 0")
        object.__setattr__(
            self, "product_ids", tuple(sorted({line.product_id for line in self.items}))
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "CheckoutRequest":
        """
        Build from JSON. An empty or missing items list is left for the
        checkout engine to reject as EmptyCart.
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")
        _reject_unknown(payload, CHECKOUT_FIELDS, "checkout")

        raw_items = payload.get("items") or []
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")
        items = tuple(CartLine.from_payload(raw, i) for i, raw in enumerate(raw_items))

        discount = payload.get("discount")
        discount_cents = 0 if discount in (None, "") else to_cents(discount, "discount")

        return cls(
            items=items,
            payment_method=payload.get("payment_method") or "Cash",
            discount_cents=discount_cents,
            customer_phone=_to_text(payload.get("customer_phone"), "customer_phone", 32),
            cashier_id=_to_text(payload.get("cashier_id"), "cashier_id", 64),
            cashier_name=_to_text(payload.get("cashier_name"), "cashier_name", 255),
        )


@dataclass(frozen=True)
class RestockRequest:
    quantity: int

    @classmethod
    def from_payload(cls, payload: Any) -> "RestockRequest":
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")
        _reject_unknown(payload, {"quantity"}, "restock")
        return cls(quantity=enforce_rules_quantity(payload.get("quantity"), "quantity"))
