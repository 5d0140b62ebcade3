# Overview: Pure cart pricing; no database access, no mutation.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Sequence

from ..models import Product
from ..money import bps_to_percent, cents_to_amount, exact_gst_cents, round_half_up
from ..schemas import CartLine


@dataclass(frozen=True)
class PricedLine:
    line_no: int
    product_id: int
    product_name: str
    quantity: int
    unit_price_cents: int
    gst_rate_bps: int
    line_total_cents: int

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": cents_to_amount(self.unit_price_cents),
            "gst_rate": bps_to_percent(self.gst_rate_bps),
            "line_total": cents_to_amount(self.line_total_cents),
        }


@dataclass(frozen=True)
class Quote:
    lines: tuple[PricedLine, ...]
    subtotal_cents: int
    discount_cents: int
    gst_exact_cents: Decimal
    gst_amount_cents: int
    total_cents: int

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self.lines],
            "subtotal": cents_to_amount(self.subtotal_cents),
            "discount": cents_to_amount(self.discount_cents),
            "gst_amount": cents_to_amount(self.gst_amount_cents),
            "total": cents_to_amount(self.total_cents),
        }


def price_cart(
    lines: Sequence[CartLine],
    products: Mapping[int, Product],
    discount_cents: int = 0,
) -> Quote:
    """
    Snapshot prices and compute totals.

    GST is computed per line on the pre-discount line total and summed at
    full precision; the only rounding is the half-up step on the final GST
    amount and the final total:

        total = round(subtotal - discount + sum(line_total * gst_rate / 100))

    A discount larger than the subtotal is not rejected.
    """
    priced: list[PricedLine] = []
    subtotal = 0
    gst_exact = Decimal(0)

    for line_no, line in enumerate(lines, start=1):
        product = products[line.product_id]
        line_total = product.selling_price_cents * line.quantity
        subtotal += line_total
        gst_exact += exact_gst_cents(line_total, product.gst_rate_bps)
        priced.append(
            PricedLine(
                line_no=line_no,
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                unit_price_cents=product.selling_price_cents,
                gst_rate_bps=product.gst_rate_bps,
                line_total_cents=line_total,
            )
        )

    total = round_half_up(Decimal(subtotal) - Decimal(discount_cents) + gst_exact)

    return Quote(
        lines=tuple(priced),
        subtotal_cents=subtotal,
        discount_cents=discount_cents,
        gst_exact_cents=gst_exact,
        gst_amount_cents=round_half_up(gst_exact),
        total_cents=total,
    )
