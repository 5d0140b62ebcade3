"""Fixed-point money helpers."""

from decimal import Decimal

import pytest

from retailpos.errors import ValidationError
from retailpos.money import (
    cents_to_amount,
    exact_gst_cents,
    format_amount,
    percent_to_bps,
    round_half_up,
    to_cents,
)


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.4999")) == 2
    assert round_half_up(Decimal("-2.5")) == -3


def test_to_cents_accepts_numbers_and_numeric_strings():
    assert to_cents(100) == 10000
    assert to_cents("99.99") == 9999
    assert to_cents(0.1) == 10
    assert to_cents("10.005") == 1001


@pytest.mark.parametrize("bad", [None, True, "abc", "NaN", "Infinity"])
def test_to_cents_rejects_non_numbers(bad):
    with pytest.raises(ValidationError):
        to_cents(bad, "selling_price")


def test_percent_to_bps():
    assert percent_to_bps(5) == 500
    assert percent_to_bps("2.5") == 250
    assert percent_to_bps(18) == 1800


def test_exact_gst_keeps_fractional_cents():
    assert exact_gst_cents(10000, 500) == Decimal(500)
    assert exact_gst_cents(10, 500) == Decimal("0.5")


def test_transport_formatting():
    assert cents_to_amount(10500) == 105.0
    assert cents_to_amount(None) is None
    assert format_amount(10500) == "105.00"
    assert format_amount(9800) == "98.00"
