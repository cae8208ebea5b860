"""Unit tests del cálculo de subtotal, impuesto y total."""
from decimal import Decimal

import pytest

from app.domain.errors import InvalidLineItem, InvalidTotals, ValidationError
from app.domain.models.document import LineItemInput
from app.domain.services.monetary_calculator import (
    check_override, compute_totals, line_total, round_money, round_unit_price,
)


def item(quantity, unit_price, days=None):
    return LineItemInput(quantity=quantity, days=days, unit_price=Decimal(unit_price))


def test_totals_with_igv():
    totals = compute_totals([item(2, "10.50", days=3), item(1, "100")], Decimal("0.18"))

    assert totals.subtotal == Decimal("163.00")
    assert totals.tax == Decimal("29.34")
    assert totals.total == Decimal("192.34")


def test_without_tax_rate_tax_is_zero():
    totals = compute_totals([item(1, "80")])

    assert totals.tax == Decimal("0.00")
    assert totals.total == totals.subtotal == Decimal("80.00")


def test_rounding_is_applied_once_at_the_end():
    # Redondeando por ítem serían 0.03
    totals = compute_totals([item(1, "0.005"), item(1, "0.005"), item(1, "0.005")])

    assert totals.subtotal == Decimal("0.02")


def test_rounding_is_half_up():
    assert compute_totals([item(1, "0.125")]).subtotal == Decimal("0.13")
    assert round_money(Decimal("2.675")) == Decimal("2.68")


def test_tax_is_rounded_from_unrounded_subtotal():
    totals = compute_totals([item(1, "10.05")], Decimal("0.18"))

    assert totals.tax == Decimal("1.81")
    assert totals.total == Decimal("11.86")


@pytest.mark.parametrize("quantity,days,unit_price", [
    (1, 1, "0"),
    (3, 7, "12.3456"),
    (10, None, "999.99"),
    (4, 30, "0.3333"),
])
def test_total_is_rounded_sum_plus_tax(quantity, days, unit_price):
    totals = compute_totals([item(quantity, unit_price, days=days)], Decimal("0.18"))

    expected_subtotal = round_money(line_total(quantity, days, Decimal(unit_price)))
    assert totals.subtotal == expected_subtotal
    assert totals.total == expected_subtotal + totals.tax


@pytest.mark.parametrize("bad_item,field", [
    (item(-1, "10"), "quantity"),
    (item(0, "10"), "quantity"),
    (item(1, "10", days=0), "days"),
    (item(1, "-0.01"), "unitPrice"),
])
def test_invalid_line_items_are_rejected(bad_item, field):
    with pytest.raises(InvalidLineItem) as excinfo:
        compute_totals([item(1, "5"), bad_item])

    assert excinfo.value.context["field"] == field
    assert excinfo.value.context["item"] == 2
    assert isinstance(excinfo.value, ValidationError)


def test_tax_rate_out_of_range():
    with pytest.raises(ValidationError):
        compute_totals([item(1, "5")], Decimal("1.5"))


def test_unit_price_keeps_four_decimals():
    assert round_unit_price("10.123456") == Decimal("10.1235")


class TestOverride:
    def test_consistent_override_is_trusted(self):
        totals = check_override(Decimal("100"), Decimal("18"), Decimal("118"))

        assert (totals.subtotal, totals.tax, totals.total) == (Decimal("100.00"), Decimal("18.00"), Decimal("118.00"))

    def test_difference_within_tolerance(self):
        totals = check_override(Decimal("100"), Decimal("18"), Decimal("118.01"))

        assert totals.total == Decimal("118.01")

    def test_inconsistent_override(self):
        with pytest.raises(InvalidTotals):
            check_override(Decimal("100"), Decimal("18"), Decimal("120"))

    def test_partial_override(self):
        with pytest.raises(ValidationError):
            check_override(Decimal("100"), None, Decimal("118"))

    def test_negative_override(self):
        with pytest.raises(ValidationError):
            check_override(Decimal("-10"), Decimal("0"), Decimal("-10"))
