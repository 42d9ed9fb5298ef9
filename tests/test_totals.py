from decimal import Decimal

import pytest

from invoicegen.schemas.invoice import LineItem
from invoicegen.services.totals import (
    Totals,
    format_amount,
    format_rate,
    line_total,
    money2,
    recompute,
    to_decimal,
)


def test_design_and_hosting_scenario() -> None:
    items = [
        {"title": "Design", "quantity": 2, "amount": "500.00"},
        {"title": "Hosting", "quantity": 1, "amount": "120.50"},
    ]

    totals = recompute(items, tax_rate=10, discount_amount=50)

    assert totals == Totals(
        subtotal=Decimal("1120.50"),
        tax_amount=Decimal("112.05"),
        total=Decimal("1182.55"),
    )


def test_empty_items_give_zero_totals() -> None:
    totals = recompute([], tax_rate=0, discount_amount=0)

    assert totals.subtotal == Decimal("0.00")
    assert totals.tax_amount == Decimal("0.00")
    assert totals.total == Decimal("0.00")
    assert str(totals.total) == "0.00"


def test_none_items_treated_as_empty() -> None:
    assert recompute(None).total == Decimal("0.00")


def test_total_clamps_at_zero_when_discount_exceeds_amount() -> None:
    items = [{"title": "Widget", "quantity": 1, "amount": "10.00"}]

    totals = recompute(items, tax_rate="5", discount_amount="99999")

    assert totals.subtotal == Decimal("10.00")
    assert totals.tax_amount == Decimal("0.50")
    assert totals.total == Decimal("0.00")
    assert not totals.total.is_signed()


def test_subtotal_matches_line_sum_for_many_small_amounts() -> None:
    items = [{"title": f"Item {n}", "quantity": 3, "amount": "0.10"} for n in range(1000)]

    totals = recompute(items)

    assert totals.subtotal == Decimal("300.00")


def test_recompute_is_idempotent() -> None:
    items = [
        LineItem(title="Consulting", quantity=7, amount=Decimal("33.33")),
        LineItem(title="Travel", quantity=1, amount=Decimal("0.1")),
    ]

    first = recompute(items, "8.5", "1.11")
    second = recompute(items, "8.5", "1.11")

    assert first == second
    assert repr(first) == repr(second)
    assert first.subtotal == Decimal("233.41")


def test_tax_rounds_half_up_to_cents() -> None:
    items = [{"title": "Thing", "quantity": 1, "amount": "0.50"}]

    # 0.50 * 1% = 0.005 -> 0.01
    assert recompute(items, tax_rate=1).tax_amount == Decimal("0.01")


def test_eight_and_a_half_percent_tax() -> None:
    items = [{"title": "Thing", "quantity": 1, "amount": "199.99"}]

    totals = recompute(items, tax_rate="8.5")

    assert totals.tax_amount == Decimal("17.00")
    assert totals.total == Decimal("216.99")


@pytest.mark.parametrize("raw", ["", "abc", None, "1.2.3", "NaN", "Infinity", True])
def test_unparseable_inputs_count_as_zero(raw) -> None:
    items = [{"title": "Thing", "quantity": 1, "amount": "100"}]

    totals = recompute(items, tax_rate=raw, discount_amount=raw)

    assert totals == Totals(Decimal("100.00"), Decimal("0.00"), Decimal("100.00"))


def test_negative_inputs_are_clamped() -> None:
    items = [{"title": "Thing", "quantity": 1, "amount": "100"}]

    totals = recompute(items, tax_rate="-10", discount_amount="-5")

    assert totals.total == Decimal("100.00")


def test_line_total_defaults_quantity_and_ignores_bad_amounts() -> None:
    assert line_total({"title": "A", "amount": "12.34"}) == Decimal("12.34")
    assert line_total({"title": "A", "quantity": 0, "amount": "5"}) == Decimal("5.00")
    assert line_total({"title": "A", "quantity": 2, "amount": "oops"}) == Decimal("0.00")
    assert line_total({"title": "A", "quantity": 2, "amount": "-3"}) == Decimal("0.00")


def test_to_decimal_strips_thousands_separators() -> None:
    assert to_decimal("1,234.50") == Decimal("1234.50")
    assert to_decimal(0.1) == Decimal("0.1")
    assert money2("2.675") == Decimal("2.68")


def test_formatting_helpers() -> None:
    assert format_amount(Decimal("1234567.5")) == "1,234,567.50"
    assert format_amount(0) == "0.00"
    assert format_rate(Decimal("8.50")) == "8.5"
    assert format_rate("10") == "10"
    assert format_rate(Decimal("10.00")) == "10"


def test_subtotal_rounds_once_after_summing_sub_cent_prices() -> None:
    items = [
        {"title": "a", "quantity": 1, "amount": "0.125"},
        {"title": "b", "quantity": 1, "amount": "0.125"},
    ]

    totals = recompute(items, 0, 0)

    assert totals.subtotal == Decimal("0.25")
    assert line_total(items[0]) == Decimal("0.13")
