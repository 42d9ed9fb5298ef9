"""Derived invoice totals.

Every monetary value is a ``Decimal`` quantized to cents with
``ROUND_HALF_UP``. Totals are always rebuilt from the full item list, so
calling :func:`recompute` repeatedly with the same inputs gives the same
result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "subtotal": self.subtotal,
            "tax_amount": self.tax_amount,
            "total": self.total,
        }


def to_decimal(value: Any, *, field: str = "value") -> Decimal:
    """Parse ``value`` as a Decimal, treating blanks and garbage as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        logger.warning("Ignoring boolean %s=%r, using 0", field, value)
        return ZERO
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            logger.warning("Could not parse %s=%r, using 0", field, value)
            return ZERO
    if not result.is_finite():
        logger.warning("Non-finite %s=%r, using 0", field, value)
        return ZERO
    return result


def money2(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _item_field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def item_quantity(item: Any) -> int:
    raw = _item_field(item, "quantity")
    quantity = to_decimal(raw, field="quantity")
    if quantity < 1:
        return 1
    return int(quantity)


def line_amount(item: Any) -> Decimal:
    """Unit amount times quantity for one line item, unrounded."""
    amount = to_decimal(_item_field(item, "amount"), field="amount")
    if amount < 0:
        amount = ZERO
    return amount * item_quantity(item)


def line_total(item: Any) -> Decimal:
    """Line amount rounded to cents for display."""
    return money2(line_amount(item))


def recompute(
    items: Iterable[Any] | None,
    tax_rate: Any = None,
    discount_amount: Any = None,
) -> Totals:
    """Return subtotal, tax and total for the given items and inputs.

    ``items`` may hold ``LineItem`` models or plain mappings. Unparseable or
    negative ``tax_rate``/``discount_amount`` values count as zero.
    """
    subtotal = money2(sum((line_amount(item) for item in items or ()), ZERO))

    rate = to_decimal(tax_rate, field="tax_rate")
    if rate < 0:
        logger.warning("Negative tax_rate %s clamped to 0", rate)
        rate = ZERO
    discount = to_decimal(discount_amount, field="discount_amount")
    if discount < 0:
        logger.warning("Negative discount_amount %s clamped to 0", discount)
        discount = ZERO

    tax_amount = money2(subtotal * rate / HUNDRED)
    total = money2(max(ZERO, subtotal + tax_amount - discount))
    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=total)


def format_amount(value: Any) -> str:
    """``1234.5`` -> ``"1,234.50"``."""
    return f"{money2(value):,.2f}"


def format_rate(value: Any) -> str:
    """Percentages without trailing zeros: ``8.50`` -> ``"8.5"``."""
    rate = to_decimal(value)
    if rate == rate.to_integral_value():
        return str(rate.quantize(Decimal("1")))
    return format(rate.normalize(), "f")
