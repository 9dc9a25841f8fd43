"""Decimal helpers for money and stock quantities.

Synopsis:
Coerce incoming numbers into Decimal and round them the same way everywhere.

Glossary:
- Money: Prices and totals, two decimal places, half-up rounding to the cent.
- Quantity: Stock and order quantities, fractional units allowed (kg), three places.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")
ZERO = Decimal("0")


# --- Decimal normalize ---
# Purpose: Normalize raw input into Decimal without binary float drift.
def to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise InvalidOperation(f"Not a number: {value!r}")
    if isinstance(value, str) and not value.strip():
        raise InvalidOperation("Empty numeric value")
    result = Decimal(str(value).strip())
    if not result.is_finite():
        raise InvalidOperation(f"Not a finite number: {value!r}")
    return result


def quantize_money(value: object) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_quantity(value: object) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def line_total(quantity: Decimal, price: Decimal) -> Decimal:
    return quantize_money(to_decimal(quantity) * to_decimal(price))


def format_quantity(value: object) -> str:
    """Render 2.000 as '2' and 1.500 as '1.5' for customer-facing text."""
    try:
        normalized = to_decimal(value).normalize()
    except InvalidOperation:
        return str(value)
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def as_json_number(value: Decimal | None) -> float | None:
    if value is None:
        return None
    return float(value)
