"""
Monetary rounding helpers.

All amounts are Decimal.  Currency amounts that leave the engine (the sold
price after discount) are rounded to cents with ROUND_HALF_UP, which for
Decimal rounds halves away from zero: 2.345 -> 2.35 and -2.345 -> -2.35.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | str | float | None) -> Decimal:
    """Coerce a stored or parsed value to Decimal without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def apply_discount(amount: Decimal, discount_pct: Decimal) -> Decimal:
    """Price after a percentage discount, rounded to cents."""
    return round2(amount * (HUNDRED - discount_pct) / HUNDRED)
