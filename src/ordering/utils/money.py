"""Monetary helpers.

Amounts are computed with ``Decimal`` and stored on aggregates as floats
rounded to cents. On the wire they always travel as decimal strings.
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert a stored amount (float, int, str or Decimal) to a cent-quantized Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_float(value: Decimal) -> float:
    return float(to_decimal(value))


def format_amount(value) -> str:
    """Serialize an amount as a decimal string with two places, e.g. ``"189.00"``."""
    return str(to_decimal(value))
