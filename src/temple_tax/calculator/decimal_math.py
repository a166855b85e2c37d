"""
Decimal Math Utilities for Tax Calculations.

Provides precise decimal arithmetic to avoid floating point errors in
liability totals. Amounts arriving from JSON bodies or query strings may be
int, float or str; everything is converted to Decimal before arithmetic and
rounded to paise only at the boundaries.

Why Decimal?
- Float: 0.1 + 0.2 = 0.30000000000000004
- Decimal: 0.1 + 0.2 = 0.3
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional, Union
import logging

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0")
# Largest amount a Numeric(12, 2) column holds
MAX_MONEY = Decimal("9999999999.99")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: Value to convert (int, float, str, or Decimal)

    Returns:
        Decimal representation

    Raises:
        InvalidOperation: If the value is not numeric or not finite

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(100.50)
        Decimal('100.5')
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidOperation(f"Not a numeric amount: {value!r}")
    elif isinstance(value, float):
        # Convert float to string first to preserve representation
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = Decimal(value.strip())
    else:
        result = Decimal(value)

    if not result.is_finite():
        raise InvalidOperation(f"Not a finite amount: {value!r}")
    return result


def parse_amount(value: Optional[Numeric], default: Numeric = ZERO) -> Decimal:
    """
    Lenient conversion for optional request fields.

    Returns ``default`` for None and blank strings; anything else must be a
    valid number.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return to_decimal(default)
    return to_decimal(value)


def money(value: Numeric) -> Decimal:
    """
    Convert value to money (rounded to 2 places, half-up).

    Examples:
        >>> money(100.999)
        Decimal('101.00')
        >>> money(100.994)
        Decimal('100.99')
    """
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Numeric]) -> Decimal:
    """Sum values and round the total to money precision."""
    total = ZERO
    for v in values:
        total += to_decimal(v)
    return money(total)


def subtract_floor_zero(a: Numeric, b: Numeric) -> Decimal:
    """
    Subtract b from a, never going below zero.

    Examples:
        >>> subtract_floor_zero(100, 30)
        Decimal('70.00')
        >>> subtract_floor_zero(100, 130)
        Decimal('0.00')
    """
    return money(max(ZERO, to_decimal(a) - to_decimal(b)))


def to_float(value: Decimal) -> float:
    """
    Convert Decimal to float for JSON serialization.

    Only use at output boundaries, never in calculations.
    """
    return float(money(value))
