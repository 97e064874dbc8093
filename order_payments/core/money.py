"""
Exact decimal arithmetic for monetary amounts.

All amounts are Decimal values carried at minor-unit precision (cents).
Binary floats never take part in a computation: a float handed in is
converted through its shortest string form first.

Rounding policy is truncation toward zero. Whatever truncation drops from
an even split is absorbed by the last share, so shares always add back up
to the original total.
"""
from decimal import ROUND_DOWN, Decimal
from typing import List, Union

Amount = Union[Decimal, int, str, float]

MINOR_UNIT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Amount) -> Decimal:
    """
    Convert a monetary value to Decimal without binary drift.

    Example: to_decimal(0.1) == Decimal("0.1"), not 0.1000000000000000055...
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not monetary amounts")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def truncate(value: Amount, exponent: Decimal = MINOR_UNIT) -> Decimal:
    """Drop digits below ``exponent`` (toward zero, never rounds up)."""
    return to_decimal(value).quantize(exponent, rounding=ROUND_DOWN)


def divide(amount: Amount, divisor: Union[int, Decimal]) -> Decimal:
    """Divide and truncate to minor units."""
    divisor = to_decimal(divisor)
    if divisor == 0:
        raise ZeroDivisionError("Cannot divide an amount by zero")
    return truncate(to_decimal(amount) / divisor)


def percentage(amount: Amount, rate: Amount) -> Decimal:
    """
    Apply a percentage rate and truncate to minor units.

    Example: percentage("1000.00", "2.5") == Decimal("25.00")
    """
    return truncate(to_decimal(amount) * to_decimal(rate) / HUNDRED)


def split_evenly(total: Amount, count: int) -> List[Decimal]:
    """
    Split ``total`` into ``count`` shares that add up to it exactly.

    The first ``count - 1`` shares are the truncated quotient; the last is
    ``total - share * (count - 1)``.

    Example: split_evenly("1000.00", 3) == [333.33, 333.33, 333.34]
    """
    if count <= 0:
        raise ValueError(f"Share count must be positive, got {count}")

    total = to_decimal(total)
    share = divide(total, count)
    last = total - share * (count - 1)
    return [share] * (count - 1) + [last]


def to_minor_units(amount: Amount) -> int:
    """
    Express an amount as an integer number of minor units.

    Raises:
        ValueError: If the amount has digits below the minor unit
    """
    value = to_decimal(amount)
    if value != value.quantize(MINOR_UNIT):
        raise ValueError(f"Amount {value} has sub-minor-unit precision")
    return int(value.scaleb(2))
