"""Decimal rounding primitives shared by every monetary computation."""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")
YEN = Decimal("1")


def to_decimal(value: Any) -> Decimal:
    """Convert a number to Decimal without carrying binary float residue.

    ``None`` is treated as zero so legacy rows with missing fields sum cleanly.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: Any) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round4(value: Any) -> Decimal:
    """Round an exchange rate to 4 decimal places, half away from zero."""
    return to_decimal(value).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def floor_jpy(value: Any) -> Decimal:
    """Floor a converted amount to whole yen; fractional yen is never credited."""
    return to_decimal(value).quantize(YEN, rounding=ROUND_FLOOR)


def clamp_non_negative(value: Any) -> Decimal:
    return max(ZERO, to_decimal(value))


def is_close(a: Any, b: Any, tolerance: Any = CENT) -> bool:
    """Return True when two amounts differ by no more than ``tolerance``."""
    return abs(to_decimal(a) - to_decimal(b)) <= to_decimal(tolerance)
