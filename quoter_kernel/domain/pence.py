"""Pence -- integer minor-unit currency arithmetic with explicit rounding.

Every monetary value in the quoter is an ``int`` number of pence. Fractional
intermediates (area rates, fractional labour hours, percentage markup) are
carried as ``Decimal`` and rounded exactly once, ROUND_HALF_UP, when they
become a money field. Floats never touch money.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MM2_PER_M2 = 1_000_000

_ONE = Decimal("1")
_HUNDRED = Decimal("100")


def round_half_up(value: Decimal) -> int:
    """Round a Decimal to whole pence, halves away from zero."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def area_m2(width_mm: int, height_mm: int) -> Decimal:
    """Exact area in square metres of a width x height rectangle in mm."""
    return Decimal(width_mm * height_mm) / Decimal(MM2_PER_M2)


def area_cost(width_mm: int, height_mm: int, cost_per_m2: int) -> int:
    """Cost of covering an area at a per-m2 rate, rounded once."""
    return round_half_up(Decimal(width_mm * height_mm * cost_per_m2) / Decimal(MM2_PER_M2))


def apply_percent(amount: int, percent: Decimal) -> int:
    """``amount * percent / 100`` rounded once."""
    return round_half_up(Decimal(amount) * percent / _HUNDRED)


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer ceiling division for non-negative numerators."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return -(-numerator // denominator)
