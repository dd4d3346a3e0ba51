"""Display rounding for derived numbers.

Sums stay exact ``Decimal`` values; rounding happens only here, half-up, so a
progress of 12.5% shows as 13 rather than banker's-rounded 12.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_HUNDRED = Decimal(100)

Number = Decimal | int | float | str | None


def to_decimal(value: Number) -> Decimal:
    """Coerce an aggregate result (``None``, int, float, str, Decimal) to Decimal."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number, places: int = 0) -> Decimal:
    """Round to ``places`` decimals, halves away from zero."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def progress_percentage(raised: Number, goal: Number, places: int = 0) -> int | float:
    """Raised amount as a percentage of the goal; 0 when the goal is 0 or missing.

    Integer for ``places=0`` (campaign cards), float otherwise (performance tables).
    Values above 100 are kept.
    """
    goal_value = to_decimal(goal)
    if goal_value <= 0:
        return 0
    pct = round_half_up(to_decimal(raised) / goal_value * _HUNDRED, places)
    return int(pct) if places == 0 else float(pct)


def is_goal_reached(raised: Number, goal: Number) -> bool:
    return to_decimal(raised) >= to_decimal(goal)


def average(value: Number, places: int = 2) -> float:
    """Round an aggregate average for display; empty aggregates give 0."""
    if value is None:
        return 0
    return float(round_half_up(value, places))
