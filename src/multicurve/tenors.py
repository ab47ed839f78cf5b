"""
Tenor parsing and time-based schedule generation.

Curve instruments are described directly in year fractions from the
valuation time; there are no calendars here. A tenor such as "3M" maps to
3/12 years, "1W" to 7/365 and "ON" to one day.
"""

import re
from typing import List, Tuple

from .errors import InputValidationError


# number + unit (D/W/M/Y)
TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

_SPECIAL_TENORS = {
    "ON": (1, "D"),
    "TN": (2, "D"),
}


def parse_tenor(tenor: str) -> Tuple[int, str]:
    """
    Parse a tenor string into (amount, unit).

    Args:
        tenor: Tenor string like "ON", "1D", "3M", "2Y"

    Returns:
        Tuple of (amount, unit) where unit is D/W/M/Y

    Raises:
        InputValidationError: If the tenor format is invalid
    """
    key = tenor.upper().strip()
    if key in _SPECIAL_TENORS:
        return _SPECIAL_TENORS[key]
    match = TENOR_PATTERN.match(key)
    if not match:
        raise InputValidationError(
            f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'"
        )
    return int(match.group(1)), match.group(2).upper()


def tenor_to_years(tenor: str) -> float:
    """Convert a tenor to a year fraction."""
    amount, unit = parse_tenor(tenor)

    if unit == 'D':
        return amount / 365.0
    elif unit == 'W':
        return amount * 7 / 365.0
    elif unit == 'M':
        return amount / 12.0
    return float(amount)


def payment_schedule(start: float, end: float, period: float) -> List[Tuple[float, float]]:
    """
    Generate (accrual_start, accrual_end) pairs between start and end.

    Periods are rolled backward from ``end``; a remaining fraction at the
    front becomes a short first period. Fragments shorter than a day are
    merged into the first full period.

    Args:
        start: Accrual start time
        end: Final payment time
        period: Period length in years

    Returns:
        List of (start, end) tuples, in increasing order
    """
    if end <= start:
        raise InputValidationError("Schedule end must be after start")
    if period <= 0:
        raise InputValidationError("Schedule period must be positive")

    ends = [end]
    current = end
    while current - period > start + 1.0 / 365.0:
        current = current - period
        ends.insert(0, current)

    result = []
    prev = start
    for e in ends:
        result.append((prev, e))
        prev = e
    return result


__all__ = [
    "parse_tenor",
    "tenor_to_years",
    "payment_schedule",
]
