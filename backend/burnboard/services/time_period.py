"""
time_period.py — Calendar arithmetic for retainer pacing.

Covers:
  - Days in month / day of month (leap-year aware)
  - Ideal linear target spend for a given day of the month
  - Month boundaries for month-to-date windows
  - Trailing-window start dates (N calendar months back)

Every function is pure; "now" is always passed in by the caller.
"""

import calendar
import math
from datetime import date, datetime
from typing import Tuple, Union

DateLike = Union[date, datetime]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 → 3, -2.5 → -2)."""
    return int(math.floor(value + 0.5))


def days_in_month(d: DateLike) -> int:
    """Total calendar days in the month containing ``d`` (28/29 for February)."""
    return calendar.monthrange(d.year, d.month)[1]


def day_of_month(d: DateLike) -> int:
    """1-based day number within its month."""
    return d.day


def ideal_target_spend_to_date(retainer_cents: int, d: DateLike) -> int:
    """
    Linearly-paced spend expected by day ``d`` of the month.

        target = round(retainer_cents × day_of_month / days_in_month)

    Rounded half-up to a whole cent using integer arithmetic so large
    retainers never drift through float error.
    """
    total_days = days_in_month(d)
    current_day = day_of_month(d)
    return (2 * retainer_cents * current_day + total_days) // (2 * total_days)


def month_bounds(d: DateLike) -> Tuple[datetime, datetime]:
    """
    Half-open bounds ``[start, next_start)`` of the month containing ``d``.

    Entries starting at any time on the last calendar day fall inside.
    """
    start = datetime(d.year, d.month, 1)
    if d.month == 12:
        next_start = datetime(d.year + 1, 1, 1)
    else:
        next_start = datetime(d.year, d.month + 1, 1)
    return start, next_start


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` into the first day of that month."""
    try:
        year_str, month_str = value.split("-")
        if len(year_str) != 4 or len(month_str) != 2:
            raise ValueError
        return date(int(year_str), int(month_str), 1)
    except ValueError:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")


def subtract_months(d: datetime, months: int) -> datetime:
    """
    Same time of day, ``months`` calendar months earlier.

    The day is clamped to the length of the target month
    (31 March − 1 month → 28/29 February).
    """
    month_index = d.year * 12 + (d.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)
