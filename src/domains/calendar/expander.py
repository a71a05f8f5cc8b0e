# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Calendar expansion of weekly recurring schedule slots.

Converts a (term date range, weekday, recurrence) tuple into the concrete
calendar dates a session occurs on, and derives Monday-start/Sunday-end
week boundaries for grouping occurrences into "week N".

Weekday numbering follows src.models.common.Weekday: 2=Monday ... 8=Sunday.
All functions are pure.

Example:
    >>> from datetime import date
    >>> from src.models.common import Weekday
    >>> dates = expand_weekly_dates(date(2025, 1, 6), date(2025, 4, 28), Weekday.MONDAY)
    >>> len(dates), dates[0], dates[-1]
    (17, datetime.date(2025, 1, 6), datetime.date(2025, 4, 28))
"""

from datetime import date, datetime, timedelta

from src.models.common import Weekday
from src.utils.datetime import to_utc_date

DAYS_PER_WEEK = 7


def first_occurrence(start: date | datetime, weekday: Weekday) -> date:
    """Get the first date on or after start that falls on weekday.

    Args:
        start: Range start (datetimes are normalized to the UTC date).
        weekday: Target weekday.

    Returns:
        The first matching date.
    """
    start_day = to_utc_date(start)
    offset = (weekday.python_weekday - start_day.weekday()) % DAYS_PER_WEEK
    return start_day + timedelta(days=offset)


def expand_weekly_dates(
    start: date | datetime,
    end: date | datetime,
    weekday: Weekday | int | str,
    interval_weeks: int = 1,
) -> list[date]:
    """Expand a weekly recurrence into concrete dates within [start, end].

    Args:
        start: Inclusive range start.
        end: Inclusive range end.
        weekday: Weekday of the session (anything Weekday.parse accepts).
        interval_weeks: Recurrence interval in weeks.

    Returns:
        Ordered, duplicate-free dates, all falling on weekday and spaced
        exactly 7 * interval_weeks days apart. Empty if start > end.

    Raises:
        ValueError: If interval_weeks < 1 or weekday is invalid.
    """
    if interval_weeks < 1:
        raise ValueError(f"interval_weeks must be >= 1, got {interval_weeks}")

    day = Weekday.parse(weekday)
    last = to_utc_date(end)
    step = timedelta(days=DAYS_PER_WEEK * interval_weeks)

    dates: list[date] = []
    current = first_occurrence(start, day)
    while current <= last:
        dates.append(current)
        current += step
    return dates


def week_bounds(day: date | datetime) -> tuple[date, date]:
    """Get the Monday-start/Sunday-end boundary of the week containing day.

    Args:
        day: Any date in the week.

    Returns:
        (monday, sunday) tuple.
    """
    current = to_utc_date(day)
    monday = current - timedelta(days=current.weekday())
    return monday, monday + timedelta(days=DAYS_PER_WEEK - 1)


def week_number(term_start: date | datetime, day: date | datetime) -> int:
    """Get the 1-based week index of day, counted from the week of term_start.

    Days before the term's first week yield values below 1.
    """
    first_monday, _ = week_bounds(term_start)
    monday, _ = week_bounds(day)
    return (monday - first_monday).days // DAYS_PER_WEEK + 1
