# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the Registrar engine.

All timestamps are stored in UTC and all Python datetimes handled by the
services are timezone-aware. SQLite returns naive values for
DateTime(timezone=True) columns, so values read back from the database go
through ensure_utc before they are compared.

Usage:
------
    from src.utils.datetime import utc_now, ensure_utc

    now = utc_now()
    is_open = ensure_utc(term.registration_start) <= now
"""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    # Already aware - convert to UTC
    return dt.astimezone(timezone.utc)


def to_utc_date(value: date | datetime) -> date:
    """Normalize a date or datetime to its calendar date in UTC.

    Datetimes are converted to UTC first, so 2025-01-06T01:00+03:00
    becomes 2025-01-05.

    Args:
        value: Date or datetime.

    Returns:
        Calendar date at midnight UTC.
    """
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def days_from_now(days: int) -> datetime:
    """Get a datetime N days from now.

    Args:
        days: Number of days to add (negative for the past).

    Returns:
        Timezone-aware UTC datetime.
    """
    return utc_now() + timedelta(days=days)


# Aliases for convenience
now = utc_now
