# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for calendar expansion."""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.domains.calendar.expander import (
    expand_weekly_dates,
    first_occurrence,
    week_bounds,
    week_number,
)
from src.models.common import Weekday

TERM_START = date(2025, 1, 6)  # Monday
TERM_END = date(2025, 4, 28)  # Monday, 16 weeks later


class TestWeekday:
    """Tests for weekday numbering and parsing."""

    def test_numbering_matches_python_weekday(self):
        """Test 2=Monday ... 8=Sunday maps onto date.weekday()."""
        assert Weekday.MONDAY.python_weekday == 0
        assert Weekday.SUNDAY.python_weekday == 6

    def test_from_date(self):
        """Test deriving the weekday of a calendar date."""
        assert Weekday.from_date(date(2025, 1, 6)) == Weekday.MONDAY
        assert Weekday.from_date(date(2025, 1, 12)) == Weekday.SUNDAY

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (2, Weekday.MONDAY),
            ("8", Weekday.SUNDAY),
            ("friday", Weekday.FRIDAY),
            ("Wed", Weekday.WEDNESDAY),
            (Weekday.SATURDAY, Weekday.SATURDAY),
        ],
    )
    def test_parse_accepts_loose_forms(self, raw, expected):
        """Test ints, numeric strings, names and abbreviations parse."""
        assert Weekday.parse(raw) == expected

    @pytest.mark.parametrize("raw", [1, 9, "funday", True, None, 2.0])
    def test_parse_rejects_invalid(self, raw):
        """Test values outside 2..8 and unknown names are rejected."""
        with pytest.raises(ValueError):
            Weekday.parse(raw)


class TestExpandWeeklyDates:
    """Tests for weekly recurrence expansion."""

    def test_mondays_over_a_semester(self):
        """Test a Monday slot expands to every Monday of the term."""
        dates = expand_weekly_dates(TERM_START, TERM_END, Weekday.MONDAY)

        assert len(dates) == 17
        assert dates[0] == TERM_START
        assert dates[-1] == TERM_END

    def test_dates_are_ordered_and_evenly_spaced(self):
        """Test dates fall on the weekday and are 7 days apart."""
        dates = expand_weekly_dates(TERM_START, TERM_END, Weekday.THURSDAY)

        assert all(d.weekday() == Weekday.THURSDAY.python_weekday for d in dates)
        assert all(b - a == timedelta(days=7) for a, b in zip(dates, dates[1:]))
        assert len(set(dates)) == len(dates)

    def test_first_date_is_first_matching_day_after_start(self):
        """Test a Tuesday slot starts on the first Tuesday of the range."""
        dates = expand_weekly_dates(TERM_START, TERM_END, Weekday.TUESDAY)

        assert dates[0] == date(2025, 1, 7)
        assert dates[-1] == date(2025, 4, 22)
        assert len(dates) == 16

    def test_accepts_raw_weekday_values(self):
        """Test the weekday argument goes through Weekday.parse."""
        assert expand_weekly_dates(TERM_START, TERM_END, 2) == expand_weekly_dates(
            TERM_START, TERM_END, "monday"
        )

    def test_interval_weeks(self):
        """Test a biweekly recurrence keeps every other date."""
        dates = expand_weekly_dates(TERM_START, TERM_END, Weekday.MONDAY, interval_weeks=2)

        assert len(dates) == 9
        assert all(b - a == timedelta(days=14) for a, b in zip(dates, dates[1:]))

    @pytest.mark.parametrize("interval", [0, -1])
    def test_interval_below_one_raises(self, interval):
        """Test a non-positive interval is rejected."""
        with pytest.raises(ValueError):
            expand_weekly_dates(TERM_START, TERM_END, Weekday.MONDAY, interval_weeks=interval)

    def test_empty_when_start_after_end(self):
        """Test an inverted range yields no dates."""
        assert expand_weekly_dates(TERM_END, TERM_START, Weekday.MONDAY) == []

    def test_single_day_range(self):
        """Test a one-day range matches only on its own weekday."""
        assert expand_weekly_dates(TERM_START, TERM_START, Weekday.MONDAY) == [TERM_START]
        assert expand_weekly_dates(TERM_START, TERM_START, Weekday.TUESDAY) == []

    def test_datetimes_are_normalized_to_utc_dates(self):
        """Test an aware datetime is converted to its UTC calendar date."""
        start = datetime(2025, 1, 6, 1, 0, tzinfo=timezone(timedelta(hours=3)))

        dates = expand_weekly_dates(start, date(2025, 1, 12), Weekday.SUNDAY)

        assert dates == [date(2025, 1, 5), date(2025, 1, 12)]


class TestWeekBoundaries:
    """Tests for Monday-start week grouping."""

    def test_first_occurrence(self):
        """Test the first Monday on or after a Wednesday."""
        assert first_occurrence(date(2025, 1, 8), Weekday.MONDAY) == date(2025, 1, 13)
        assert first_occurrence(date(2025, 1, 6), Weekday.MONDAY) == date(2025, 1, 6)

    def test_week_bounds(self):
        """Test weeks run Monday to Sunday."""
        assert week_bounds(date(2025, 1, 9)) == (date(2025, 1, 6), date(2025, 1, 12))
        assert week_bounds(date(2025, 1, 12)) == (date(2025, 1, 6), date(2025, 1, 12))
        assert week_bounds(date(2025, 1, 13)) == (date(2025, 1, 13), date(2025, 1, 19))

    def test_week_number(self):
        """Test week indices count from the term's first week."""
        assert week_number(TERM_START, date(2025, 1, 12)) == 1
        assert week_number(TERM_START, date(2025, 1, 13)) == 2
        assert week_number(TERM_START, TERM_END) == 17

    def test_week_number_for_mid_week_start(self):
        """Test a term starting mid-week counts its partial first week as week 1."""
        assert week_number(date(2025, 1, 8), date(2025, 1, 6)) == 1
        assert week_number(date(2025, 1, 8), date(2025, 1, 13)) == 2
