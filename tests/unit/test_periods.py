"""Tests for calendar window helpers."""

from datetime import date, datetime, timezone

import pytest

from healthconsultant.common.exceptions import ValidationError
from healthconsultant.usage.periods import (
    month_bounds_utc,
    month_days,
    parse_day,
    year_month_of,
)


class TestMonthDays:
    def test_thirty_one_day_month(self):
        assert month_days("2025-05") == (date(2025, 5, 1), date(2025, 5, 31))

    def test_leap_february(self):
        assert month_days("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))

    @pytest.mark.parametrize("bad", ["2025-00", "2025-13", "25-05", "2025-5", None])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            month_days(bad)


class TestMonthBounds:
    def test_half_open_range(self):
        start, end = month_bounds_utc("2025-05")
        assert start == datetime(2025, 5, 1, tzinfo=timezone.utc)
        assert end == datetime(2025, 6, 1, tzinfo=timezone.utc)

    def test_december_rolls_year(self):
        _, end = month_bounds_utc("2025-12")
        assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestParseDay:
    def test_iso_string(self):
        assert parse_day("2025-05-03") == date(2025, 5, 3)

    def test_empty_is_none(self):
        assert parse_day(None) is None
        assert parse_day("") is None

    def test_date_passthrough(self):
        assert parse_day(date(2025, 5, 3)) == date(2025, 5, 3)

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError):
            parse_day("yesterday")


def test_year_month_of():
    assert year_month_of(date(2025, 1, 31)) == "2025-01"
