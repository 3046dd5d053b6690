"""Calendar helpers for daily rows and monthly quota windows.

All windows are UTC calendar days and months: quotas reset on the 1st
regardless of when a subscription started.
"""

import calendar
import re
from datetime import date, datetime, timezone

from healthconsultant.common.exceptions import ValidationError

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def year_month_of(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def current_year_month() -> str:
    return year_month_of(today_utc())


def month_days(year_month: str) -> tuple[date, date]:
    """First and last calendar day of a ``YYYY-MM`` month."""
    match = _YEAR_MONTH.match(year_month or "")
    if not match:
        raise ValidationError(f"Expected YYYY-MM, got {year_month!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Month out of range in {year_month!r}")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def month_bounds_utc(year_month: str) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` UTC datetimes covering the month."""
    first, last = month_days(year_month)
    start = datetime(first.year, first.month, 1, tzinfo=timezone.utc)
    if first.month == 12:
        end = datetime(first.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(first.year, first.month + 1, 1, tzinfo=timezone.utc)
    return start, end


def parse_day(value: str | date | None) -> date | None:
    """Accept ``YYYY-MM-DD`` strings (or dates) from query parameters."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Expected YYYY-MM-DD, got {value!r}") from exc
