"""
dates.py — Epoch-day calendar helpers.
Every day key in the engine is an integer count of days since 1970-01-01, so
streak and range arithmetic never touches wall-clock timestamps.
"""

from datetime import date, datetime, timezone
from calendar import monthrange
from zoneinfo import ZoneInfo

from lifemanager.config import APP_TIMEZONE

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()
_DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def to_epoch_day(year: int, month: int, day: int) -> int:
    return date(year, month, day).toordinal() - _EPOCH_ORDINAL


def date_to_epoch_day(d: date) -> int:
    return d.toordinal() - _EPOCH_ORDINAL


def from_epoch_day(epoch_day: int) -> date:
    return date.fromordinal(epoch_day + _EPOCH_ORDINAL)


def _zone(tz: str | None):
    name = tz or APP_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def today_epoch_day(tz: str | None = None) -> int:
    """Today's epoch day in the given zone (defaults to APP_TIMEZONE)."""
    return date_to_epoch_day(datetime.now(_zone(tz)).date())


def week_range(epoch_day: int) -> tuple[int, int]:
    """Inclusive (monday, sunday) of the ISO week containing epoch_day."""
    start = epoch_day - from_epoch_day(epoch_day).weekday()
    return start, start + 6


def split_year_month(year_month: int) -> tuple[int, int]:
    """Split a YYYYMM integer, e.g. 202610 -> (2026, 10)."""
    year, month = divmod(year_month, 100)
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid year-month: {year_month}")
    return year, month


def year_month_of(epoch_day: int) -> int:
    d = from_epoch_day(epoch_day)
    return d.year * 100 + d.month


def days_in_month(year_month: int) -> int:
    year, month = split_year_month(year_month)
    return monthrange(year, month)[1]


def month_range(year_month: int) -> tuple[int, int]:
    """Inclusive (first, last) epoch days of a YYYYMM month."""
    year, month = split_year_month(year_month)
    first = to_epoch_day(year, month, 1)
    return first, first + days_in_month(year_month) - 1


def shift_year_month(year_month: int, delta: int) -> int:
    """Move a YYYYMM value by delta months (negative goes back)."""
    year, month = split_year_month(year_month)
    index = year * 12 + (month - 1) + delta
    return (index // 12) * 100 + index % 12 + 1


def day_label(epoch_day: int) -> str:
    return _DAY_LABELS[from_epoch_day(epoch_day).weekday()]


def week_label(start: int, end: int) -> str:
    s, e = from_epoch_day(start), from_epoch_day(end)
    return f"{s.month}/{s.day} - {e.month}/{e.day}"


def month_label(year_month: int) -> str:
    year, month = split_year_month(year_month)
    return date(year, month, 1).strftime("%B %Y")


def format_epoch_day(epoch_day: int) -> str:
    return from_epoch_day(epoch_day).isoformat()


def day_range(start: int, end: int):
    """Inclusive iteration over epoch days; empty when end < start."""
    return range(start, end + 1)
