"""Time utilities: periods, calendar boundaries and timestamp codecs.

All timestamps inside the application are timezone-aware.  Naive input
is treated as UTC.  Calendar boundaries (start of day, week, month) are
computed in the configured local timezone and compared in UTC.
"""

from __future__ import annotations

import calendar
import datetime as _dt
from enum import Enum

# Fixed-width so that lexical order of the stored strings equals time order.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class Period(str, Enum):
    """Named lookback window for time-series queries."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    YEAR = "year"

    @classmethod
    def parse(cls, value: str | Period | None, default: Period) -> Period:
        """Return the period named *value*, or *default* when unknown."""
        if isinstance(value, Period):
            return value
        try:
            return cls(value)
        except ValueError:
            return default


def utc_now() -> _dt.datetime:
    """Current time as an aware UTC datetime."""
    return _dt.datetime.now(_dt.timezone.utc)


def ensure_utc(value: _dt.datetime) -> _dt.datetime:
    """Convert *value* to aware UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=_dt.timezone.utc)
    return value.astimezone(_dt.timezone.utc)


def parse_timestamp(value: str | _dt.datetime) -> _dt.datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into aware UTC."""
    if isinstance(value, _dt.datetime):
        return ensure_utc(value)
    return ensure_utc(_dt.datetime.fromisoformat(value.strip()))


def format_timestamp(value: _dt.datetime) -> str:
    """Render *value* in the fixed-width storage format."""
    return ensure_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_date(value: str | _dt.date) -> _dt.date:
    """Parse ``YYYY-MM-DD`` or a full ISO timestamp into a date.

    For timestamps the date part as written is kept (no zone shift).
    """
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    text = value.strip()
    if len(text) > 10:
        return _dt.datetime.fromisoformat(text).date()
    return _dt.date.fromisoformat(text)


def start_of_day(value: _dt.datetime) -> _dt.datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def shift_months(value: _dt.datetime, months: int) -> _dt.datetime:
    """Move *value* by a number of calendar months.

    The day is clamped to the last day of the target month
    (31 March minus one month is 28/29 February).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_start(period: Period, now: _dt.datetime) -> _dt.datetime:
    """Inclusive lower bound of *period* relative to *now*.

    ``day`` starts at local midnight of *now*; ``week`` is a rolling
    seven days; month-based periods step back whole calendar months.
    The result keeps the timezone of *now*.
    """
    if period is Period.DAY:
        return start_of_day(now)
    if period is Period.WEEK:
        return now - _dt.timedelta(days=7)
    if period is Period.MONTH:
        return shift_months(now, -1)
    if period is Period.THREE_MONTHS:
        return shift_months(now, -3)
    if period is Period.SIX_MONTHS:
        return shift_months(now, -6)
    return shift_months(now, -12)


def week_start_sunday(d: _dt.date) -> _dt.date:
    """Sunday on or before *d* (weeks start on Sunday)."""
    return d - _dt.timedelta(days=(d.weekday() + 1) % 7)


def iso_week_start(d: _dt.date) -> _dt.date:
    """Monday of the ISO week containing *d*."""
    return d - _dt.timedelta(days=d.weekday())


def month_start(d: _dt.date) -> _dt.date:
    return d.replace(day=1)
