"""Date manipulation utilities"""

import calendar
import math
from datetime import date, datetime, time, timedelta
from typing import Iterator, Tuple, Union
from zoneinfo import ZoneInfo

from billing_engine.config import settings

Instant = Union[date, datetime, int, float]


def _local_zone() -> ZoneInfo | None:
    """Configured zone, or None to mean the process timezone"""
    return ZoneInfo(settings.timezone) if settings.timezone else None


def is_epoch_millis(value) -> bool:
    """True for a usable (finite, numeric) epoch-millis timestamp"""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def to_local_date(value: Instant) -> date:
    """
    Normalize an instant to its local calendar date (local midnight).

    Accepts epoch milliseconds, naive datetimes (already local), aware
    datetimes (converted to the configured zone) and plain dates.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(_local_zone()).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=_local_zone()).date()
    raise TypeError(f"Unsupported instant type: {type(value).__name__}")


def to_local_datetime(value: Instant) -> datetime:
    """Naive local wall-clock time of an instant; plain dates map to their midnight"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(_local_zone()).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=_local_zone()).replace(tzinfo=None)
    raise TypeError(f"Unsupported instant type: {type(value).__name__}")


def first_day_on_or_after(value: Instant) -> date:
    """First calendar day whose local midnight is not before the instant"""
    moment = to_local_datetime(value)
    if moment.time() == time.min:
        return moment.date()
    return moment.date() + timedelta(days=1)


def diff_days(start: Instant, end: Instant) -> int:
    """Whole days from start to end, ignoring time of day (may be negative)"""
    return (to_local_date(end) - to_local_date(start)).days


def clamp_billing_day(day: float) -> int:
    """Round to the nearest integer (halves up) and clamp into [1, 31]"""
    if not isinstance(day, (int, float)) or not math.isfinite(day):
        return 1
    rounded = math.floor(day + 0.5)
    return max(1, min(31, rounded))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def with_day_of_month(d: date, day: int) -> date:
    """Set the day of month, rolling over into the next month when too large"""
    return date(d.year, d.month, 1) + timedelta(days=clamp_billing_day(day) - 1)


def add_months(d: date, months: int) -> date:
    """Step by whole months, clamping the day to the target month's length"""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(d.day, days_in_month(year, month)))


def months_between(start: date, end: date) -> int:
    """Calendar month difference, ignoring days"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def iter_months(start: Instant, end: Instant) -> Iterator[Tuple[int, int]]:
    """Generate (year, month) pairs from start's month to end's month (inclusive)"""
    current = to_local_date(start).replace(day=1)
    last = to_local_date(end)
    while current <= last:
        yield current.year, current.month
        current = add_months(current, 1)
