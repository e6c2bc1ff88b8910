"""
Time and ISO week helpers.

Slots are stored in UTC. Weeks are ISO weeks (Monday based); the grid may
start its display on another weekday.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Tuple

import pytz

from .constants import DAYS_IN_WEEK


def ensure_utc(dt: datetime) -> datetime:
    """Return an aware UTC datetime, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day(dt: datetime) -> datetime:
    """Zero the time-of-day component, keeping the timezone."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def iso_week_of(dt: datetime) -> Tuple[int, int]:
    """Return the (ISO year, ISO week) a datetime falls in."""
    iso = ensure_utc(dt).isocalendar()
    return iso[0], iso[1]


def week_start_date(year: int, week: int) -> date:
    """Monday of the given ISO week."""
    return date.fromisocalendar(year, week, 1)


def week_bounds(year: int, week: int) -> Tuple[datetime, datetime]:
    """Half-open UTC datetime range [monday 00:00, next monday 00:00)."""
    monday = week_start_date(year, week)
    start = datetime.combine(monday, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=DAYS_IN_WEEK)


def week_days(year: int, week: int, week_start_weekday: int = 0) -> List[date]:
    """
    Dates of one display week.

    The display week starts on ``week_start_weekday`` (0=Monday .. 6=Sunday)
    at or before the ISO Monday of the requested week.
    """
    monday = week_start_date(year, week)
    offset = (monday.weekday() - week_start_weekday) % DAYS_IN_WEEK
    first = monday - timedelta(days=offset)
    return [first + timedelta(days=i) for i in range(DAYS_IN_WEEK)]


def weekday_order(week_start_weekday: int = 0) -> List[int]:
    """Weekday numbers (0=Monday) in display order."""
    return [(week_start_weekday + i) % DAYS_IN_WEEK for i in range(DAYS_IN_WEEK)]


def adjacent_week(year: int, week: int, delta_weeks: int) -> Tuple[int, int]:
    """ISO (year, week) that is ``delta_weeks`` away from the given week."""
    target = week_start_date(year, week) + timedelta(weeks=delta_weeks)
    iso = target.isocalendar()
    return iso[0], iso[1]


def utc_offset_hours(tz_name: str, on_date: date) -> float:
    """UTC offset of a named timezone on a date, in hours."""
    tz = pytz.timezone(tz_name)
    local_noon = tz.localize(datetime.combine(on_date, time(12, 0)))
    offset = local_noon.utcoffset() or timedelta(0)
    return offset.total_seconds() / 3600
