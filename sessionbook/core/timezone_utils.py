"""
Timezone utilities for SessionBook.

Sessions are stored as absolute UTC instants; availability windows are
wall-clock times in the provider's timezone. These helpers move between
the two.
"""

from datetime import date, datetime, time, timezone

import pytz


def get_timezone(name: str | None) -> pytz.BaseTzInfo:
    """Resolve an IANA name, falling back to UTC for blank or unknown values."""
    if not name:
        return pytz.UTC
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: str | None) -> datetime:
    """Convert an instant into wall-clock time in ``tz_name``."""
    return ensure_utc(dt).astimezone(get_timezone(tz_name))


def local_to_utc(on_date: date, at_time: time, tz_name: str | None) -> datetime:
    """Interpret a wall-clock date/time in ``tz_name`` and return the UTC instant."""
    tz = get_timezone(tz_name)
    local = tz.localize(datetime.combine(on_date, at_time))
    return local.astimezone(timezone.utc)


def localize_wall_time(on_date: date, at_time: time, tz_name: str | None) -> datetime | None:
    """
    UTC instant of a wall-clock time, or None when a DST jump skips it.

    Ambiguous fall-back times resolve to the standard-time reading, the
    same instant ``to_local`` maps back to the requested wall clock.
    """
    tz = get_timezone(tz_name)
    naive = datetime.combine(on_date, at_time)
    try:
        local = tz.localize(naive, is_dst=None)
    except pytz.NonExistentTimeError:
        return None
    except pytz.AmbiguousTimeError:
        local = tz.localize(naive, is_dst=False)
    return local.astimezone(timezone.utc)


def day_of_week(local_dt: datetime | date) -> int:
    """Day index with 0 = Sunday through 6 = Saturday."""
    return (local_dt.weekday() + 1) % 7


def minutes_of_day(value: time | datetime) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)
