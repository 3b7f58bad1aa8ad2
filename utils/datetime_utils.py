"""
Datetime utilities for consistent date and timezone handling.

Calendar dates are plain ``datetime.date`` values built from year/month/day
components. ``to_instant`` is the single place where a calendar date and a
wall-clock time are turned into a timezone-aware instant.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Union
from zoneinfo import ZoneInfo

from utils.validation import validate_clock_string, validate_date_string


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    normalized = iso_string.replace("Z", "+00:00")

    try:
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def to_iso_string(dt: datetime) -> str:
    """Convert datetime to ISO format string, assuming UTC when naive."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.isoformat()


def parse_local_date(value: str) -> date:
    """
    Parse a "YYYY-MM-DD" string into a calendar date.

    The string is split into components instead of going through a
    datetime constructor, so no timezone can shift the day.

    Raises:
        ValueError: If the string is not a valid calendar date
    """
    if not validate_date_string(value):
        raise ValueError(f"Invalid calendar date: {value}")
    try:
        year, month, day = (int(part) for part in value.strip().split("-"))
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Invalid calendar date: {value}") from e


def parse_clock(value: str) -> time:
    """Parse "HH:MM" into a wall-clock time."""
    if not validate_clock_string(value):
        raise ValueError(f"Invalid time of day: {value}")
    hours, minutes = (int(part) for part in value.strip().split(":"))
    return time(hours, minutes)


def to_minutes(clock: time) -> int:
    """Minutes since midnight."""
    return clock.hour * 60 + clock.minute


def from_minutes(minutes: int) -> time:
    """Inverse of ``to_minutes``."""
    return time(minutes // 60, minutes % 60)


def resolve_timezone(tz: Union[str, ZoneInfo]) -> ZoneInfo:
    if isinstance(tz, ZoneInfo):
        return tz
    return ZoneInfo(tz)


def to_instant(day: date, clock: time, tz: Union[str, ZoneInfo]) -> datetime:
    """
    Pair a calendar date with a wall-clock time in the doctor's timezone.

    Args:
        day: Local calendar date
        clock: Local wall-clock time
        tz: IANA timezone name or ZoneInfo

    Returns:
        Timezone-aware datetime
    """
    return datetime.combine(day, clock, tzinfo=resolve_timezone(tz))


def local_date_of(instant: datetime, tz: Union[str, ZoneInfo]) -> date:
    """Calendar date of an instant as seen in the given timezone."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_timezone(tz)).date()


def day_bounds(day: date, tz: Union[str, ZoneInfo]) -> tuple[datetime, datetime]:
    """Start of ``day`` and start of the following day as instants."""
    start = to_instant(day, time(0, 0), tz)
    end = to_instant(day + timedelta(days=1), time(0, 0), tz)
    return start, end


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
