"""
Business-local calendar helpers.

Every "day", "today" and "now" question the engine asks is answered in the
business's own timezone. These helpers keep that conversion in one place so
no caller falls back to the host machine's zone or naive UTC.
"""

from datetime import date, datetime
from typing import Tuple

import pendulum
from pendulum import Date, DateTime

from .models import TimeRange


def parse_clock(value: str) -> Tuple[int, int]:
    """
    Parse an "HH:MM" (or "HH:MM:SS") string into (hour, minute).

    Raises:
        ValueError: If the value is not a valid wall-clock time
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: '{value}'")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid time of day: '{value}'") from exc
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: '{value}'")
    return hour, minute


def localize(value: datetime, tz: str) -> DateTime:
    """Express ``value`` in ``tz``; naive datetimes are read as wall-clock time there."""
    return pendulum.instance(value, tz=tz).in_timezone(tz)


def to_local_date(value: date | DateTime, tz: str) -> Date:
    """Return the business-local calendar date for a date or an instant."""
    if isinstance(value, datetime):
        return localize(value, tz).date()
    return pendulum.date(value.year, value.month, value.day)


def day_bounds(day: date, tz: str) -> TimeRange:
    """Return [00:00, next day's 00:00) for ``day`` in ``tz``."""
    start = pendulum.datetime(day.year, day.month, day.day, tz=tz)
    return TimeRange(start=start, end=start.add(days=1))


def at_clock(day: date, clock: str, tz: str) -> DateTime:
    """Combine a calendar day and an "HH:MM" value into a local DateTime."""
    hour, minute = parse_clock(clock)
    return pendulum.datetime(day.year, day.month, day.day, hour, minute, tz=tz)


def day_of_week(day: date) -> int:
    """Day of week with 0=Sunday ... 6=Saturday, as business hours are stored."""
    return day.isoweekday() % 7


def local_now(tz: str, now: DateTime | None = None) -> DateTime:
    """Current instant expressed in ``tz``; ``now`` overrides the wall clock."""
    if now is None:
        return pendulum.now(tz)
    return localize(now, tz)


def is_today(day: date, tz: str, now: DateTime | None = None) -> bool:
    return to_local_date(local_now(tz, now), tz) == to_local_date(day, tz)


def days_between(start_day: date, end_day: date) -> int:
    """Whole calendar days from ``start_day`` to ``end_day`` (negative if earlier)."""
    return (date(end_day.year, end_day.month, end_day.day)
            - date(start_day.year, start_day.month, start_day.day)).days
