"""
Resolution of per-category operating hours into concrete windows for one day.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Sequence

from .calendar import at_clock, day_bounds, day_of_week, parse_clock
from .models import GENERAL_CATEGORY, BusinessHours, TimeRange, normalize_category


@dataclass(frozen=True)
class CategoryHours:
    """Resolved windows for a category plus their total length."""
    windows: List[TimeRange]
    window_minutes: int
    record: BusinessHours | None = None


class TimeWindowResolver:
    """
    Turns the weekly business-hours table into operating windows for one day.

    Lookup order for a category:
    1. The (day_of_week, category) row, compared case-insensitively
    2. The (day_of_week, "general") row
    3. Nothing: the category has zero minutes that day

    A row whose close time is earlier than its open time wraps past midnight
    and is split into two non-wrapping windows on the same calendar day.
    Results are memoized per normalized category for the life of the resolver,
    so a resolver must not outlive a single computation.
    """

    def __init__(self, business_hours: Sequence[BusinessHours], day: date, timezone: str):
        self.day = day
        self.timezone = timezone
        self._day_of_week = day_of_week(day)
        self._bounds = day_bounds(day, timezone)
        self._rows = [h for h in business_hours if h.day_of_week == self._day_of_week]
        self._cache: Dict[str, CategoryHours] = {}

    @property
    def bounds(self) -> TimeRange:
        return self._bounds

    def lookup(self, category: str) -> BusinessHours | None:
        """Return the schedule row that applies to ``category`` on this day."""
        return self.category_hours(category).record

    def resolve(self, category: str) -> List[TimeRange]:
        return self.category_hours(category).windows

    def window_minutes(self, category: str) -> int:
        return self.category_hours(category).window_minutes

    def category_hours(self, category: str) -> CategoryHours:
        key = normalize_category(category)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        record = self._find_row(key)
        if record is None:
            record = self._find_row(GENERAL_CATEGORY)

        windows = self.build_windows(record) if record is not None else []
        resolved = CategoryHours(
            windows=windows,
            window_minutes=sum(w.duration_minutes() for w in windows),
            record=record,
        )
        self._cache[key] = resolved
        return resolved

    def build_windows(self, hours: BusinessHours) -> List[TimeRange]:
        """
        Expand a single schedule row into windows on the resolver's day.

        Example:
        22:00 - 02:00 -> [22:00 - 24:00, 00:00 - 02:00]
        """
        if hours.is_closed:
            return []

        day_start, day_end = self._bounds.start, self._bounds.end

        if parse_clock(hours.open_time) == parse_clock(hours.close_time):
            return [TimeRange(start=day_start, end=day_end)]

        open_at = at_clock(self.day, hours.open_time, self.timezone)
        close_at = at_clock(self.day, hours.close_time, self.timezone)

        if open_at < close_at:
            return [TimeRange(start=open_at, end=close_at)]

        windows: List[TimeRange] = []
        if open_at < day_end:
            windows.append(TimeRange(start=open_at, end=day_end))
        if day_start < close_at:
            windows.append(TimeRange(start=day_start, end=close_at))
        return windows

    def _find_row(self, key: str) -> BusinessHours | None:
        for row in self._rows:
            if normalize_category(row.category) == key:
                return row
        return None
