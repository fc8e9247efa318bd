"""
Tests for the category availability summary.
"""

import pendulum

from slotsearch.domain.attendance import AttendanceWindowIndex
from slotsearch.domain.hours import TimeWindowResolver
from slotsearch.domain.models import (
    AttendanceRecord,
    AvailabilitySource,
    BusinessHours,
    Employee,
    Owner,
)
from slotsearch.domain.providers import ProviderQualifier
from slotsearch.domain.summary import CategoryAvailabilitySummary

TZ = "Asia/Manila"
MONDAY = pendulum.date(2025, 3, 10)

HOURS = [
    BusinessHours(1, "general", "09:00", "17:00"),
    BusinessHours(1, "nails", "09:00", "17:00", is_closed=True),
]
EMPLOYEES = (Employee(id=1), Employee(id=2, specialties=("hair",)))


def _at(clock: str):
    return pendulum.parse(f"2025-03-10 {clock}", tz=TZ)


def _summary(now, attendance=(), employees=EMPLOYEES, owners=(Owner(id=9),)):
    return CategoryAvailabilitySummary(
        resolver=TimeWindowResolver(HOURS, MONDAY, TZ),
        qualifier=ProviderQualifier(employees, owners),
        attendance=AttendanceWindowIndex.from_records(attendance),
        now=now,
    )


class TestCategoryAvailabilitySummary:
    """Tests for CategoryAvailabilitySummary."""

    def test_future_day_uses_roster(self):
        summary = _summary(now=pendulum.datetime(2025, 3, 1, tz=TZ)).summarize("hair")

        assert summary.has_hours
        assert not summary.hours_already_passed
        assert summary.qualified_available_provider_count == 2
        assert summary.owner_available
        assert summary.source == AvailabilitySource.ROSTER
        assert summary.business_hours.category == "general"

    def test_today_counts_clocked_in_employees(self):
        attendance = [AttendanceRecord(2, "PRESENT", _at("08:00"))]

        summary = _summary(now=_at("10:00"), attendance=attendance).summarize("hair")

        assert summary.qualified_available_provider_count == 1
        assert summary.source == AvailabilitySource.ATTENDANCE

    def test_attendance_can_be_ignored(self):
        summary = _summary(now=_at("10:00")).summarize("hair", enforce_attendance=False)

        assert summary.qualified_available_provider_count == 2
        assert summary.source == AvailabilitySource.ROSTER

    def test_hours_already_passed_today(self):
        summary = _summary(now=_at("17:30")).summarize()

        assert summary.has_hours
        assert summary.hours_already_passed

    def test_before_opening_counts_as_passed(self):
        """Any time outside the open windows reads as passed, before opening included."""
        summary = _summary(now=_at("08:00")).summarize()

        assert summary.hours_already_passed

    def test_closed_category(self):
        summary = _summary(now=_at("10:00")).summarize("nails")

        assert not summary.has_hours
        assert not summary.hours_already_passed
        assert summary.business_hours.is_closed

    def test_no_qualified_employees_falls_back_to_roster(self):
        summary = _summary(
            now=_at("10:00"),
            employees=(Employee(id=2, specialties=("hair",)),),
            owners=(),
        ).summarize("spa")

        assert summary.qualified_available_provider_count == 0
        assert summary.source == AvailabilitySource.ROSTER
        assert not summary.owner_available
