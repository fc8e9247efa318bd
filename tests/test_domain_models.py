"""
Tests for domain models.
"""

import pendulum
import pytest

from slotsearch.domain.models import (
    AttendanceWindow,
    BookingOccupancy,
    Employee,
    Owner,
    TimeRange,
    TimeSlot,
    normalize_category,
)

TZ = "Asia/Manila"


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = pendulum.parse("2025-03-10 09:00", tz=TZ)
        end = pendulum.parse("2025-03-10 17:00", tz=TZ)

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        start = pendulum.parse("2025-03-10 17:00", tz=TZ)
        end = pendulum.parse("2025-03-10 09:00", tz=TZ)

        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=start, end=end)

    def test_empty_time_range_raises_error(self):
        """A zero-length range is not a range."""
        instant = pendulum.parse("2025-03-10 09:00", tz=TZ)

        with pytest.raises(ValueError):
            TimeRange(start=instant, end=instant)

    def test_overlaps_is_half_open(self):
        """Ranges that merely touch do not overlap."""
        morning = TimeRange(
            start=pendulum.parse("2025-03-10 09:00", tz=TZ),
            end=pendulum.parse("2025-03-10 12:00", tz=TZ),
        )
        lunch = TimeRange(
            start=pendulum.parse("2025-03-10 11:00", tz=TZ),
            end=pendulum.parse("2025-03-10 13:00", tz=TZ),
        )
        afternoon = TimeRange(
            start=pendulum.parse("2025-03-10 12:00", tz=TZ),
            end=pendulum.parse("2025-03-10 17:00", tz=TZ),
        )

        assert morning.overlaps(lunch)
        assert lunch.overlaps(afternoon)
        assert not morning.overlaps(afternoon)

    def test_contains(self):
        window = TimeRange(
            start=pendulum.parse("2025-03-10 09:00", tz=TZ),
            end=pendulum.parse("2025-03-10 17:00", tz=TZ),
        )

        assert window.contains(
            pendulum.parse("2025-03-10 16:30", tz=TZ),
            pendulum.parse("2025-03-10 17:00", tz=TZ),
        )
        assert not window.contains(
            pendulum.parse("2025-03-10 16:30", tz=TZ),
            pendulum.parse("2025-03-10 17:30", tz=TZ),
        )


class TestProviders:
    """Tests for provider qualification."""

    def test_generalist_qualifies_for_everything(self):
        employee = Employee(id=1, name="Ana")

        assert employee.qualifies_for("hair")
        assert employee.qualifies_for("nails")

    def test_specialist_matches_case_insensitively(self):
        owner = Owner(id=9, name="Bea", specialties=("Hair ",))

        assert owner.qualifies_for("HAIR")
        assert not owner.qualifies_for("nails")

    def test_normalize_category(self):
        assert normalize_category(None) == "general"
        assert normalize_category("") == "general"
        assert normalize_category("  Nails ") == "nails"


class TestBookingOccupancy:
    """Tests for BookingOccupancy."""

    def test_unassigned_load_counts_matching_and_unknown_categories(self):
        occupancy = BookingOccupancy(
            booking_id=1,
            start=pendulum.parse("2025-03-10 10:00", tz=TZ),
            end=pendulum.parse("2025-03-10 11:00", tz=TZ),
            unassigned_categories=("hair", None, "nails"),
        )

        assert occupancy.unassigned_count == 3
        assert occupancy.unassigned_load("Hair") == 2
        assert occupancy.unassigned_load("nails") == 2
        assert occupancy.unassigned_load("spa") == 1


class TestAttendanceWindow:
    """Tests for AttendanceWindow."""

    def test_open_window_covers_anything_after_clock_in(self):
        window = AttendanceWindow(
            employee_id=1,
            time_in=pendulum.parse("2025-03-10 08:00", tz=TZ),
        )

        assert window.covers(
            pendulum.parse("2025-03-10 08:00", tz=TZ),
            pendulum.parse("2025-03-10 23:00", tz=TZ),
        )
        assert not window.covers(
            pendulum.parse("2025-03-10 07:30", tz=TZ),
            pendulum.parse("2025-03-10 08:30", tz=TZ),
        )

    def test_closed_window_must_outlast_segment(self):
        window = AttendanceWindow(
            employee_id=1,
            time_in=pendulum.parse("2025-03-10 08:00", tz=TZ),
            time_out=pendulum.parse("2025-03-10 12:00", tz=TZ),
        )

        assert window.covers(
            pendulum.parse("2025-03-10 11:30", tz=TZ),
            pendulum.parse("2025-03-10 12:00", tz=TZ),
        )
        assert not window.covers(
            pendulum.parse("2025-03-10 11:45", tz=TZ),
            pendulum.parse("2025-03-10 12:15", tz=TZ),
        )


class TestTimeSlot:
    """Tests for TimeSlot model."""

    def test_format_display(self):
        """Test slot display formatting."""
        slot = TimeSlot(
            start_time=pendulum.parse("2025-03-10 09:00", tz=TZ),
            end_time=pendulum.parse("2025-03-10 10:30", tz=TZ),
        )

        assert slot.duration_minutes() == 90
        assert slot.format_display() == "Monday, 2025-03-10 | 09:00 - 10:30 (90 min)"
