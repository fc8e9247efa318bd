"""
Tests for the slot search engine.
"""

import pendulum

from slotsearch.domain.attendance import AttendanceWindowIndex
from slotsearch.domain.bookings import BookingConflictIndex
from slotsearch.domain.hours import TimeWindowResolver
from slotsearch.domain.models import (
    AttendanceRecord,
    BookedService,
    Booking,
    BusinessHours,
    Employee,
    Owner,
    SearchReason,
    ServiceUnit,
)
from slotsearch.domain.ordering import RequestOrder
from slotsearch.domain.providers import ProviderQualifier
from slotsearch.domain.slot_search import SlotSearchEngine, normalize_granularity

TZ = "Asia/Manila"
MONDAY = pendulum.date(2025, 3, 10)
MONDAY_DOW = 1
# a week before the searched day, so attendance and cutoffs do not apply
EARLIER = pendulum.datetime(2025, 3, 3, 8, 0, tz=TZ)

HAIR_HOURS = [BusinessHours(MONDAY_DOW, "hair", "09:00", "17:00")]


def _at(clock: str):
    return pendulum.parse(f"2025-03-10 {clock}", tz=TZ)


def _hair(duration: int = 30, service_id: int = 1) -> ServiceUnit:
    return ServiceUnit(service_id=service_id, category="hair", duration_minutes=duration)


def _engine(
    hours=HAIR_HOURS,
    employees=(Employee(id=1, name="E1"),),
    owners=(),
    bookings=(),
    attendance=(),
    now=EARLIER,
    **kwargs,
) -> SlotSearchEngine:
    return SlotSearchEngine(
        resolver=TimeWindowResolver(hours, MONDAY, TZ),
        qualifier=ProviderQualifier(employees, owners),
        attendance=AttendanceWindowIndex.from_records(attendance),
        conflicts=BookingConflictIndex(bookings),
        now=now,
        **kwargs,
    )


def _starts(slots):
    return [s.start_time.format("HH:mm") for s in slots]


def _booking(start: str, end: str, *services) -> Booking:
    return Booking(
        id=100,
        status="CONFIRMED",
        scheduled_at=_at(start),
        estimated_end=_at(end),
        services=list(services),
    )


class TestSlotSearchScenarios:
    """End-to-end scenarios on a single day."""

    def test_single_service_on_future_day(self):
        """09:00 - 17:00 with one 30 minute service yields 16 half-hour slots."""
        slots = _engine().search([_hair()])

        assert len(slots) == 16
        assert _starts(slots)[0] == "09:00"
        assert _starts(slots)[-1] == "16:30"
        assert all(s.end_time == s.start_time.add(minutes=30) for s in slots)
        assert all(s.available for s in slots)

    def test_two_services_one_employee(self):
        """Back-to-back services need 60 minutes before closing, so 16:30 is out."""
        slots = _engine().search([_hair(service_id=1), _hair(service_id=2)])

        assert _starts(slots)[0] == "09:00"
        assert _starts(slots)[-1] == "16:00"
        assert "16:30" not in _starts(slots)
        assert len(slots) == 15
        assert all(s.duration_minutes() == 60 for s in slots)

    def test_booking_blocks_only_overlapping_slots(self):
        bookings = [_booking("10:00", "10:30", BookedService(service_id=1, served_by_id=1))]

        starts = _starts(_engine(bookings=bookings).search([_hair()]))

        assert "09:30" in starts
        assert "10:00" not in starts
        assert "10:30" in starts

    def test_cancelled_booking_frees_the_slot(self):
        booking = _booking("10:00", "10:30", BookedService(service_id=1, served_by_id=1))
        booking.status = "CANCELLED"

        assert "10:00" in _starts(_engine(bookings=[booking]).search([_hair()]))


class TestSlotSearchCapacity:
    """Tests for provider counting inside a slot."""

    def test_counts_reflect_free_providers(self):
        bookings = [_booking("10:00", "10:30", BookedService(service_id=1, served_by_id=1))]
        engine = _engine(
            employees=(Employee(id=1), Employee(id=2)),
            owners=(Owner(id=9),),
            bookings=bookings,
        )

        by_start = {s.start_time.format("HH:mm"): s for s in engine.search([_hair()])}

        assert by_start["09:30"].available_employee_count == 2
        assert by_start["10:00"].available_employee_count == 1
        assert by_start["10:00"].available_owner_count == 1

    def test_owner_can_take_a_slot_when_employees_are_busy(self):
        bookings = [_booking("10:00", "10:30", BookedService(service_id=1, served_by_id=1))]
        engine = _engine(owners=(Owner(id=9),), bookings=bookings)

        slot = next(s for s in engine.search([_hair()]) if s.start_time == _at("10:00"))

        assert slot.available_employee_count == 0
        assert slot.available_owner_count == 1

    def test_unassigned_booking_consumes_capacity(self):
        """A line nobody has been assigned to still needs a provider."""
        bookings = [_booking("10:00", "10:30", BookedService(service_id=1, category="hair"))]

        starts = _starts(_engine(bookings=bookings).search([_hair()]))

        assert "10:00" not in starts
        assert "10:30" in starts

    def test_unassigned_load_takes_employees_before_owners(self):
        bookings = [_booking("10:00", "10:30", BookedService(service_id=1, category="hair"))]
        engine = _engine(owners=(Owner(id=9),), bookings=bookings)

        slot = next(s for s in engine.search([_hair()]) if s.start_time == _at("10:00"))

        assert slot.available_employee_count == 0
        assert slot.available_owner_count == 1

    def test_unassigned_line_of_other_category_is_ignored(self):
        bookings = [_booking("10:00", "10:30", BookedService(service_id=7, category="nails"))]

        assert "10:00" in _starts(_engine(bookings=bookings).search([_hair()]))

    def test_no_qualified_provider_means_no_slots(self):
        engine = _engine(employees=(Employee(id=1, specialties=("nails",)),))

        result = engine.run([_hair()])

        assert result.slots == []
        assert result.reason == SearchReason.NO_FEASIBLE_SLOT


class TestSlotSearchToday:
    """Behaviour when the searched day is the current day."""

    def test_past_and_current_starts_are_skipped(self):
        slots = _engine(
            now=_at("11:00"),
            attendance=[AttendanceRecord(1, "PRESENT", _at("08:00"))],
        ).search([_hair()])

        assert _starts(slots)[0] == "11:30"
        assert all(s.start_time > _at("11:00") for s in slots)

    def test_lead_time_pushes_first_slot(self):
        slots = _engine(
            now=_at("11:10"),
            attendance=[AttendanceRecord(1, "PRESENT", _at("08:00"))],
            min_lead_minutes=60,
        ).search([_hair()])

        assert _starts(slots)[0] == "12:30"

    def test_employees_must_be_clocked_in(self):
        attendance = [AttendanceRecord(1, "PRESENT", _at("08:00"), _at("12:00"))]

        slots = _engine(now=_at("08:30"), attendance=attendance).search([_hair()])

        assert _starts(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    def test_more_attendance_never_removes_slots(self):
        employees = (Employee(id=1), Employee(id=2))
        partial = [AttendanceRecord(1, "PRESENT", _at("08:00"), _at("12:00"))]
        fuller = partial + [AttendanceRecord(2, "LATE", _at("11:00"))]

        before = set(_starts(_engine(employees=employees, now=_at("08:30"), attendance=partial).search([_hair()])))
        after = set(_starts(_engine(employees=employees, now=_at("08:30"), attendance=fuller).search([_hair()])))

        assert before <= after
        assert "15:00" in after

    def test_attendance_ignored_on_other_days(self):
        """Nobody clocked in, but the day is in the future."""
        slots = _engine(attendance=[]).search([_hair()])

        assert len(slots) == 16

    def test_owners_are_not_attendance_gated(self):
        engine = _engine(employees=(), owners=(Owner(id=9),), now=_at("08:30"))

        assert len(engine.search([_hair()])) == 16


class TestSlotSearchWindows:
    """Window handling and ordering."""

    def test_empty_request(self):
        result = _engine().run([])

        assert result.slots == []
        assert result.reason == SearchReason.EMPTY_REQUEST

    def test_closed_category_makes_day_infeasible(self):
        hours = HAIR_HOURS + [BusinessHours(MONDAY_DOW, "nails", "09:00", "17:00", is_closed=True)]
        units = [_hair(), ServiceUnit(service_id=2, category="nails", duration_minutes=30)]

        result = _engine(hours=hours).run(units)

        assert result.slots == []
        assert result.reason == SearchReason.INFEASIBLE_DAY

    def test_wraparound_hours(self):
        """A 22:00 - 02:00 shift never lets a service straddle midnight."""
        hours = [BusinessHours(MONDAY_DOW, "bar", "22:00", "02:00")]
        unit = ServiceUnit(service_id=1, category="bar", duration_minutes=60)

        slots = _engine(hours=hours).search([unit])

        assert _starts(slots) == ["00:00", "00:30", "01:00", "22:00", "22:30", "23:00"]

    def test_service_cannot_span_a_lunch_break(self):
        hours = [
            BusinessHours(MONDAY_DOW, "hair", "09:00", "12:00"),
            BusinessHours(MONDAY_DOW, "nails", "13:00", "15:00"),
        ]
        unit = ServiceUnit(service_id=1, category="hair", duration_minutes=60)

        slots = _engine(hours=hours).search([unit])

        assert _starts(slots)[-1] == "11:00"
        assert all(s.end_time <= _at("12:00") for s in slots)

    def test_tightest_window_is_packed_first(self):
        hours = HAIR_HOURS + [BusinessHours(MONDAY_DOW, "nails", "13:00", "15:00")]
        units = [_hair(service_id=1), ServiceUnit(service_id=2, category="nails", duration_minutes=60)]

        slots = _engine(hours=hours).search(units)

        assert _starts(slots) == ["13:00", "13:30", "14:00"]
        assert slots[0].end_time == _at("14:30")

    def test_request_order_strategy(self):
        hours = HAIR_HOURS + [BusinessHours(MONDAY_DOW, "nails", "13:00", "15:00")]
        units = [_hair(service_id=1), ServiceUnit(service_id=2, category="nails", duration_minutes=60)]

        slots = _engine(hours=hours, ordering=RequestOrder()).search(units)

        assert _starts(slots) == ["12:30", "13:00", "13:30"]

    def test_finer_granularity_and_determinism(self):
        engine = _engine(granularity_minutes=15)

        first = engine.search([_hair()])
        second = engine.search([_hair()])

        assert first == second
        assert len(first) == 31
        assert _starts(first)[1] == "09:15"

    def test_granularity_is_normalized(self):
        assert normalize_granularity(None) == 30
        assert normalize_granularity(2) == 5
        assert normalize_granularity("15") == 15
        assert normalize_granularity("abc") == 30
