"""
Occupancy derived from existing bookings.
"""

from typing import Iterable, List

from pendulum import DateTime

from .models import Booking, BookingOccupancy, TimeRange, normalize_category


CANCELLED_STATUS = "CANCELLED"


def _is_cancelled(status: str | None) -> bool:
    return (status or "").upper() == CANCELLED_STATUS


def occupancy_for(booking: Booking) -> BookingOccupancy | None:
    """
    Derive the occupancy of a single booking.

    Returns None for cancelled bookings and bookings missing a scheduled
    start or an estimated end.
    """
    if _is_cancelled(booking.status):
        return None
    if booking.scheduled_at is None or booking.estimated_end is None:
        return None
    if booking.estimated_end <= booking.scheduled_at:
        return None

    employees: set[int] = set()
    owners: set[int] = set()
    unassigned: list[str | None] = []

    for item in booking.services:
        if _is_cancelled(item.status):
            continue
        if item.served_by_id is None and item.served_by_owner_id is None:
            unassigned.append(normalize_category(item.category) if item.category else None)
            continue
        if item.served_by_id is not None:
            employees.add(item.served_by_id)
        if item.served_by_owner_id is not None:
            owners.add(item.served_by_owner_id)

    return BookingOccupancy(
        booking_id=booking.id,
        start=booking.scheduled_at,
        end=booking.estimated_end,
        busy_employee_ids=frozenset(employees),
        busy_owner_ids=frozenset(owners),
        unassigned_categories=tuple(unassigned),
    )


class BookingConflictIndex:
    """
    In-memory overlap lookup over the bookings of one day.

    When ``day`` is given, bookings whose scheduled start falls outside it are
    ignored; callers that already filtered by day can leave it out.
    """

    def __init__(self, bookings: Iterable[Booking], day: TimeRange | None = None):
        occupancies: List[BookingOccupancy] = []
        for booking in bookings:
            occupancy = occupancy_for(booking)
            if occupancy is None:
                continue
            if day is not None and not (day.start <= occupancy.start < day.end):
                continue
            occupancies.append(occupancy)
        self._occupancies = sorted(occupancies, key=lambda o: (o.start, o.booking_id))

    @property
    def occupancies(self) -> List[BookingOccupancy]:
        return list(self._occupancies)

    def overlapping(self, start: DateTime, end: DateTime) -> List[BookingOccupancy]:
        """All occupancies intersecting [start, end)."""
        result: List[BookingOccupancy] = []
        for occupancy in self._occupancies:
            if occupancy.start >= end:
                break
            if occupancy.overlaps(start, end):
                result.append(occupancy)
        return result

    def busy_employee_ids(self, start: DateTime, end: DateTime) -> set[int]:
        busy: set[int] = set()
        for occupancy in self.overlapping(start, end):
            busy.update(occupancy.busy_employee_ids)
        return busy
