"""
Roster of qualified employees with live availability flags for one window.
"""

from typing import List, Sequence

from .attendance import AttendanceWindowIndex
from .bookings import BookingConflictIndex
from .models import ProviderAvailability, TimeRange
from .providers import ProviderQualifier


class ProviderListing:
    """
    Lists employees who could be assigned to a window.

    Owners are left out on purpose: the listing feeds manual employee
    assignment. The attendance index decides whether clock-in data matters,
    so callers build it enforced only when the window falls on today.
    """

    def __init__(
        self,
        *,
        qualifier: ProviderQualifier,
        attendance: AttendanceWindowIndex,
        conflicts: BookingConflictIndex,
    ):
        self.qualifier = qualifier
        self.attendance = attendance
        self.conflicts = conflicts

    def list_available(
        self,
        window: TimeRange,
        categories: Sequence[str] = (),
    ) -> List[ProviderAvailability]:
        busy = self.conflicts.busy_employee_ids(window.start, window.end)

        return [
            ProviderAvailability(
                id=employee.id,
                name=employee.name,
                available=(
                    employee.id not in busy
                    and self.attendance.is_clocked_in_for(employee.id, window.start, window.end)
                ),
                specialties=tuple(employee.specialties),
            )
            for employee in self.qualifier.qualified_employees(categories)
        ]
