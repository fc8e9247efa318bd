"""
Attendance windows for the current day.
"""

from typing import Dict, Iterable, List

from pendulum import DateTime

from .models import AttendanceRecord, AttendanceWindow


ACTIVE_ATTENDANCE_STATUSES = frozenset({"PRESENT", "LATE"})

# An open shift (no clock-out) is only carried over from the previous day.
OPEN_SHIFT_CARRYOVER_DAYS = 1


def overlaps_day(record: AttendanceRecord, day_start: DateTime, day_end: DateTime) -> bool:
    """
    Whether an attendance row can cover any part of [day_start, day_end).

    Overnight shifts clocked in before midnight still count for the next
    day, so wraparound windows starting at 00:00 are gated correctly.
    """
    if record.time_in is None or record.time_in >= day_end:
        return False
    if record.time_out is not None:
        return record.time_out > day_start
    return record.time_in >= day_start.subtract(days=OPEN_SHIFT_CARRYOVER_DAYS)


class AttendanceWindowIndex:
    """
    Answers "is employee E clocked in for the whole of [start, end)?".

    Attendance is only enforced for today. For any other day the index is
    built with ``enforced=False`` and every question answers True, so planning
    ahead (or looking back) never depends on clock-in data.
    """

    def __init__(self, windows: Iterable[AttendanceWindow] = (), enforced: bool = True):
        self.enforced = enforced
        self._windows: Dict[int, List[AttendanceWindow]] = {}
        for window in windows:
            self._windows.setdefault(window.employee_id, []).append(window)

    @classmethod
    def from_records(
        cls,
        records: Iterable[AttendanceRecord],
        enforced: bool = True,
    ) -> "AttendanceWindowIndex":
        """
        Build the index from raw attendance rows.

        Only rows with an active status (present or late) and a clock-in
        time become windows; everything else is ignored.
        """
        windows = [
            AttendanceWindow(
                employee_id=record.employee_id,
                time_in=record.time_in,
                time_out=record.time_out,
            )
            for record in records
            if record.time_in is not None
            and (record.status or "").upper() in ACTIVE_ATTENDANCE_STATUSES
        ]
        return cls(windows, enforced=enforced)

    @classmethod
    def unenforced(cls) -> "AttendanceWindowIndex":
        return cls((), enforced=False)

    def windows_for(self, employee_id: int) -> List[AttendanceWindow]:
        return list(self._windows.get(employee_id, []))

    def is_clocked_in_for(self, employee_id: int, start: DateTime, end: DateTime) -> bool:
        if not self.enforced:
            return True
        return any(w.covers(start, end) for w in self._windows.get(employee_id, ()))

    def is_clocked_in_at(self, employee_id: int, instant: DateTime) -> bool:
        return self.is_clocked_in_for(employee_id, instant, instant)
