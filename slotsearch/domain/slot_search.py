"""
Core slot search: greedy sequential packing of service units.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

from pendulum import DateTime

from .attendance import AttendanceWindowIndex
from .bookings import BookingConflictIndex
from .calendar import is_today, local_now
from .hours import TimeWindowResolver
from .models import SearchReason, ServiceUnit, SlotSearchResult, TimeSlot
from .ordering import OrderingStrategy, PlannedUnit, TightestWindowFirst
from .providers import ProviderQualifier


DEFAULT_GRANULARITY_MINUTES = 30
MIN_GRANULARITY_MINUTES = 5


def normalize_granularity(value: Optional[int]) -> int:
    """Clamp a requested step to a usable number of whole minutes."""
    if value is None:
        return DEFAULT_GRANULARITY_MINUTES
    try:
        minutes = int(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_GRANULARITY_MINUTES
    return max(MIN_GRANULARITY_MINUTES, minutes)


@dataclass(frozen=True)
class SegmentCapacity:
    """Free, eligible providers for one unit's segment."""
    employees: int
    owners: int

    @property
    def total(self) -> int:
        return self.employees + self.owners


@dataclass(frozen=True)
class PackedSegment:
    unit: ServiceUnit
    start: DateTime
    end: DateTime
    capacity: SegmentCapacity


@dataclass(frozen=True)
class PackState:
    """
    Accumulator for packing one candidate start.

    ``employee_count`` is the running minimum over units and ``owner_count``
    the running maximum. Both are coarse capacity hints; they do not promise
    that one provider can cover several units.
    """
    start: DateTime
    cursor: DateTime
    employee_count: Optional[int] = None
    owner_count: int = 0
    segments: Tuple[PackedSegment, ...] = ()

    def to_slot(self) -> TimeSlot:
        return TimeSlot(
            start_time=self.start,
            end_time=self.cursor,
            available=True,
            available_employee_count=max(0, self.employee_count or 0),
            available_owner_count=max(0, self.owner_count),
        )


class SlotSearchEngine:
    """
    Finds every start time in a day at which all units fit back to back.

    Algorithm:
    1. Resolve each unit's category windows; any empty category ends the search
    2. Order the units (most constrained first by default)
    3. Probe candidate starts at a fixed granularity across the open hours
    4. For each candidate, fold over the units with a moving cursor, checking
       window containment, provider eligibility and booking conflicts
    5. Emit one slot for every candidate where all units fit
    """

    def __init__(
        self,
        *,
        resolver: TimeWindowResolver,
        qualifier: ProviderQualifier,
        attendance: AttendanceWindowIndex,
        conflicts: BookingConflictIndex,
        now: DateTime | None = None,
        granularity_minutes: int | None = DEFAULT_GRANULARITY_MINUTES,
        min_lead_minutes: int = 0,
        ordering: OrderingStrategy | None = None,
    ):
        self.resolver = resolver
        self.qualifier = qualifier
        self.attendance = attendance
        self.conflicts = conflicts
        self.now = local_now(resolver.timezone, now)
        self.is_today = is_today(resolver.day, resolver.timezone, self.now)
        self.granularity_minutes = normalize_granularity(granularity_minutes)
        self.min_lead_minutes = max(0, min_lead_minutes)
        self.ordering: OrderingStrategy = ordering or TightestWindowFirst()

    def search(self, units: Sequence[ServiceUnit]) -> List[TimeSlot]:
        """Return every feasible slot, ordered by start time."""
        return self.run(units).slots

    def run(self, units: Sequence[ServiceUnit]) -> SlotSearchResult:
        """Like ``search`` but also report why the result may be empty."""
        if not units:
            return SlotSearchResult(slots=[], reason=SearchReason.EMPTY_REQUEST)

        planned = self.plan(units)
        if any(p.window_minutes <= 0 for p in planned):
            return SlotSearchResult(slots=[], reason=SearchReason.INFEASIBLE_DAY)

        ordered = self.ordering.order(planned)
        slots: List[TimeSlot] = []
        for candidate in self.candidate_starts(ordered):
            packed = self.pack(candidate, ordered)
            if packed is not None:
                slots.append(packed.to_slot())

        reason = SearchReason.OK if slots else SearchReason.NO_FEASIBLE_SLOT
        return SlotSearchResult(slots=slots, reason=reason)

    def plan(self, units: Sequence[ServiceUnit]) -> List[PlannedUnit]:
        return [
            PlannedUnit(
                unit=unit,
                windows=self.resolver.resolve(unit.category),
                window_minutes=self.resolver.window_minutes(unit.category),
            )
            for unit in units
        ]

    def candidate_starts(self, ordered: Sequence[PlannedUnit]) -> Iterator[DateTime]:
        """Yield candidate starts between the earliest open and latest close."""
        windows = [w for p in ordered for w in p.windows]
        if not windows:
            return

        bounds = self.resolver.bounds
        current = max(bounds.start, min(w.start for w in windows))
        limit = min(bounds.end, max(w.end for w in windows))
        earliest = self.now.add(minutes=self.min_lead_minutes)

        while current < limit:
            if not self.is_today or (current > self.now and current >= earliest):
                yield current
            current = current.add(minutes=self.granularity_minutes)

    def pack(self, start: DateTime, ordered: Sequence[PlannedUnit]) -> PackState | None:
        """
        Try to fit all units back to back from ``start``.

        Returns the final state, or None as soon as one unit does not fit.
        """
        state: PackState | None = PackState(start=start, cursor=start)
        for planned in ordered:
            state = self._advance(state, planned)
            if state is None:
                return None
        return state

    def _advance(self, state: PackState, planned: PlannedUnit) -> PackState | None:
        segment_start = state.cursor
        segment_end = segment_start.add(minutes=planned.duration_minutes)

        if not any(w.contains(segment_start, segment_end) for w in planned.windows):
            return None

        capacity = self.segment_capacity(planned.category, segment_start, segment_end)
        if capacity is None or capacity.total <= 0:
            return None

        employee_count = (
            capacity.employees
            if state.employee_count is None
            else min(state.employee_count, capacity.employees)
        )
        return replace(
            state,
            cursor=segment_end,
            employee_count=employee_count,
            owner_count=max(state.owner_count, capacity.owners),
            segments=state.segments + (
                PackedSegment(planned.unit, segment_start, segment_end, capacity),
            ),
        )

    def segment_capacity(
        self,
        category: str,
        start: DateTime,
        end: DateTime,
    ) -> SegmentCapacity | None:
        """
        Count free, eligible providers for [start, end).

        Returns None when nobody is even eligible (qualified and, today,
        clocked in), before any booking is considered.
        """
        qualified = self.qualifier.qualified_for(category)
        employees = {
            employee_id
            for employee_id in qualified.employee_ids
            if not self.is_today
            or self.attendance.is_clocked_in_for(employee_id, start, end)
        }
        owners = set(qualified.owner_ids)
        if not employees and not owners:
            return None

        unassigned = 0
        for occupancy in self.conflicts.overlapping(start, end):
            employees -= occupancy.busy_employee_ids
            owners -= occupancy.busy_owner_ids
            unassigned += occupancy.unassigned_load(category)

        free_employees = len(employees)
        free_owners = len(owners)

        # unassigned work takes employees first, then owners
        taken = min(unassigned, free_employees)
        free_employees -= taken
        free_owners = max(0, free_owners - (unassigned - taken))

        return SegmentCapacity(employees=max(0, free_employees), owners=free_owners)
