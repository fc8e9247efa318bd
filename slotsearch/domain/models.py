"""
Domain models for business schedules, providers, bookings and slots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from pendulum import DateTime


GENERAL_CATEGORY = "general"
DEFAULT_SERVICE_DURATION_MINUTES = 30


def normalize_category(category: str | None) -> str:
    """Lower-case and strip a category name; missing categories become 'general'."""
    if not category:
        return GENERAL_CATEGORY
    return category.strip().lower()


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, start: DateTime, end: DateTime) -> bool:
        """Check whether [start, end) lies entirely inside this range."""
        return start >= self.start and end <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusinessHours:
    """
    One row of a business's weekly schedule.

    ``day_of_week`` uses 0=Sunday ... 6=Saturday. Times are "HH:MM" strings in
    the business's local timezone.
    """
    day_of_week: int
    category: str
    open_time: str
    close_time: str
    is_closed: bool = False


@dataclass(frozen=True)
class Provider:
    """Someone who can deliver a service. Empty specialties qualify for everything."""
    id: int
    name: str = ""
    specialties: Tuple[str, ...] = ()

    def qualifies_for(self, category: str) -> bool:
        if not self.specialties:
            return True
        key = normalize_category(category)
        return any(normalize_category(s) == key for s in self.specialties)


@dataclass(frozen=True)
class Employee(Provider):
    """An employee; attendance-gated on the current day."""


@dataclass(frozen=True)
class Owner(Provider):
    """A business owner; never attendance-gated."""


@dataclass
class Business:
    """Snapshot of a business directory entry."""
    id: str
    slug: str
    name: str = ""
    timezone: Optional[str] = None
    business_hours: List[BusinessHours] = field(default_factory=list)
    employees: List[Employee] = field(default_factory=list)
    owners: List[Owner] = field(default_factory=list)


@dataclass(frozen=True)
class ServiceRecord:
    """A catalog entry for a bookable service."""
    id: int
    category: str
    duration: Optional[int] = None
    name: str = ""


@dataclass(frozen=True)
class ServiceRequest:
    """A requested service and how many times it should be performed."""
    service_id: int
    quantity: int = 1


@dataclass(frozen=True)
class ServiceUnit:
    """A single performance of a service, after quantity expansion."""
    service_id: int
    category: str
    duration_minutes: int = DEFAULT_SERVICE_DURATION_MINUTES


@dataclass(frozen=True)
class AttendanceRecord:
    """Raw attendance row as returned by the store."""
    employee_id: int
    status: str
    time_in: Optional[DateTime] = None
    time_out: Optional[DateTime] = None


@dataclass(frozen=True)
class AttendanceWindow:
    """A clock-in interval. ``time_out`` of None means still clocked in."""
    employee_id: int
    time_in: DateTime
    time_out: Optional[DateTime] = None

    def covers(self, start: DateTime, end: DateTime) -> bool:
        return self.time_in <= start and (self.time_out is None or self.time_out >= end)


@dataclass(frozen=True)
class BookedService:
    """A service line of an existing booking and who serves it."""
    service_id: int
    served_by_id: Optional[int] = None
    served_by_owner_id: Optional[int] = None
    status: str = "PENDING"
    category: Optional[str] = None


@dataclass
class Booking:
    """An existing booking as loaded from the store."""
    id: int
    status: str
    scheduled_at: Optional[DateTime] = None
    estimated_end: Optional[DateTime] = None
    services: List[BookedService] = field(default_factory=list)


@dataclass(frozen=True)
class BookingOccupancy:
    """
    Time range a booking holds and the providers it keeps busy.

    ``unassigned_categories`` holds one entry per service line nobody has been
    assigned to yet (None when the line's category is unknown); such lines
    still consume capacity from the pool.
    """
    booking_id: int
    start: DateTime
    end: DateTime
    busy_employee_ids: FrozenSet[int] = frozenset()
    busy_owner_ids: FrozenSet[int] = frozenset()
    unassigned_categories: Tuple[Optional[str], ...] = ()

    @property
    def unassigned_count(self) -> int:
        return len(self.unassigned_categories)

    def unassigned_load(self, category: str) -> int:
        """Unassigned lines that compete for providers of ``category``."""
        key = normalize_category(category)
        return sum(1 for c in self.unassigned_categories if c is None or c == key)

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        return self.start < end and self.end > start


@dataclass(frozen=True)
class TimeSlot:
    """
    A start time at which every requested service can be performed in sequence.
    """
    start_time: DateTime
    end_time: DateTime
    available: bool = True
    available_employee_count: int = 0
    available_owner_count: int = 0

    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() / 60)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:mm - HH:mm (N min)
        """
        start = self.start_time
        date_str = start.format("dddd, YYYY-MM-DD")
        time_str = f"{start.format('HH:mm')} - {self.end_time.format('HH:mm')}"
        return f"{date_str} | {time_str} ({self.duration_minutes()} min)"


class AvailabilitySource(str, Enum):
    """Which provider pool a count was computed from."""
    ATTENDANCE = "ATTENDANCE"
    ROSTER = "ROSTER"


class SearchReason(str, Enum):
    """Why a search produced the slots it did."""
    OK = "OK"
    EMPTY_REQUEST = "EMPTY_REQUEST"
    INFEASIBLE_DAY = "INFEASIBLE_DAY"
    NO_FEASIBLE_SLOT = "NO_FEASIBLE_SLOT"
    OUTSIDE_HORIZON = "OUTSIDE_HORIZON"


@dataclass(frozen=True)
class SlotSearchResult:
    """Slots plus the reason code explaining an empty result."""
    slots: List[TimeSlot]
    reason: SearchReason


@dataclass(frozen=True)
class CategorySummary:
    """Daily availability rollup for a single category."""
    has_hours: bool
    hours_already_passed: bool
    qualified_available_provider_count: int
    owner_available: bool
    source: AvailabilitySource
    business_hours: Optional[BusinessHours] = None


@dataclass(frozen=True)
class ProviderAvailability:
    """A qualified employee and whether they are free for a window."""
    id: int
    name: str
    available: bool
    specialties: Tuple[str, ...] = ()
    type: str = "EMPLOYEE"


@dataclass(frozen=True)
class SlotValidation:
    """Outcome of checking a chosen start time against current availability."""
    ok: bool
    code: Optional[str] = None
    alternatives: List[TimeSlot] = field(default_factory=list)
