"""
Wire/file payload schemas and their conversion into domain models.

Both the snapshot file store and the HTTP store read the same JSON shapes,
so validation lives here once. Timestamps without an explicit offset are read
in the business's local timezone.
"""

from datetime import date
from typing import Annotated, List, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, BeforeValidator, Field, field_validator

from ..domain.calendar import parse_clock
from ..domain.exceptions import DataStoreError
from ..domain.models import (
    AttendanceRecord,
    BookedService,
    Booking,
    Business,
    BusinessHours,
    Employee,
    Owner,
    ServiceRecord,
)


def _coerce_timestamp(value):
    # YAML loaders hand back datetime objects for unquoted timestamps
    if isinstance(value, date):
        return value.isoformat()
    return value


Timestamp = Annotated[Optional[str], BeforeValidator(_coerce_timestamp)]


def parse_instant(value: Optional[str], timezone: str) -> Optional[DateTime]:
    """
    Parse an ISO 8601 timestamp into a pendulum DateTime in ``timezone``.

    Raises:
        DataStoreError: If the value cannot be parsed
    """
    if value is None or value == "":
        return None
    try:
        parsed = pendulum.parse(str(value), tz=timezone)
    except ValueError as exc:
        raise DataStoreError(f"Could not parse timestamp '{value}': {exc}") from exc
    if not isinstance(parsed, DateTime):
        raise DataStoreError(f"Expected a date and time, got '{value}'")
    return parsed.in_timezone(timezone)


class BusinessHoursPayload(BaseModel):
    day_of_week: int
    category: str = "general"
    open_time: str
    close_time: str
    is_closed: bool = False

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: int) -> int:
        """Ensure day_of_week is 0 (Sunday) to 6 (Saturday)."""
        if not 0 <= value <= 6:
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("open_time", "close_time", mode="before")
    @classmethod
    def validate_clock(cls, value) -> str:
        """Accept "HH:MM"; YAML 1.1 reads unquoted 17:00 as 1020 minutes."""
        if isinstance(value, int):
            value = f"{value // 60:02d}:{value % 60:02d}"
        parse_clock(str(value))
        return str(value)

    def to_domain(self) -> BusinessHours:
        return BusinessHours(
            day_of_week=self.day_of_week,
            category=self.category,
            open_time=self.open_time,
            close_time=self.close_time,
            is_closed=self.is_closed,
        )


class ProviderPayload(BaseModel):
    id: int
    name: str = ""
    specialties: List[str] = Field(default_factory=list)


class ServicePayload(BaseModel):
    id: int
    category: str = "general"
    duration: Optional[int] = None
    name: str = ""

    def to_domain(self) -> ServiceRecord:
        return ServiceRecord(
            id=self.id,
            category=self.category,
            duration=self.duration,
            name=self.name,
        )


class AttendancePayload(BaseModel):
    employee_id: int
    status: str = "PRESENT"
    time_in: Timestamp = None
    time_out: Timestamp = None

    def to_domain(self, timezone: str) -> AttendanceRecord:
        return AttendanceRecord(
            employee_id=self.employee_id,
            status=self.status,
            time_in=parse_instant(self.time_in, timezone),
            time_out=parse_instant(self.time_out, timezone),
        )


class BookedServicePayload(BaseModel):
    service_id: int
    served_by_id: Optional[int] = None
    served_by_owner_id: Optional[int] = None
    status: str = "PENDING"
    category: Optional[str] = None

    def to_domain(self) -> BookedService:
        return BookedService(
            service_id=self.service_id,
            served_by_id=self.served_by_id,
            served_by_owner_id=self.served_by_owner_id,
            status=self.status,
            category=self.category,
        )


class BookingPayload(BaseModel):
    id: int
    status: str = "CONFIRMED"
    scheduled_at: Timestamp = None
    estimated_end: Timestamp = None
    services: List[BookedServicePayload] = Field(default_factory=list)

    def to_domain(self, timezone: str) -> Booking:
        return Booking(
            id=self.id,
            status=self.status,
            scheduled_at=parse_instant(self.scheduled_at, timezone),
            estimated_end=parse_instant(self.estimated_end, timezone),
            services=[s.to_domain() for s in self.services],
        )


class BusinessPayload(BaseModel):
    id: str
    slug: str
    name: str = ""
    timezone: Optional[str] = None
    business_hours: List[BusinessHoursPayload] = Field(default_factory=list)
    employees: List[ProviderPayload] = Field(default_factory=list)
    owners: List[ProviderPayload] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return str(value)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: '{value}'") from exc
        return value

    def to_domain(self) -> Business:
        return Business(
            id=self.id,
            slug=self.slug,
            name=self.name,
            timezone=self.timezone,
            business_hours=[h.to_domain() for h in self.business_hours],
            employees=[
                Employee(id=p.id, name=p.name, specialties=tuple(p.specialties))
                for p in self.employees
            ],
            owners=[
                Owner(id=p.id, name=p.name, specialties=tuple(p.specialties))
                for p in self.owners
            ],
        )


class BusinessSnapshot(BusinessPayload):
    """A business together with its catalog, attendance and bookings."""
    services: List[ServicePayload] = Field(default_factory=list)
    attendance: List[AttendancePayload] = Field(default_factory=list)
    bookings: List[BookingPayload] = Field(default_factory=list)


class SnapshotFile(BaseModel):
    """Root of a snapshot YAML/JSON file."""
    businesses: List[BusinessSnapshot] = Field(default_factory=list)

    @field_validator("businesses")
    @classmethod
    def validate_unique_slugs(cls, value: List[BusinessSnapshot]) -> List[BusinessSnapshot]:
        """Ensure business slugs are unique (case-insensitive)."""
        seen: set[str] = set()
        for business in value:
            key = business.slug.lower()
            if key in seen:
                raise ValueError(f"Duplicate business slug detected: {business.slug}")
            seen.add(key)
        return value
