"""
Application services for booking availability.

The service fetches a business's data through a store adapter and delegates
the actual search to the domain-level ``SlotSearchEngine`` (and its smaller
siblings for category summaries and provider listings). This keeps the CLI
thin and lets tests swap the store for an in-memory one via a simple
protocol.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from pendulum import Date, DateTime

from ..config import AppConfig, BookingPolicy
from ..domain.attendance import AttendanceWindowIndex
from ..domain.bookings import BookingConflictIndex
from ..domain.calendar import (
    day_bounds,
    days_between,
    is_today,
    local_now,
    localize,
    to_local_date,
)
from ..domain.exceptions import BusinessNotFoundError
from ..domain.hours import TimeWindowResolver
from ..domain.models import (
    GENERAL_CATEGORY,
    AttendanceRecord,
    Booking,
    Business,
    CategorySummary,
    ProviderAvailability,
    SearchReason,
    ServiceRecord,
    ServiceRequest,
    ServiceUnit,
    SlotSearchResult,
    SlotValidation,
    TimeRange,
    TimeSlot,
)
from ..domain.ordering import OrderingStrategy
from ..domain.provider_listing import ProviderListing
from ..domain.providers import ProviderQualifier
from ..domain.slot_search import SlotSearchEngine
from ..domain.summary import CategoryAvailabilitySummary

logger = logging.getLogger(__name__)

DEFAULT_ALTERNATIVES_LIMIT = 6

DATE_OUTSIDE_HORIZON = "DATE_OUTSIDE_HORIZON"
LEAD_TIME_VIOLATION = "LEAD_TIME_VIOLATION"
NO_CAPACITY_FOR_SELECTED_SERVICES = "NO_CAPACITY_FOR_SELECTED_SERVICES"
SLOT_JUST_TAKEN = "SLOT_JUST_TAKEN"


class BusinessStoreProtocol(Protocol):
    """Protocol describing the data access needed by the service."""

    async def get_business(self, slug: str) -> Optional[Business]:
        """Return the business with its hours and providers, or None."""

    async def get_services(
        self,
        business_id: str,
        service_ids: Iterable[int],
    ) -> List[ServiceRecord]:
        """Return catalog entries for the given IDs, scoped to the business."""

    async def get_attendance(
        self,
        business_id: str,
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[AttendanceRecord]:
        """Return attendance rows whose shift overlaps [day_start, day_end)."""

    async def get_bookings(
        self,
        business_id: str,
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[Booking]:
        """Return non-cancelled bookings scheduled within [day_start, day_end)."""


@dataclass
class DayData:
    """Everything the domain needs for one business on one day."""
    business: Business
    timezone: str
    day: Date
    bounds: TimeRange
    now: DateTime
    is_today: bool
    attendance: AttendanceWindowIndex
    conflicts: BookingConflictIndex

    def resolver(self) -> TimeWindowResolver:
        return TimeWindowResolver(self.business.business_hours, self.day, self.timezone)

    def qualifier(self) -> ProviderQualifier:
        return ProviderQualifier(self.business.employees, self.business.owners)


class AvailabilityService:
    """
    Orchestrates data retrieval and availability calculation.

    Every public method accepts an optional ``now`` so callers (and tests)
    can pin "today" instead of reading the wall clock. All calendar logic
    happens in the business's own timezone.
    """

    def __init__(
        self,
        store: BusinessStoreProtocol,
        config: AppConfig | None = None,
        *,
        ordering: OrderingStrategy | None = None,
    ) -> None:
        self._store = store
        self._config = config or AppConfig()
        self._ordering = ordering

    @property
    def policy(self) -> BookingPolicy:
        return self._config.policy

    async def find_slots(
        self,
        slug: str,
        day: date,
        requests: Sequence[ServiceRequest],
        *,
        granularity_minutes: int | None = None,
        now: DateTime | None = None,
    ) -> List[TimeSlot]:
        """Return feasible slots for ``requests`` on ``day``, ordered by start."""
        result = await self.search_slots(
            slug,
            day,
            requests,
            granularity_minutes=granularity_minutes,
            now=now,
        )
        return result.slots

    async def search_slots(
        self,
        slug: str,
        day: date,
        requests: Sequence[ServiceRequest],
        *,
        granularity_minutes: int | None = None,
        now: DateTime | None = None,
    ) -> SlotSearchResult:
        """
        Fetch the business's data for ``day`` and run the slot search.

        Args:
            slug: Business slug
            day: Calendar day (datetimes are reduced to their local date)
            requests: Requested services with quantities
            granularity_minutes: Candidate step; defaults to the policy interval
            now: Reference instant; defaults to the wall clock

        Returns:
            The slots plus the reason the list may be empty

        Raises:
            BusinessNotFoundError: If no business matches ``slug``
            DataStoreError: If the store fails
        """
        started = time.perf_counter()
        try:
            business = await self._get_business(slug)
            tz = self._timezone_for(business)
            local_day = to_local_date(day, tz)
            current = local_now(tz, now)

            if not self._within_horizon(local_day, tz, current):
                result = SlotSearchResult(slots=[], reason=SearchReason.OUTSIDE_HORIZON)
            else:
                units = await self._expand_units(business, requests)
                result = await self._search_day(
                    business, local_day, units, current, granularity_minutes
                )
        except Exception:
            logger.warning(
                "Slot lookup for '%s' failed after %.1f ms",
                slug,
                (time.perf_counter() - started) * 1000,
            )
            raise

        logger.info(
            "Slot lookup for '%s' on %s: %d request(s), %d slot(s), reason=%s, %.1f ms",
            slug,
            local_day,
            len(requests),
            len(result.slots),
            result.reason.value,
            (time.perf_counter() - started) * 1000,
        )
        return result

    async def summarize_category(
        self,
        slug: str,
        day: date,
        category: str = GENERAL_CATEGORY,
        *,
        enforce_attendance: bool = True,
        now: DateTime | None = None,
    ) -> CategorySummary:
        """
        Quick eligibility rollup for ``category`` on ``day``.

        Raises:
            BusinessNotFoundError: If no business matches ``slug``
        """
        business = await self._get_business(slug)
        tz = self._timezone_for(business)
        data = await self._load_day(business, to_local_date(day, tz), local_now(tz, now))

        summary = CategoryAvailabilitySummary(
            resolver=data.resolver(),
            qualifier=data.qualifier(),
            attendance=data.attendance,
            now=data.now,
        )
        return summary.summarize(category, enforce_attendance=enforce_attendance)

    async def list_available_providers(
        self,
        slug: str,
        start: DateTime,
        end: DateTime,
        categories: Sequence[str] = (),
        *,
        now: DateTime | None = None,
    ) -> List[ProviderAvailability]:
        """
        List qualified employees for [start, end) with availability flags.

        Raises:
            BusinessNotFoundError: If no business matches ``slug``
            ValueError: If ``start`` is not before ``end``
        """
        business = await self._get_business(slug)
        tz = self._timezone_for(business)
        window = TimeRange(start=localize(start, tz), end=localize(end, tz))
        current = local_now(tz, now)
        local_day = to_local_date(window.start, tz)

        if not self._within_horizon(local_day, tz, current):
            return []

        data = await self._load_day(business, local_day, current)
        listing = ProviderListing(
            qualifier=data.qualifier(),
            attendance=data.attendance,
            conflicts=data.conflicts,
        )
        return listing.list_available(window, categories)

    async def list_alternative_slots(
        self,
        slug: str,
        scheduled_at: DateTime,
        requests: Sequence[ServiceRequest],
        limit: int = DEFAULT_ALTERNATIVES_LIMIT,
        *,
        now: DateTime | None = None,
    ) -> List[TimeSlot]:
        """
        Collect up to ``limit`` slots after ``scheduled_at``.

        Walks forward one day at a time from the requested day (or today, if
        that is later). On the first day only slots starting strictly after
        ``scheduled_at`` count. The walk stops at the booking horizon, or
        after ``alternative_scan_days`` days when the horizon is unlimited.
        """
        business = await self._get_business(slug)
        tz = self._timezone_for(business)
        current = local_now(tz, now)
        scheduled_at = localize(scheduled_at, tz)
        today = to_local_date(current, tz)
        first_offset = max(0, days_between(today, to_local_date(scheduled_at, tz)))

        horizon = self.policy.booking_horizon_days
        last_offset = (
            horizon if horizon is not None
            else first_offset + self.policy.alternative_scan_days
        )

        units = await self._expand_units(business, requests)
        collected: List[TimeSlot] = []
        for offset in range(first_offset, last_offset):
            result = await self._search_day(
                business, today.add(days=offset), units, current, None
            )
            if offset == first_offset:
                collected.extend(s for s in result.slots if s.start_time > scheduled_at)
            else:
                collected.extend(result.slots)
            if len(collected) >= limit:
                break

        return collected[:limit]

    async def validate_start_time(
        self,
        slug: str,
        scheduled_at: DateTime,
        requests: Sequence[ServiceRequest],
        *,
        now: DateTime | None = None,
    ) -> SlotValidation:
        """
        Check a chosen start time against current availability.

        The check is advisory: failures come back as a code (with
        alternatives when capacity is the problem), never as an exception.
        A booking commit must still re-validate at write time.
        """
        business = await self._get_business(slug)
        tz = self._timezone_for(business)
        current = local_now(tz, now)
        start = localize(scheduled_at, tz)
        local_day = to_local_date(start, tz)

        if not self._within_horizon(local_day, tz, current):
            return SlotValidation(ok=False, code=DATE_OUTSIDE_HORIZON)

        if start < current.add(minutes=self.policy.min_lead_minutes):
            return SlotValidation(ok=False, code=LEAD_TIME_VIOLATION)

        units = await self._expand_units(business, requests)
        result = await self._search_day(business, local_day, units, current, None)

        if not result.slots:
            code = NO_CAPACITY_FOR_SELECTED_SERVICES
        elif not any(slot.start_time == start for slot in result.slots):
            code = SLOT_JUST_TAKEN
        else:
            return SlotValidation(ok=True)

        alternatives = await self.list_alternative_slots(slug, start, requests, now=current)
        logger.info("Start %s for '%s' rejected: %s", start, slug, code)
        return SlotValidation(ok=False, code=code, alternatives=alternatives)

    async def business_timezone(self, slug: str) -> str:
        """
        Return the IANA timezone the business keeps its calendar in.

        Raises:
            BusinessNotFoundError: If no business matches ``slug``
        """
        return self._timezone_for(await self._get_business(slug))

    async def _get_business(self, slug: str) -> Business:
        business = await self._store.get_business(slug)
        if business is None:
            raise BusinessNotFoundError(slug)
        return business

    def _timezone_for(self, business: Business) -> str:
        return business.timezone or self._config.timezone

    def _within_horizon(self, day: Date, tz: str, now: DateTime) -> bool:
        horizon = self.policy.booking_horizon_days
        if horizon is None:
            return True
        offset = days_between(to_local_date(now, tz), day)
        return 0 <= offset < horizon

    async def _expand_units(
        self,
        business: Business,
        requests: Sequence[ServiceRequest],
    ) -> List[ServiceUnit]:
        """
        Turn requests into one unit per quantity.

        Unknown service IDs are dropped; a missing or non-positive duration
        falls back to the policy default.
        """
        if not requests:
            return []

        ids = sorted({r.service_id for r in requests})
        records: Dict[int, ServiceRecord] = {
            s.id: s for s in await self._store.get_services(business.id, ids)
        }

        units: List[ServiceUnit] = []
        for request in requests:
            record = records.get(request.service_id)
            if record is None:
                logger.debug("Dropping unknown service id %s", request.service_id)
                continue
            duration = record.duration or 0
            if duration <= 0:
                duration = self.policy.default_duration_minutes
            units.extend(
                ServiceUnit(
                    service_id=record.id,
                    category=record.category,
                    duration_minutes=duration,
                )
                for _ in range(max(1, request.quantity))
            )
        return units

    async def _load_day(self, business: Business, day: Date, now: DateTime) -> DayData:
        """Fetch attendance (today only) and bookings concurrently."""
        tz = self._timezone_for(business)
        bounds = day_bounds(day, tz)
        today = is_today(day, tz, now)

        bookings_task = self._store.get_bookings(business.id, bounds.start, bounds.end)
        if today:
            attendance_rows, bookings = await asyncio.gather(
                self._store.get_attendance(business.id, bounds.start, bounds.end),
                bookings_task,
            )
            attendance = AttendanceWindowIndex.from_records(attendance_rows, enforced=True)
        else:
            bookings = await bookings_task
            attendance = AttendanceWindowIndex.unenforced()

        return DayData(
            business=business,
            timezone=tz,
            day=day,
            bounds=bounds,
            now=now,
            is_today=today,
            attendance=attendance,
            conflicts=BookingConflictIndex(bookings, day=bounds),
        )

    async def _search_day(
        self,
        business: Business,
        day: Date,
        units: Sequence[ServiceUnit],
        now: DateTime,
        granularity_minutes: int | None,
    ) -> SlotSearchResult:
        if not units:
            return SlotSearchResult(slots=[], reason=SearchReason.EMPTY_REQUEST)

        data = await self._load_day(business, day, now)
        engine = SlotSearchEngine(
            resolver=data.resolver(),
            qualifier=data.qualifier(),
            attendance=data.attendance,
            conflicts=data.conflicts,
            now=data.now,
            granularity_minutes=granularity_minutes or self.policy.slot_interval_minutes,
            min_lead_minutes=self.policy.min_lead_minutes,
            ordering=self._ordering,
        )
        return engine.run(units)
