"""
Daily availability rollup for a single category.
"""

from pendulum import DateTime

from .attendance import AttendanceWindowIndex
from .calendar import is_today, local_now
from .hours import TimeWindowResolver
from .models import GENERAL_CATEGORY, AvailabilitySource, CategorySummary
from .providers import ProviderQualifier


class CategoryAvailabilitySummary:
    """
    Quick eligibility check for a category on a day.

    This is deliberately cheaper than a full slot search: it answers "is the
    category open, has today's window already closed, and is anyone qualified
    around" without packing any services.
    """

    def __init__(
        self,
        *,
        resolver: TimeWindowResolver,
        qualifier: ProviderQualifier,
        attendance: AttendanceWindowIndex,
        now: DateTime | None = None,
    ):
        self.resolver = resolver
        self.qualifier = qualifier
        self.attendance = attendance
        self.now = local_now(resolver.timezone, now)
        self.is_today = is_today(resolver.day, resolver.timezone, self.now)

    def summarize(
        self,
        category: str = GENERAL_CATEGORY,
        *,
        enforce_attendance: bool = True,
    ) -> CategorySummary:
        record = self.resolver.lookup(category)
        has_hours = record is not None and not record.is_closed

        hours_already_passed = False
        if has_hours and self.is_today:
            windows = self.resolver.resolve(category)
            hours_already_passed = not any(
                w.start <= self.now < w.end for w in windows
            )

        qualified = self.qualifier.qualified_for(category)
        apply_attendance = (
            enforce_attendance and self.is_today and len(qualified.employee_ids) > 0
        )

        if apply_attendance:
            count = sum(
                1
                for employee_id in qualified.employee_ids
                if self.attendance.is_clocked_in_at(employee_id, self.now)
            )
            source = AvailabilitySource.ATTENDANCE
        else:
            count = len(qualified.employee_ids)
            source = AvailabilitySource.ROSTER

        return CategorySummary(
            has_hours=has_hours,
            hours_already_passed=hours_already_passed,
            qualified_available_provider_count=count,
            owner_available=len(qualified.owner_ids) > 0,
            source=source,
            business_hours=record,
        )
