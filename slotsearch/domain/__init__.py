"""
Domain layer - Pure business logic without external dependencies.
"""

from .attendance import AttendanceWindowIndex
from .bookings import BookingConflictIndex
from .hours import TimeWindowResolver
from .models import (
    AvailabilitySource,
    Booking,
    Business,
    CategorySummary,
    SearchReason,
    ServiceRequest,
    ServiceUnit,
    SlotSearchResult,
    TimeRange,
    TimeSlot,
)
from .ordering import OrderingStrategy, RequestOrder, TightestWindowFirst
from .provider_listing import ProviderListing
from .providers import ProviderQualifier
from .slot_search import SlotSearchEngine
from .summary import CategoryAvailabilitySummary

__all__ = [
    "AttendanceWindowIndex",
    "AvailabilitySource",
    "Booking",
    "BookingConflictIndex",
    "Business",
    "CategoryAvailabilitySummary",
    "CategorySummary",
    "OrderingStrategy",
    "ProviderListing",
    "ProviderQualifier",
    "RequestOrder",
    "SearchReason",
    "ServiceRequest",
    "ServiceUnit",
    "SlotSearchEngine",
    "SlotSearchResult",
    "TightestWindowFirst",
    "TimeRange",
    "TimeSlot",
    "TimeWindowResolver",
]
