"""
Domain-specific exception hierarchy for the slot search engine.
"""


class SlotSearchError(Exception):
    """Base class for all application-level errors."""


class BusinessNotFoundError(SlotSearchError):
    """Raised when no business exists for the requested slug."""

    def __init__(self, slug: str):
        super().__init__(f"Business not found: '{slug}'")
        self.slug = slug


class DataStoreError(SlotSearchError):
    """Raised when business data cannot be fetched or parsed."""
