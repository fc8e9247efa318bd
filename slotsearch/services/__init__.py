"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BusinessStoreProtocol

__all__ = ["AvailabilityService", "BusinessStoreProtocol"]
