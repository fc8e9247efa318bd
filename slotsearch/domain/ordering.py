"""
Ordering strategies for packing service units into a slot.

The search engine packs units one after another in the order a strategy
returns. The default is a greedy heuristic and can miss a packing that a
different order would find; an exhaustive strategy can be plugged in
without touching the packing logic.
"""

from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .models import ServiceUnit, TimeRange


@dataclass(frozen=True)
class PlannedUnit:
    """A service unit together with the windows its category is open in."""
    unit: ServiceUnit
    windows: List[TimeRange]
    window_minutes: int

    @property
    def service_id(self) -> int:
        return self.unit.service_id

    @property
    def category(self) -> str:
        return self.unit.category

    @property
    def duration_minutes(self) -> int:
        return self.unit.duration_minutes


class OrderingStrategy(Protocol):
    """Decides the sequence in which units are packed."""

    def order(self, units: Sequence[PlannedUnit]) -> List[PlannedUnit]:
        """Return the units in packing order."""


class TightestWindowFirst:
    """
    Most constrained first: fewest open minutes, then longest duration, then
    lowest service id as a stable tie-break.
    """

    def order(self, units: Sequence[PlannedUnit]) -> List[PlannedUnit]:
        return sorted(
            units,
            key=lambda p: (p.window_minutes, -p.duration_minutes, p.service_id),
        )


class RequestOrder:
    """Pack units exactly in the order they were requested."""

    def order(self, units: Sequence[PlannedUnit]) -> List[PlannedUnit]:
        return list(units)
