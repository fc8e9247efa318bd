"""
Category qualification for employees and owners.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

from .models import GENERAL_CATEGORY, Employee, Owner, normalize_category


@dataclass(frozen=True)
class QualifiedProviders:
    """IDs of providers qualified for a category, in roster order."""
    employee_ids: Tuple[int, ...] = ()
    owner_ids: Tuple[int, ...] = ()

    def is_empty(self) -> bool:
        return not self.employee_ids and not self.owner_ids


class ProviderQualifier:
    """
    Computes which providers may deliver a category.

    A provider with no specialties is a generalist and qualifies for every
    category. Anyone else must list the category (case-insensitive).
    """

    def __init__(self, employees: Sequence[Employee], owners: Sequence[Owner]):
        self.employees = list(employees)
        self.owners = list(owners)
        self._cache: Dict[str, QualifiedProviders] = {}

    def qualified_for(self, category: str) -> QualifiedProviders:
        key = normalize_category(category)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = QualifiedProviders(
            employee_ids=tuple(e.id for e in self.employees if e.qualifies_for(key)),
            owner_ids=tuple(o.id for o in self.owners if o.qualifies_for(key)),
        )
        self._cache[key] = result
        return result

    def qualified_employees(self, categories: Iterable[str]) -> list[Employee]:
        """Employees qualifying for any of ``categories`` (defaults to general)."""
        keys = [normalize_category(c) for c in categories] or [GENERAL_CATEGORY]
        return [e for e in self.employees if any(e.qualifies_for(k) for k in keys)]
