"""
Business store backed by a local YAML or JSON snapshot file.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from pendulum import DateTime
from pydantic import ValidationError

from ..domain.attendance import overlaps_day
from ..domain.bookings import CANCELLED_STATUS
from ..domain.exceptions import DataStoreError
from ..domain.models import AttendanceRecord, Booking, Business, ServiceRecord
from .payloads import BusinessSnapshot, SnapshotFile

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Manila"


class SnapshotStore:
    """
    Serves business data from an in-memory snapshot.

    The snapshot is either loaded from a file (``from_file``) or passed in
    directly, which is how tests and the CLI drive the engine without a
    backend. Queries mirror the backend's filters: services are scoped to the
    business, bookings to the day and to non-cancelled status.
    """

    def __init__(self, snapshot: SnapshotFile, default_timezone: str = DEFAULT_TIMEZONE):
        self.default_timezone = default_timezone
        self._by_slug: Dict[str, BusinessSnapshot] = {
            b.slug.lower(): b for b in snapshot.businesses
        }
        self._by_id: Dict[str, BusinessSnapshot] = {b.id: b for b in snapshot.businesses}

    @classmethod
    def from_file(cls, path: Path, default_timezone: str = DEFAULT_TIMEZONE) -> "SnapshotStore":
        """
        Load a snapshot from a ``.yaml``/``.yml`` or ``.json`` file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            DataStoreError: If the file cannot be parsed or validated
        """
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise DataStoreError(f"Invalid snapshot file {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataStoreError("Snapshot file must contain a mapping at the root level.")

        try:
            snapshot = SnapshotFile(**data)
        except ValidationError as exc:
            raise DataStoreError(f"Invalid snapshot file {path}: {exc}") from exc

        logger.debug("Loaded snapshot %s with %d business(es)", path, len(snapshot.businesses))
        return cls(snapshot, default_timezone=default_timezone)

    def _timezone_for(self, business: BusinessSnapshot) -> str:
        return business.timezone or self.default_timezone

    def _require(self, business_id: str) -> BusinessSnapshot:
        try:
            return self._by_id[business_id]
        except KeyError:
            raise DataStoreError(f"Unknown business id: {business_id}") from None

    async def get_business(self, slug: str) -> Optional[Business]:
        snapshot = self._by_slug.get(slug.lower())
        if snapshot is None:
            return None
        return snapshot.to_domain()

    async def get_services(
        self,
        business_id: str,
        service_ids: Iterable[int],
    ) -> List[ServiceRecord]:
        wanted = set(service_ids)
        business = self._require(business_id)
        return [s.to_domain() for s in business.services if s.id in wanted]

    async def get_attendance(
        self,
        business_id: str,
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[AttendanceRecord]:
        business = self._require(business_id)
        tz = self._timezone_for(business)
        records = [a.to_domain(tz) for a in business.attendance]
        return [r for r in records if overlaps_day(r, day_start, day_end)]

    async def get_bookings(
        self,
        business_id: str,
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[Booking]:
        business = self._require(business_id)
        tz = self._timezone_for(business)
        bookings = [b.to_domain(tz) for b in business.bookings]
        return [
            b for b in bookings
            if b.status.upper() != CANCELLED_STATUS
            and b.scheduled_at is not None
            and day_start <= b.scheduled_at < day_end
        ]
