"""
Business store backed by the booking backend's REST API.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import requests
from pendulum import DateTime
from pydantic import ValidationError

from ..domain.attendance import ACTIVE_ATTENDANCE_STATUSES
from ..domain.bookings import CANCELLED_STATUS
from ..domain.exceptions import DataStoreError
from ..domain.models import AttendanceRecord, Booking, Business, ServiceRecord
from .payloads import AttendancePayload, BookingPayload, BusinessPayload, ServicePayload

logger = logging.getLogger(__name__)


class HttpBusinessStore:
    """
    Client for the backend's read-only business endpoints.

    Endpoints used:
    - GET /businesses/{slug}
    - GET /businesses/{id}/services?ids=1,2
    - GET /businesses/{id}/attendance?from=...&to=...&status=PRESENT,LATE
    - GET /businesses/{id}/bookings?from=...&to=...&exclude_status=CANCELLED

    ``requests`` is blocking, so every call runs in a worker thread; the
    service layer can then await all four fetches concurrently.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout_seconds: float = 10.0,
        default_timezone: str = "Asia/Manila",
    ):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the backend API
            api_token: Optional bearer token
            timeout_seconds: Per-request timeout
            default_timezone: Used when a business record has no timezone
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.default_timezone = default_timezone
        self.headers = {"Accept": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s %s", url, params or "")
        try:
            response = requests.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout_seconds,
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise DataStoreError(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise DataStoreError(f"Invalid JSON from {url}: {e}") from e

    async def _fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await asyncio.to_thread(self._get, path, params)

    async def _fetch_list(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = await self._fetch(path, params)
        if data is None:
            return []
        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise DataStoreError(f"Expected a list from {path}")
        return data

    def _timezone(self, day_start: DateTime) -> str:
        # Day bounds are built in the business zone; naive rows share it.
        return day_start.timezone_name or self.default_timezone

    async def get_business(self, slug: str) -> Optional[Business]:
        data = await self._fetch(f"/businesses/{slug}")
        if data is None:
            return None
        try:
            return BusinessPayload(**data).to_domain()
        except (TypeError, ValidationError) as exc:
            raise DataStoreError(f"Invalid business payload for '{slug}': {exc}") from exc

    async def get_services(
        self,
        business_id: str,
        service_ids: Iterable[int],
    ) -> List[ServiceRecord]:
        ids = sorted(set(service_ids))
        if not ids:
            return []
        rows = await self._fetch_list(
            f"/businesses/{business_id}/services",
            {"ids": ",".join(str(i) for i in ids)},
        )
        try:
            return [ServicePayload(**row).to_domain() for row in rows]
        except (TypeError, ValidationError) as exc:
            raise DataStoreError(f"Invalid service payload: {exc}") from exc

    async def get_attendance(
        self,
        business_id: str,
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[AttendanceRecord]:
        rows = await self._fetch_list(
            f"/businesses/{business_id}/attendance",
            {
                "from": day_start.to_iso8601_string(),
                "to": day_end.to_iso8601_string(),
                "status": ",".join(sorted(ACTIVE_ATTENDANCE_STATUSES)),
            },
        )
        tz = self._timezone(day_start)
        try:
            return [AttendancePayload(**row).to_domain(tz) for row in rows]
        except (TypeError, ValidationError) as exc:
            raise DataStoreError(f"Invalid attendance payload: {exc}") from exc

    async def get_bookings(
        self,
        business_id: str,
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[Booking]:
        rows = await self._fetch_list(
            f"/businesses/{business_id}/bookings",
            {
                "from": day_start.to_iso8601_string(),
                "to": day_end.to_iso8601_string(),
                "exclude_status": CANCELLED_STATUS,
            },
        )
        tz = self._timezone(day_start)
        try:
            return [BookingPayload(**row).to_domain(tz) for row in rows]
        except (TypeError, ValidationError) as exc:
            raise DataStoreError(f"Invalid booking payload: {exc}") from exc
