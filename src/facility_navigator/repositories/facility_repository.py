from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from facility_navigator.clients.facility_directory_client import FacilityDirectoryClient
from facility_navigator.errors import FetchFailed
from facility_navigator.models import Facility
from facility_navigator.schemas import FacilityPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchOutcome:
    facilities: tuple[Facility, ...]
    error: FetchFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FacilityRepository:
    def __init__(self, client: FacilityDirectoryClient) -> None:
        self._client = client

    async def fetch_all(self) -> FetchOutcome:
        """Fetch the directory once; failures come back in the outcome instead of raising."""
        try:
            rows = await self._client.fetch_facilities()
        except FetchFailed as exc:
            logger.warning("facility_fetch_failed", extra={"code": exc.code, "reason": exc.message})
            return FetchOutcome(facilities=(), error=exc)

        facilities = tuple(entity for entity in (self._to_entity(row) for row in rows) if entity is not None)
        logger.info(
            "facility_fetch_completed",
            extra={"received": len(rows), "accepted": len(facilities)},
        )
        return FetchOutcome(facilities=facilities)

    async def fetch_one(self, facility_id: str) -> Facility:
        row = await self._client.fetch_facility(facility_id)
        entity = self._to_entity(row)
        if entity is None:
            raise FetchFailed("UPSTREAM_DECODE_ERROR", f"Facility '{facility_id}' could not be decoded")
        return entity

    def _to_entity(self, row: Any) -> Facility | None:
        try:
            return FacilityPayload.model_validate(row).to_entity()
        except ValidationError as exc:
            logger.warning("facility_record_skipped", extra={"errors": exc.error_count()})
            return None
