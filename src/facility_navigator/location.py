from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from facility_navigator.errors import LocationUnavailable
from facility_navigator.models import Coordinates, PermissionState

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    async def request_access(self) -> PermissionState: ...

    async def current_position(self) -> Coordinates: ...


class FixedLocationProvider:
    """Reports a known position, e.g. one forwarded by the host platform."""

    def __init__(
        self,
        position: Coordinates | None,
        permission: PermissionState = PermissionState.GRANTED,
    ) -> None:
        if permission is PermissionState.UNREQUESTED:
            raise ValueError("permission must resolve to granted or denied")
        self._position = position
        self._permission = permission
        self._state = PermissionState.UNREQUESTED

    async def request_access(self) -> PermissionState:
        self._state = self._permission
        return self._state

    async def current_position(self) -> Coordinates:
        if self._state is not PermissionState.GRANTED:
            raise LocationUnavailable("LOCATION_NOT_GRANTED", "location access has not been granted")
        if self._position is None:
            raise LocationUnavailable("LOCATION_NO_FIX", "no position fix available")
        if not self._position.is_valid:
            raise LocationUnavailable("LOCATION_INVALID", f"position out of range: {self._position}")
        return self._position


class TimeoutLocationProvider:
    def __init__(self, delegate: LocationProvider, timeout_seconds: float) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._delegate = delegate
        self._timeout_seconds = timeout_seconds

    async def request_access(self) -> PermissionState:
        return await self._delegate.request_access()

    async def current_position(self) -> Coordinates:
        try:
            return await asyncio.wait_for(self._delegate.current_position(), timeout=self._timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.warning("location_fix_timeout", extra={"timeout_seconds": self._timeout_seconds})
            raise LocationUnavailable("LOCATION_TIMEOUT", "position fix timed out") from exc
