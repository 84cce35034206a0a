from __future__ import annotations

import asyncio

import pytest

from facility_navigator.errors import LocationUnavailable
from facility_navigator.location import FixedLocationProvider, TimeoutLocationProvider
from facility_navigator.models import Coordinates, PermissionState


@pytest.mark.asyncio
async def test_fixed_provider_returns_position_after_grant() -> None:
    provider = FixedLocationProvider(Coordinates(5.041, 7.831))
    assert await provider.request_access() is PermissionState.GRANTED
    assert await provider.current_position() == Coordinates(5.041, 7.831)


@pytest.mark.asyncio
async def test_fixed_provider_requires_access_first() -> None:
    provider = FixedLocationProvider(Coordinates(5.041, 7.831))
    with pytest.raises(LocationUnavailable):
        await provider.current_position()


@pytest.mark.asyncio
async def test_fixed_provider_denied_never_reports_position() -> None:
    provider = FixedLocationProvider(Coordinates(5.041, 7.831), permission=PermissionState.DENIED)
    assert await provider.request_access() is PermissionState.DENIED
    with pytest.raises(LocationUnavailable):
        await provider.current_position()


@pytest.mark.asyncio
async def test_fixed_provider_without_fix_is_unavailable() -> None:
    provider = FixedLocationProvider(None)
    await provider.request_access()
    with pytest.raises(LocationUnavailable) as exc_info:
        await provider.current_position()
    assert exc_info.value.code == "LOCATION_NO_FIX"


def test_fixed_provider_rejects_unrequested_outcome() -> None:
    with pytest.raises(ValueError):
        FixedLocationProvider(None, permission=PermissionState.UNREQUESTED)


class SlowProvider:
    async def request_access(self) -> PermissionState:
        return PermissionState.GRANTED

    async def current_position(self) -> Coordinates:
        await asyncio.sleep(1)
        return Coordinates(0.0, 0.0)


@pytest.mark.asyncio
async def test_timeout_provider_converts_slow_fix() -> None:
    provider = TimeoutLocationProvider(SlowProvider(), timeout_seconds=0.01)
    assert await provider.request_access() is PermissionState.GRANTED
    with pytest.raises(LocationUnavailable) as exc_info:
        await provider.current_position()
    assert exc_info.value.code == "LOCATION_TIMEOUT"
