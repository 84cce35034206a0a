from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

from facility_navigator.config import load_settings
from facility_navigator.dependencies import build_session_coordinator
from facility_navigator.location import FixedLocationProvider
from facility_navigator.models import Coordinates, Facility, PermissionState
from facility_navigator.observability import configure_otel
from facility_navigator.session import SessionCoordinator

logger = logging.getLogger(__name__)


def _user_position() -> Coordinates | None:
    raw_lat = os.getenv("NAVIGATOR_USER_LAT")
    raw_lng = os.getenv("NAVIGATOR_USER_LNG")
    if not raw_lat or not raw_lng:
        return None
    try:
        return Coordinates(latitude=float(raw_lat), longitude=float(raw_lng))
    except ValueError:
        logger.warning("user_position_unparseable", extra={"latitude": raw_lat, "longitude": raw_lng})
        return None


def _facility_summary(facility: Facility) -> dict[str, Any]:
    location = facility.location
    return {
        "id": facility.id,
        "name": facility.name,
        "services": list(facility.services),
        "location": None if location is None else [location.latitude, location.longitude],
    }


def render_view(coordinator: SessionCoordinator) -> dict[str, Any]:
    state = coordinator.state
    region = coordinator.map_region()
    view: dict[str, Any] = {
        "permission": state.permission_state.value,
        "loading": state.loading,
        "last_error": None if state.last_error is None else state.last_error.value,
        "region": {
            "center": [region.center.latitude, region.center.longitude],
            "latitude_delta": region.latitude_delta,
            "longitude_delta": region.longitude_delta,
        },
        "markers": [_facility_summary(item) for item in coordinator.markers],
        "nearest": None,
        "route": None,
    }
    if state.nearest is not None:
        view["nearest"] = {
            **_facility_summary(state.nearest.facility),
            "distance_meters": round(state.nearest.distance_meters, 2),
        }
    if state.route is not None:
        view["route"] = {
            "duration_minutes": state.route.duration_minutes,
            "path": [[point.latitude, point.longitude] for point in state.route.path],
        }
    return view


async def run_once() -> dict[str, Any]:
    settings = load_settings()
    configure_otel(settings.SERVICE_NAME)
    position = _user_position()
    permission = PermissionState.GRANTED if position is not None else PermissionState.DENIED
    coordinator = build_session_coordinator(settings, FixedLocationProvider(position, permission))
    await coordinator.mount()
    try:
        coordinator.on_search_text_changed(os.getenv("NAVIGATOR_SEARCH", ""))
        await coordinator.wait_for_route()
        return render_view(coordinator)
    finally:
        await coordinator.unmount()


def main() -> None:
    logging.basicConfig(level=os.getenv("NAVIGATOR_LOG_LEVEL", "INFO"))
    print(json.dumps(asyncio.run(run_once()), indent=2))


if __name__ == "__main__":
    main()
