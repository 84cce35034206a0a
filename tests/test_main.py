from __future__ import annotations

import httpx
import pytest

from facility_navigator.__main__ import _user_position, render_view
from facility_navigator.config import NavigatorSettings
from facility_navigator.dependencies import build_session_coordinator
from facility_navigator.location import FixedLocationProvider
from facility_navigator.models import Coordinates


def test_user_position_requires_both_coordinates(monkeypatch) -> None:
    monkeypatch.setenv("NAVIGATOR_USER_LAT", "5.041")
    monkeypatch.delenv("NAVIGATOR_USER_LNG", raising=False)
    assert _user_position() is None

    monkeypatch.setenv("NAVIGATOR_USER_LNG", "7.831")
    assert _user_position() == Coordinates(5.041, 7.831)


def test_user_position_ignores_non_numeric_values(monkeypatch) -> None:
    monkeypatch.setenv("NAVIGATOR_USER_LAT", "five north")
    monkeypatch.setenv("NAVIGATOR_USER_LNG", "7.831")
    assert _user_position() is None


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/hospital":
        return httpx.Response(
            200,
            json=[
                {"_id": "A", "name": "Alpha", "services": ["ER"], "location": {"coordinates": [5.04, 7.83]}},
                {"_id": "B", "name": "Beta", "services": ["Dental"], "location": {"coordinates": [5.05, 7.84]}},
            ],
        )
    if request.url.host == "directions.example.com":
        leg = {
            "duration": {"value": 125},
            "start_location": {"lat": 5.041, "lng": 7.831},
            "end_location": {"lat": 5.04, "lng": 7.83},
            "steps": [{"end_location": {"lat": 5.04, "lng": 7.83}}],
        }
        return httpx.Response(200, json={"status": "OK", "routes": [{"legs": [leg]}]})
    return httpx.Response(404)


@pytest.mark.asyncio
async def test_wired_session_renders_consolidated_view() -> None:
    settings = NavigatorSettings(
        FACILITY_SERVICE_BASE_URL="https://directory.example.com/api",
        DIRECTIONS_API_KEY="secret",
        DIRECTIONS_BASE_URL="https://directions.example.com/json",
    )
    transport = httpx.MockTransport(_handler)
    coordinator = build_session_coordinator(
        settings,
        FixedLocationProvider(Coordinates(5.041, 7.831)),
        client_factory=lambda: httpx.AsyncClient(transport=transport),
    )

    await coordinator.mount()
    coordinator.on_search_text_changed("dental")
    await coordinator.wait_for_route()
    view = render_view(coordinator)
    await coordinator.unmount()

    assert view["permission"] == "granted"
    assert view["nearest"]["id"] == "A"
    assert view["route"]["duration_minutes"] == 3
    assert [marker["id"] for marker in view["markers"]] == ["B"]
    assert view["region"]["center"] == [5.041, 7.831]
