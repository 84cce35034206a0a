from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from facility_navigator.errors import RouteUnavailable
from facility_navigator.models import Coordinates


@dataclass(frozen=True)
class DirectionsPayload:
    duration_seconds: float
    path: tuple[Coordinates, ...]
    distance_meters: float | None = None


class DirectionsClient(Protocol):
    async def directions(self, origin: Coordinates, destination: Coordinates) -> DirectionsPayload: ...


def _format_point(point: Coordinates) -> str:
    return f"{point.latitude},{point.longitude}"


def _to_point(raw: dict[str, Any]) -> Coordinates:
    return Coordinates(latitude=float(raw["lat"]), longitude=float(raw["lng"]))


class GoogleDirectionsClient:
    DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = DIRECTIONS_URL,
        mode: str = "driving",
        timeout_seconds: float = 10.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._mode = mode
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def directions(self, origin: Coordinates, destination: Coordinates) -> DirectionsPayload:
        if not self._api_key:
            raise RouteUnavailable("DIRECTIONS_NOT_CONFIGURED", "DIRECTIONS_API_KEY is not set")
        params = {
            "origin": _format_point(origin),
            "destination": _format_point(destination),
            "mode": self._mode,
            "key": self._api_key,
        }
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(self._base_url, params=params)
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise RouteUnavailable("DIRECTIONS_TIMEOUT", "Directions provider timeout") from exc
        except httpx.HTTPStatusError as exc:
            raise RouteUnavailable("DIRECTIONS_HTTP_ERROR", "Directions provider returned error") from exc
        except httpx.HTTPError as exc:
            raise RouteUnavailable("DIRECTIONS_FAILURE", "Directions request failed") from exc
        except ValueError as exc:
            raise RouteUnavailable("DIRECTIONS_DECODE_ERROR", "Directions provider returned invalid JSON") from exc

        status = data.get("status") if isinstance(data, dict) else None
        if status != "OK" or not data.get("routes"):
            raise RouteUnavailable("DIRECTIONS_NO_ROUTE", f"No route found, status: {status}")
        return self._parse_leg(data)

    def _parse_leg(self, data: dict[str, Any]) -> DirectionsPayload:
        try:
            leg = data["routes"][0]["legs"][0]
            # Prefer the traffic-aware duration when the provider includes it.
            if "duration_in_traffic" in leg:
                seconds = float(leg["duration_in_traffic"]["value"])
            else:
                seconds = float(leg["duration"]["value"])
            path = [_to_point(leg["start_location"])]
            path.extend(_to_point(step["end_location"]) for step in leg.get("steps", []))
            if len(path) == 1:
                path.append(_to_point(leg["end_location"]))
            distance = leg.get("distance", {}).get("value")
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise RouteUnavailable("DIRECTIONS_DECODE_ERROR", "Directions response is missing route data") from exc
        return DirectionsPayload(
            duration_seconds=seconds,
            path=tuple(path),
            distance_meters=float(distance) if distance is not None else None,
        )
