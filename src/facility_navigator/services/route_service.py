from __future__ import annotations

import logging
import math

from facility_navigator.circuit_breaker import CircuitBreaker, CircuitOpenError
from facility_navigator.clients.directions_client import DirectionsClient
from facility_navigator.errors import RouteUnavailable
from facility_navigator.models import Coordinates, RouteResult

logger = logging.getLogger(__name__)

# Transport, timeout and HTTP-status failures count against the circuit.
PROVIDER_FAULT_CODES = frozenset({"DIRECTIONS_TIMEOUT", "DIRECTIONS_HTTP_ERROR", "DIRECTIONS_FAILURE"})


def is_provider_fault(exc: Exception) -> bool:
    return not isinstance(exc, RouteUnavailable) or exc.code in PROVIDER_FAULT_CODES


def seconds_to_minutes_ceiling(seconds: float) -> int:
    if seconds < 0:
        raise ValueError("seconds must be >= 0")
    return math.ceil(seconds / 60)


class RouteService:
    def __init__(self, client: DirectionsClient, circuit_breaker: CircuitBreaker | None = None) -> None:
        self._client = client
        self._circuit_breaker = circuit_breaker or CircuitBreaker(is_fault=is_provider_fault)

    async def route(self, origin: Coordinates, destination: Coordinates) -> RouteResult:
        if not origin.is_valid or not destination.is_valid:
            raise RouteUnavailable("ROUTE_INVALID_COORDINATE", "origin or destination out of range")

        try:
            payload = await self._circuit_breaker.call(lambda: self._client.directions(origin, destination))
        except CircuitOpenError as exc:
            raise RouteUnavailable("DIRECTIONS_CIRCUIT_OPEN", "Directions provider temporarily disabled") from exc

        try:
            minutes = seconds_to_minutes_ceiling(payload.duration_seconds)
        except ValueError as exc:
            raise RouteUnavailable("DIRECTIONS_INVALID_DURATION", "Negative travel duration") from exc

        logger.info(
            "route_resolved",
            extra={"duration_minutes": minutes, "path_points": len(payload.path)},
        )
        return RouteResult(
            duration_minutes=minutes,
            path=payload.path,
            origin=origin,
            destination=destination,
            distance_meters=payload.distance_meters,
        )
