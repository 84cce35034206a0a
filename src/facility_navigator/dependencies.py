from __future__ import annotations

from collections.abc import Callable

import httpx

from facility_navigator.circuit_breaker import CircuitBreaker
from facility_navigator.clients.directions_client import GoogleDirectionsClient
from facility_navigator.clients.facility_directory_client import FacilityDirectoryClient
from facility_navigator.config import NavigatorSettings
from facility_navigator.location import LocationProvider, TimeoutLocationProvider
from facility_navigator.repositories.facility_repository import FacilityRepository
from facility_navigator.services.route_service import RouteService, is_provider_fault
from facility_navigator.session import MapRegion, SessionCoordinator


def build_facility_repository(
    settings: NavigatorSettings,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> FacilityRepository:
    client = FacilityDirectoryClient(
        base_url=settings.FACILITY_SERVICE_BASE_URL,
        timeout_seconds=settings.FACILITY_SERVICE_TIMEOUT_SECONDS,
        client_factory=client_factory,
    )
    return FacilityRepository(client)


def build_route_service(
    settings: NavigatorSettings,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> RouteService:
    client = GoogleDirectionsClient(
        api_key=settings.DIRECTIONS_API_KEY,
        base_url=settings.DIRECTIONS_BASE_URL,
        mode=settings.DIRECTIONS_MODE,
        timeout_seconds=settings.DIRECTIONS_TIMEOUT_SECONDS,
        client_factory=client_factory,
    )
    return RouteService(
        client,
        CircuitBreaker(
            provider="directions",
            failure_threshold=3,
            recovery_timeout_seconds=30,
            is_fault=is_provider_fault,
        ),
    )


def build_session_coordinator(
    settings: NavigatorSettings,
    location_provider: LocationProvider,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> SessionCoordinator:
    return SessionCoordinator(
        location_provider=TimeoutLocationProvider(location_provider, settings.LOCATION_TIMEOUT_SECONDS),
        repository=build_facility_repository(settings, client_factory),
        route_service=build_route_service(settings, client_factory),
        default_region=MapRegion(
            center=settings.default_region_center,
            latitude_delta=settings.DEFAULT_REGION_DELTA,
            longitude_delta=settings.DEFAULT_REGION_DELTA,
        ),
        fetch_attempts=settings.FACILITY_FETCH_ATTEMPTS,
    )
