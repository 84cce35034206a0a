"""Session state, the pure reducer over session events, and the async coordinator.

The coordinator owns exactly one ``SessionState``. Every change goes through
``reduce``; completed async work is turned into events and dispatched back
into the reducer, which also drops results that belong to a superseded route
request or arrive after the session was unmounted.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from facility_navigator.errors import FetchFailed, LocationUnavailable, PermissionDenied, RouteUnavailable
from facility_navigator.location import LocationProvider
from facility_navigator.models import (
    Coordinates,
    ErrorKind,
    Facility,
    PermissionState,
    ProximityResult,
    RouteResult,
)
from facility_navigator.observability import get_tracer
from facility_navigator.proximity import nearest
from facility_navigator.repositories.facility_repository import FacilityRepository, FetchOutcome
from facility_navigator.retry import with_exponential_backoff
from facility_navigator.search import filter_facilities
from facility_navigator.services.route_service import RouteService

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass(frozen=True)
class SessionState:
    permission_state: PermissionState = PermissionState.UNREQUESTED
    loading: bool = False
    facilities: tuple[Facility, ...] = ()
    current_location: Coordinates | None = None
    nearest: ProximityResult | None = None
    route: RouteResult | None = None
    search_query: str = ""
    selected: Facility | None = None
    last_error: ErrorKind | None = None
    phase: SessionPhase = SessionPhase.INITIALIZING
    routed_destination_id: str | None = None
    routed_origin: Coordinates | None = None
    route_request_id: int = 0
    mounted: bool = False


@dataclass(frozen=True)
class MapRegion:
    center: Coordinates
    latitude_delta: float
    longitude_delta: float


# Events


@dataclass(frozen=True)
class Mounted:
    pass


@dataclass(frozen=True)
class Unmounted:
    pass


@dataclass(frozen=True)
class RefreshStarted:
    pass


@dataclass(frozen=True)
class StartupSettled:
    pass


@dataclass(frozen=True)
class PermissionResolved:
    permission: PermissionState


@dataclass(frozen=True)
class LocationResolved:
    location: Coordinates


@dataclass(frozen=True)
class LocationFailed:
    code: str


@dataclass(frozen=True)
class FacilitiesLoaded:
    facilities: tuple[Facility, ...]


@dataclass(frozen=True)
class FacilitiesFailed:
    code: str


@dataclass(frozen=True)
class RouteResolved:
    request_id: int
    destination_id: str
    route: RouteResult


@dataclass(frozen=True)
class RouteFailed:
    request_id: int
    destination_id: str
    code: str


@dataclass(frozen=True)
class MarkerSelected:
    facility_id: str


@dataclass(frozen=True)
class MapBackgroundTapped:
    pass


@dataclass(frozen=True)
class SearchTextChanged:
    text: str


SessionEvent = (
    Mounted
    | Unmounted
    | RefreshStarted
    | StartupSettled
    | PermissionResolved
    | LocationResolved
    | LocationFailed
    | FacilitiesLoaded
    | FacilitiesFailed
    | RouteResolved
    | RouteFailed
    | MarkerSelected
    | MapBackgroundTapped
    | SearchTextChanged
)


def _recompute_nearest(state: SessionState) -> SessionState:
    if state.permission_state is PermissionState.GRANTED and state.current_location is not None:
        result = nearest(state.current_location, state.facilities)
    else:
        result = None

    # A route belongs to one (origin, destination) pair; a change to either supersedes it.
    destination_id = result.facility.id if result is not None else None
    origin = state.current_location if result is not None else None
    if destination_id == state.routed_destination_id and origin == state.routed_origin:
        return replace(state, nearest=result)
    return replace(
        state,
        nearest=result,
        route=None,
        routed_destination_id=destination_id,
        routed_origin=origin,
        route_request_id=state.route_request_id + 1,
    )


def _is_current_route(state: SessionState, request_id: int, destination_id: str) -> bool:
    return request_id == state.route_request_id and destination_id == state.routed_destination_id


def reduce(state: SessionState, event: SessionEvent) -> SessionState:
    if isinstance(event, Mounted):
        return SessionState(loading=True, mounted=True)
    if not state.mounted:
        return state
    if isinstance(event, Unmounted):
        return replace(state, mounted=False, loading=False)

    if isinstance(event, RefreshStarted):
        return replace(state, loading=True, phase=SessionPhase.INITIALIZING)
    if isinstance(event, StartupSettled):
        return replace(state, loading=False, phase=SessionPhase.READY)

    if isinstance(event, PermissionResolved):
        if event.permission is PermissionState.GRANTED:
            return replace(state, permission_state=event.permission)
        denied = replace(
            state,
            permission_state=PermissionState.DENIED,
            current_location=None,
            last_error=ErrorKind.PERMISSION_DENIED,
        )
        return _recompute_nearest(denied)
    if isinstance(event, LocationResolved):
        return _recompute_nearest(replace(state, current_location=event.location))
    if isinstance(event, LocationFailed):
        return replace(state, last_error=ErrorKind.LOCATION_UNAVAILABLE)

    if isinstance(event, FacilitiesLoaded):
        selected = state.selected
        if selected is not None:
            selected = next((item for item in event.facilities if item.id == selected.id), None)
        return _recompute_nearest(replace(state, facilities=event.facilities, selected=selected))
    if isinstance(event, FacilitiesFailed):
        return replace(state, last_error=ErrorKind.FETCH_FAILED)

    if isinstance(event, RouteResolved):
        stale = not _is_current_route(state, event.request_id, event.destination_id)
        if stale or event.route.origin != state.routed_origin:
            return state
        return replace(state, route=event.route)
    if isinstance(event, RouteFailed):
        if not _is_current_route(state, event.request_id, event.destination_id):
            return state
        return replace(state, route=None, last_error=ErrorKind.ROUTE_UNAVAILABLE)

    if isinstance(event, MarkerSelected):
        match = next((item for item in state.facilities if item.id == event.facility_id), None)
        if match is None or match == state.selected:
            return state
        return replace(state, selected=match)
    if isinstance(event, MapBackgroundTapped):
        if state.selected is None:
            return state
        return replace(state, selected=None)
    if isinstance(event, SearchTextChanged):
        if event.text == state.search_query:
            return state
        return replace(state, search_query=event.text)

    raise TypeError(f"unsupported session event: {event!r}")


StateListener = Callable[[SessionState], None]


class SessionCoordinator:
    def __init__(
        self,
        location_provider: LocationProvider,
        repository: FacilityRepository,
        route_service: RouteService,
        default_region: MapRegion,
        fetch_attempts: int = 1,
    ) -> None:
        self._location_provider = location_provider
        self._repository = repository
        self._route_service = route_service
        self._default_region = default_region
        self._fetch_attempts = fetch_attempts
        self._state = SessionState()
        self._listeners: list[StateListener] = []
        self._startup_task: asyncio.Task | None = None
        self._route_task: asyncio.Task | None = None
        self._tracer = get_tracer(__name__)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def filtered_facilities(self) -> tuple[Facility, ...]:
        return filter_facilities(self._state.facilities, self._state.search_query)

    @property
    def markers(self) -> tuple[Facility, ...]:
        return tuple(item for item in self.filtered_facilities if item.location is not None)

    def map_region(self) -> MapRegion:
        location = self._state.current_location
        if location is None:
            return self._default_region
        return replace(self._default_region, center=location)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def mount(self) -> None:
        if self._state.mounted:
            raise RuntimeError("session is already mounted")
        with self._tracer.start_as_current_span("session.mount"):
            self._dispatch(Mounted())
            await self._run_startup(request_permission=True)

    async def refresh(self) -> None:
        if not self._state.mounted:
            raise RuntimeError("session is not mounted")
        with self._tracer.start_as_current_span("session.refresh"):
            self._dispatch(RefreshStarted())
            await self._run_startup(request_permission=False)

    async def unmount(self) -> None:
        self._dispatch(Unmounted())
        pending = [task for task in (self._startup_task, self._route_task) if task is not None and not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._route_task = None
        self._startup_task = None
        logger.info("session_unmounted", extra={"cancelled_tasks": len(pending)})

    async def wait_for_route(self) -> RouteResult | None:
        while self._route_task is not None and not self._route_task.done():
            await asyncio.wait({self._route_task})
        return self._state.route

    def on_marker_selected(self, facility_id: str) -> None:
        self._dispatch(MarkerSelected(facility_id))

    def on_map_background_tapped(self) -> None:
        self._dispatch(MapBackgroundTapped())

    def on_search_text_changed(self, text: str) -> None:
        self._dispatch(SearchTextChanged(text))

    async def _run_startup(self, request_permission: bool) -> None:
        self._startup_task = asyncio.create_task(self._load(request_permission))
        try:
            await self._startup_task
        except asyncio.CancelledError:
            if self._state.mounted:
                raise
            logger.info("session_startup_abandoned")

    async def _load(self, request_permission: bool) -> None:
        # Location and facility loading are independent; loading clears when both settle.
        await asyncio.gather(
            self._resolve_location(request_permission),
            self._load_facilities(),
        )
        self._dispatch(StartupSettled())

    async def _resolve_location(self, request_permission: bool) -> None:
        if request_permission:
            try:
                permission = await self._location_provider.request_access()
            except PermissionDenied:
                permission = PermissionState.DENIED
            except Exception:
                logger.exception("location_permission_failed")
                permission = PermissionState.DENIED
            self._dispatch(PermissionResolved(permission))
        if self._state.permission_state is not PermissionState.GRANTED:
            logger.info("location_skipped", extra={"permission": self._state.permission_state.value})
            return

        try:
            position = await self._location_provider.current_position()
        except LocationUnavailable as exc:
            logger.warning(
                "location_unavailable",
                extra={"kind": exc.kind.value, "code": exc.code, "reason": exc.message},
            )
            self._dispatch(LocationFailed(exc.code))
            return
        except Exception:
            logger.exception("location_provider_failed")
            self._dispatch(LocationFailed("LOCATION_PROVIDER_ERROR"))
            return
        self._dispatch(LocationResolved(position))

    async def _load_facilities(self) -> None:
        async def _fetch_once() -> FetchOutcome:
            outcome = await self._repository.fetch_all()
            if outcome.error is not None:
                raise outcome.error
            return outcome

        try:
            outcome = await with_exponential_backoff(
                _fetch_once,
                attempts=self._fetch_attempts,
                on_retry=lambda attempt, delay: logger.info(
                    "facility_fetch_retry", extra={"attempt": attempt, "delay_seconds": delay}
                ),
            )
        except FetchFailed as exc:
            self._dispatch(FacilitiesFailed(exc.code))
            return
        except Exception:
            logger.exception("facility_fetch_unexpected_error")
            self._dispatch(FacilitiesFailed("UPSTREAM_UNEXPECTED"))
            return
        self._dispatch(FacilitiesLoaded(outcome.facilities))

    def _dispatch(self, event: SessionEvent) -> None:
        previous = self._state
        self._state = reduce(previous, event)
        if self._state is previous:
            return
        if self._state.route_request_id != previous.route_request_id:
            self._schedule_route()
        for listener in list(self._listeners):
            listener(self._state)

    def _schedule_route(self) -> None:
        if self._route_task is not None and not self._route_task.done():
            self._route_task.cancel()
            logger.info("route_request_superseded", extra={"destination_id": self._state.routed_destination_id})
        self._route_task = None

        result = self._state.nearest
        origin = self._state.current_location
        if result is None or origin is None or result.facility.location is None:
            return
        self._route_task = asyncio.create_task(
            self._request_route(
                self._state.route_request_id,
                result.facility.id,
                origin,
                result.facility.location,
            )
        )

    async def _request_route(
        self,
        request_id: int,
        destination_id: str,
        origin: Coordinates,
        destination: Coordinates,
    ) -> None:
        with self._tracer.start_as_current_span("session.route"):
            try:
                result = await self._route_service.route(origin, destination)
            except RouteUnavailable as exc:
                if self._discard_route_response(request_id, destination_id, origin):
                    return
                logger.warning(
                    "route_unavailable",
                    extra={"destination_id": destination_id, "kind": exc.kind.value, "code": exc.code},
                )
                self._dispatch(RouteFailed(request_id, destination_id, exc.code))
                return
            except Exception:
                if self._discard_route_response(request_id, destination_id, origin):
                    return
                logger.exception("route_request_failed", extra={"destination_id": destination_id})
                self._dispatch(RouteFailed(request_id, destination_id, "ROUTE_UNEXPECTED"))
                return
        if self._discard_route_response(request_id, destination_id, origin):
            return
        self._dispatch(RouteResolved(request_id, destination_id, result))

    def _discard_route_response(self, request_id: int, destination_id: str, origin: Coordinates) -> bool:
        state = self._state
        if state.mounted and _is_current_route(state, request_id, destination_id) and origin == state.routed_origin:
            return False
        logger.info(
            "route_response_discarded",
            extra={"destination_id": destination_id, "request_id": request_id, "mounted": state.mounted},
        )
        return True

