from __future__ import annotations

from dataclasses import replace

import pytest

from facility_navigator.models import (
    Coordinates,
    ErrorKind,
    Facility,
    PermissionState,
    RouteResult,
)
from facility_navigator.session import (
    FacilitiesFailed,
    FacilitiesLoaded,
    LocationFailed,
    LocationResolved,
    MapBackgroundTapped,
    MarkerSelected,
    Mounted,
    PermissionResolved,
    RouteFailed,
    RouteResolved,
    SearchTextChanged,
    SessionPhase,
    SessionState,
    StartupSettled,
    Unmounted,
    reduce,
)

USER = Coordinates(5.041, 7.831)
A = Facility(id="A", name="Alpha", location=Coordinates(5.04, 7.83))
B = Facility(id="B", name="Beta", location=Coordinates(5.05, 7.84))


def _route(destination: Coordinates, minutes: int = 3) -> RouteResult:
    return RouteResult(duration_minutes=minutes, path=(USER, destination), origin=USER, destination=destination)


def _ready(*facilities: Facility) -> SessionState:
    state = reduce(SessionState(), Mounted())
    state = reduce(state, PermissionResolved(PermissionState.GRANTED))
    state = reduce(state, LocationResolved(USER))
    state = reduce(state, FacilitiesLoaded(tuple(facilities)))
    return reduce(state, StartupSettled())


def test_mount_starts_loading() -> None:
    state = reduce(SessionState(), Mounted())
    assert state.loading
    assert state.mounted
    assert state.phase is SessionPhase.INITIALIZING


def test_facilities_and_location_resolve_nearest() -> None:
    state = _ready(A, B)

    assert state.nearest is not None
    assert state.nearest.facility.id == "A"
    assert state.routed_destination_id == "A"
    assert not state.loading
    assert state.phase is SessionPhase.READY


def test_facilities_without_location_leave_nearest_absent() -> None:
    state = reduce(SessionState(), Mounted())
    state = reduce(state, FacilitiesLoaded((A, B)))
    assert state.nearest is None
    assert state.routed_destination_id is None


def test_permission_denied_clears_location_features() -> None:
    state = reduce(SessionState(), Mounted())
    state = reduce(state, FacilitiesLoaded((A, B)))
    state = reduce(state, PermissionResolved(PermissionState.DENIED))

    assert state.permission_state is PermissionState.DENIED
    assert state.last_error is ErrorKind.PERMISSION_DENIED
    assert state.nearest is None
    assert state.route is None
    assert state.facilities == (A, B)


def test_new_nearest_supersedes_route_request() -> None:
    state = _ready(A)
    first_request = state.route_request_id
    state = reduce(state, RouteResolved(first_request, "A", _route(A.location)))
    assert state.route is not None

    closer = replace(B, location=Coordinates(5.0411, 7.8311))
    state = reduce(state, FacilitiesLoaded((A, closer)))

    assert state.routed_destination_id == "B"
    assert state.route_request_id == first_request + 1
    assert state.route is None


def test_stale_route_response_is_dropped() -> None:
    state = _ready(A)
    d1_request = state.route_request_id
    closer = replace(B, location=Coordinates(5.0411, 7.8311))
    state = reduce(state, FacilitiesLoaded((A, closer)))
    d2_request = state.route_request_id

    late = reduce(state, RouteResolved(d1_request, "A", _route(A.location, minutes=9)))
    assert late is state

    state = reduce(state, RouteResolved(d2_request, "B", _route(closer.location, minutes=1)))
    assert state.route is not None and state.route.duration_minutes == 1


def test_location_change_supersedes_route_to_same_facility() -> None:
    state = _ready(A, B)
    first_request = state.route_request_id
    state = reduce(state, RouteResolved(first_request, "A", _route(A.location)))
    moved = Coordinates(5.0405, 7.8305)

    state = reduce(state, LocationResolved(moved))

    assert state.nearest is not None and state.nearest.facility == A
    assert state.route is None
    assert state.routed_origin == moved
    assert state.route_request_id == first_request + 1

    late = reduce(state, RouteResolved(first_request, "A", _route(A.location)))
    assert late is state

    fresh = RouteResult(duration_minutes=2, path=(moved, A.location), origin=moved, destination=A.location)
    state = reduce(state, RouteResolved(state.route_request_id, "A", fresh))
    assert state.route == fresh


def test_same_location_and_nearest_keeps_route() -> None:
    state = _ready(A, B)
    state = reduce(state, RouteResolved(state.route_request_id, "A", _route(A.location)))
    request_id = state.route_request_id

    state = reduce(state, LocationResolved(USER))
    state = reduce(state, FacilitiesLoaded((A, B)))

    assert state.route is not None
    assert state.route_request_id == request_id


def test_route_from_another_origin_is_dropped() -> None:
    state = _ready(A)
    elsewhere = Coordinates(5.2, 7.9)
    stray = RouteResult(duration_minutes=7, path=(elsewhere, A.location), origin=elsewhere, destination=A.location)

    assert reduce(state, RouteResolved(state.route_request_id, "A", stray)) is state


def test_route_failure_only_applies_to_current_request() -> None:
    state = _ready(A)
    stale = reduce(state, RouteFailed(state.route_request_id - 1, "A", "DIRECTIONS_HTTP_ERROR"))
    assert stale is state

    state = reduce(state, RouteFailed(state.route_request_id, "A", "DIRECTIONS_HTTP_ERROR"))
    assert state.last_error is ErrorKind.ROUTE_UNAVAILABLE
    assert state.route is None
    assert state.nearest is not None


def test_failures_keep_previously_loaded_data() -> None:
    state = _ready(A, B)
    state = reduce(state, FacilitiesFailed("UPSTREAM_TIMEOUT"))
    assert state.facilities == (A, B)
    assert state.last_error is ErrorKind.FETCH_FAILED

    state = reduce(state, LocationFailed("LOCATION_TIMEOUT"))
    assert state.current_location == USER
    assert state.last_error is ErrorKind.LOCATION_UNAVAILABLE


def test_marker_selection_and_clear_are_idempotent() -> None:
    state = _ready(A, B)
    selected = reduce(state, MarkerSelected("B"))
    assert selected.selected == B
    assert reduce(selected, MarkerSelected("B")) is selected
    assert reduce(selected, MarkerSelected("unknown")) is selected

    cleared = reduce(selected, MapBackgroundTapped())
    assert cleared.selected is None
    assert reduce(cleared, MapBackgroundTapped()) is cleared


def test_reloaded_facilities_drop_vanished_selection() -> None:
    state = reduce(_ready(A, B), MarkerSelected("B"))
    state = reduce(state, FacilitiesLoaded((A,)))
    assert state.selected is None


def test_search_text_updates_query_only() -> None:
    state = _ready(A, B)
    updated = reduce(state, SearchTextChanged("beta"))
    assert updated.search_query == "beta"
    assert updated.facilities == state.facilities
    assert updated.route_request_id == state.route_request_id


def test_events_after_unmount_are_ignored() -> None:
    state = reduce(_ready(A, B), Unmounted())
    assert not state.mounted
    assert reduce(state, FacilitiesLoaded(())) is state
    assert reduce(state, MarkerSelected("A")) is state


def test_unknown_event_is_rejected() -> None:
    state = reduce(SessionState(), Mounted())
    with pytest.raises(TypeError):
        reduce(state, object())  # type: ignore[arg-type]
