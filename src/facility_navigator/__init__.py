"""Nearest medical facility resolution, routing and session coordination."""

from facility_navigator.distance import haversine_distance_meters
from facility_navigator.errors import (
    FetchFailed,
    InvalidCoordinate,
    LocationUnavailable,
    NavigatorError,
    PermissionDenied,
    RouteUnavailable,
)
from facility_navigator.models import (
    Address,
    Contact,
    Coordinates,
    ErrorKind,
    Facility,
    OpeningHours,
    PermissionState,
    ProximityResult,
    RouteResult,
    Weekday,
)
from facility_navigator.proximity import nearest
from facility_navigator.search import filter_facilities, matches
from facility_navigator.session import MapRegion, SessionCoordinator, SessionState, reduce

__all__ = [
    "Address",
    "Contact",
    "Coordinates",
    "ErrorKind",
    "Facility",
    "FetchFailed",
    "InvalidCoordinate",
    "LocationUnavailable",
    "MapRegion",
    "NavigatorError",
    "OpeningHours",
    "PermissionDenied",
    "PermissionState",
    "ProximityResult",
    "RouteResult",
    "RouteUnavailable",
    "SessionCoordinator",
    "SessionState",
    "Weekday",
    "filter_facilities",
    "haversine_distance_meters",
    "matches",
    "nearest",
    "reduce",
]
