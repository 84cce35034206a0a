from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from facility_navigator.models import ErrorKind


@dataclass
class NavigatorError(Exception):
    """Base error for collaborator failures that the session absorbs into state."""

    code: str
    message: str

    kind: ClassVar[ErrorKind]

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class PermissionDenied(NavigatorError):
    kind = ErrorKind.PERMISSION_DENIED


class FetchFailed(NavigatorError):
    kind = ErrorKind.FETCH_FAILED


class LocationUnavailable(NavigatorError):
    kind = ErrorKind.LOCATION_UNAVAILABLE


class RouteUnavailable(NavigatorError):
    kind = ErrorKind.ROUTE_UNAVAILABLE


class InvalidCoordinate(NavigatorError):
    kind = ErrorKind.INVALID_COORDINATE
