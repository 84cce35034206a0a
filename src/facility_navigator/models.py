from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def parse(cls, raw: str) -> Weekday | None:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class OpeningHours:
    open: str
    close: str


@dataclass(frozen=True)
class Contact:
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""


@dataclass(frozen=True)
class Facility:
    id: str
    name: str
    description: str = ""
    contact: Contact = field(default_factory=Contact)
    address: Address = field(default_factory=Address)
    services: tuple[str, ...] = ()
    operating_hours: Mapping[Weekday, OpeningHours] = field(default_factory=dict)
    location: Coordinates | None = None

    def hours_for(self, day: Weekday) -> OpeningHours | None:
        return self.operating_hours.get(day)


class PermissionState(str, Enum):
    UNREQUESTED = "unrequested"
    GRANTED = "granted"
    DENIED = "denied"


class ErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    FETCH_FAILED = "fetch_failed"
    LOCATION_UNAVAILABLE = "location_unavailable"
    ROUTE_UNAVAILABLE = "route_unavailable"
    INVALID_COORDINATE = "invalid_coordinate"


@dataclass(frozen=True)
class ProximityResult:
    facility: Facility
    distance_meters: float


@dataclass(frozen=True)
class RouteResult:
    duration_minutes: int
    path: tuple[Coordinates, ...]
    origin: Coordinates
    destination: Coordinates
    distance_meters: float | None = None
