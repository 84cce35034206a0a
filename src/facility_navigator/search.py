from __future__ import annotations

from collections.abc import Iterable

from facility_navigator.models import Facility


def matches(facility: Facility, query: str) -> bool:
    needle = query.strip().casefold()
    if not needle:
        return True
    if needle in facility.name.casefold():
        return True
    return any(needle in service.casefold() for service in facility.services)


def filter_facilities(facilities: Iterable[Facility], query: str) -> tuple[Facility, ...]:
    return tuple(facility for facility in facilities if matches(facility, query))
