from __future__ import annotations

import logging
from collections.abc import Sequence

from facility_navigator.distance import haversine_distance_meters
from facility_navigator.models import Coordinates, Facility, ProximityResult

logger = logging.getLogger(__name__)


def nearest(location: Coordinates, facilities: Sequence[Facility]) -> ProximityResult | None:
    """Return the facility closest to ``location``, or ``None`` if nothing can be ranked.

    Facilities without a usable location are skipped. Ties keep the earliest
    facility in input order.
    """
    if not location.is_valid:
        logger.warning("proximity_origin_invalid", extra={"lat": location.latitude, "lng": location.longitude})
        return None

    best: ProximityResult | None = None
    skipped = 0
    for facility in facilities:
        if facility.location is None or not facility.location.is_valid:
            skipped += 1
            continue
        distance = haversine_distance_meters(location, facility.location)
        if best is None or distance < best.distance_meters:
            best = ProximityResult(facility=facility, distance_meters=distance)

    if skipped:
        logger.info("proximity_facilities_skipped", extra={"skipped": skipped, "total": len(facilities)})
    return best
