"""
Distance resolution for the route step.

Assumption
----------
Road distance and duration come from an external routing service and
are sent by the client together with the route.  When a client only has
coordinates we fall back to great-circle (Haversine) distance so the
wizard can still price the trip; it underestimates road distance and is
therefore only a fallback.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from typing import Optional

from .entities import Location

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def resolve_distance_km(
    distance_km: Optional[float],
    origin: Optional[Location] = None,
    destination: Optional[Location] = None,
) -> Optional[float]:
    """Prefer the routing service's figure; else estimate from coordinates.

    Returns ``None`` when neither is available.
    """
    if distance_km is not None:
        return distance_km
    if origin is None or destination is None:
        return None
    return round(
        haversine_km(
            origin.latitude, origin.longitude,
            destination.latitude, destination.longitude,
        ),
        2,
    )
