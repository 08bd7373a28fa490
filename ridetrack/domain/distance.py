"""
Distance and proximity helpers built on the Haversine formula.

Assumption
----------
We use great-circle (Haversine) distance instead of a real routing engine
(OSRM / Google Maps) to keep the project self-contained and runnable
locally without external API keys.  ``ridetrack.domain.eta`` compensates
with a road-distance factor.

Complexity: O(1) per call, O(n) for ``find_nearest_vehicle``.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .entities import Location
from .enums import ProximityLevel

EARTH_RADIUS_KM = 6_371.0

# Proximity bands in metres
ARRIVED_M = 50
NEARBY_M = 200
APPROACHING_M = 500


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


def haversine_m(a: Location, b: Location) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000


def is_within_radius(location: Location, center: Location, radius_km: float) -> bool:
    return haversine_m(location, center) / 1000 <= radius_km


def is_within_service_area(
    location: Location, center: Location, radius_km: float = 20.0
) -> bool:
    return is_within_radius(location, center, radius_km)


def check_proximity(
    vehicle: Optional[Location], pickup: Optional[Location]
) -> Optional[ProximityLevel]:
    """Bucket the vehicle-to-pickup distance; ``None`` if either is unknown."""
    if vehicle is None or pickup is None:
        return None

    meters = haversine_m(vehicle, pickup)
    if meters < ARRIVED_M:
        return ProximityLevel.ARRIVED
    if meters < NEARBY_M:
        return ProximityLevel.NEARBY
    if meters < APPROACHING_M:
        return ProximityLevel.APPROACHING
    return ProximityLevel.FAR


def find_nearest_vehicle(
    location: Location,
    vehicles: Iterable[tuple[str, Location]],
) -> Optional[tuple[str, float]]:
    """
    Return ``(vehicle_id, distance_km)`` of the closest vehicle, or ``None``.

    Callers pass only vehicles that are active and have a known position.
    """
    nearest: Optional[tuple[str, float]] = None
    for vehicle_id, position in vehicles:
        distance = haversine_m(location, position) / 1000
        if nearest is None or distance < nearest[1]:
            nearest = (vehicle_id, distance)
    return nearest
