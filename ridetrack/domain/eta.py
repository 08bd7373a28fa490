"""
ETA estimation and human-readable formatting.

Road distance is approximated as the straight-line distance times a
band-dependent factor; city roads add more to short trips than long ones.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from .distance import haversine_m
from .entities import Location


def road_distance_factor(straight_line_km: float) -> float:
    if straight_line_km < 1:
        return 1.5
    if straight_line_km < 5:
        return 1.4
    if straight_line_km < 10:
        return 1.3
    return 1.2


def calculate_eta(
    vehicle: Optional[Location],
    passenger: Optional[Location],
    speed_kmh: float = 30.0,
) -> Optional[int]:
    """ETA in whole minutes (at least 1), 0 if already there, ``None`` if unknown."""
    if vehicle is None or passenger is None:
        return None

    straight_line_m = haversine_m(vehicle, passenger)
    if straight_line_m <= 0:
        return 0

    straight_line_km = straight_line_m / 1000
    road_km = straight_line_km * road_distance_factor(straight_line_km)
    minutes = math.ceil(road_km / speed_kmh * 60)
    return max(1, minutes)


def format_eta(eta_minutes: Optional[int]) -> str:
    if eta_minutes is None:
        return "Calculating..."
    if eta_minutes == 0:
        return "Arriving now"
    if eta_minutes == 1:
        return "Arriving in 1 min"
    return f"Arriving in {eta_minutes} mins"


def format_distance(vehicle: Optional[Location], passenger: Optional[Location]) -> str:
    if vehicle is None or passenger is None:
        return "Unknown"

    meters = haversine_m(vehicle, passenger)
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def format_time_ago(then: datetime, now: Optional[datetime] = None) -> str:
    """Staleness label for ``last_seat_update`` ("30s ago", "2m ago", ...)."""
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - then).total_seconds()))

    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"
