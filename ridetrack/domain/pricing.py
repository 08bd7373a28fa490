"""
Fare calculation
================

Formula
-------
Fare = ceil_to(max(Distance x Rate_Per_KM x Vehicle_Multiplier, Minimum_Fare) x Passengers, 5)

* **Vehicle_Multiplier** comes from ``VEHICLE_TYPES`` (bus 1.0, taxi 2.5, ...).
* Fares are rounded *up* to the next multiple of ``rounding`` (NPR 5).

Complexity: O(1) per fare calculation.
"""

from __future__ import annotations

import math
from typing import Union

from .distance import haversine_km
from .entities import VEHICLE_TYPES, Location
from .enums import VehicleType
from .errors import InvalidVehicleType


def resolve_vehicle_type(value: Union[str, VehicleType]) -> VehicleType:
    try:
        return VehicleType(value)
    except ValueError:
        raise InvalidVehicleType(f"Invalid vehicle type: {value}") from None


class FareCalculator:
    """High-level API used by the reservation manager and the API layer."""

    def __init__(
        self,
        rate_per_km: float = 2.5,
        minimum_fare: float = 15.0,
        rounding: int = 5,
    ):
        self.rate_per_km = rate_per_km
        self.minimum_fare = minimum_fare
        self.rounding = rounding

    def calculate_fare(
        self,
        distance_km: float,
        vehicle_type: Union[str, VehicleType],
        number_of_passengers: int = 1,
    ) -> float:
        info = VEHICLE_TYPES[resolve_vehicle_type(vehicle_type)]

        fare = distance_km * self.rate_per_km * info.fare_multiplier
        fare = max(fare, self.minimum_fare)
        fare *= number_of_passengers
        return float(math.ceil(fare / self.rounding) * self.rounding)

    def calculate_fare_from_locations(
        self,
        pickup: Location,
        dropoff: Location,
        vehicle_type: Union[str, VehicleType],
        number_of_passengers: int = 1,
    ) -> float:
        distance = haversine_km(
            pickup.latitude, pickup.longitude, dropoff.latitude, dropoff.longitude
        )
        return self.calculate_fare(distance, vehicle_type, number_of_passengers)
