"""Tests for fare calculation."""

import pytest

from ridetrack.domain.entities import Location
from ridetrack.domain.enums import VehicleType
from ridetrack.domain.errors import InvalidVehicleType
from ridetrack.domain.pricing import FareCalculator, resolve_vehicle_type


@pytest.fixture
def calc():
    return FareCalculator(rate_per_km=2.5, minimum_fare=15.0, rounding=5)


class TestFareCalculator:
    def test_bus_base_fare(self, calc):
        # 10 km x 2.5 x 1.0 = 25
        assert calc.calculate_fare(10, VehicleType.BUS) == 25.0

    def test_taxi_multiplier_rounds_up(self, calc):
        # 10 km x 2.5 x 2.5 = 62.5 -> 65
        assert calc.calculate_fare(10, VehicleType.TAXI) == 65.0

    def test_others_multiplier(self, calc):
        assert calc.calculate_fare(10, "others") == 30.0

    def test_rounds_up_to_next_five(self, calc):
        # 7 km x 2.5 = 17.5 -> 20
        assert calc.calculate_fare(7, VehicleType.BUS) == 20.0

    def test_minimum_fare_applies(self, calc):
        assert calc.calculate_fare(1, VehicleType.BUS) == 15.0
        assert calc.calculate_fare(5, VehicleType.BIKE) == 15.0

    def test_minimum_applied_per_passenger(self, calc):
        assert calc.calculate_fare(1, VehicleType.BUS, number_of_passengers=3) == 45.0

    def test_multiple_passengers_scale(self, calc):
        assert calc.calculate_fare(10, VehicleType.BUS, number_of_passengers=2) == 50.0

    def test_zero_distance_gets_minimum(self, calc):
        assert calc.calculate_fare(0, VehicleType.TAXI) == 15.0

    def test_invalid_vehicle_type(self, calc):
        with pytest.raises(InvalidVehicleType):
            calc.calculate_fare(10, "hovercraft")

    def test_fare_from_locations(self, calc):
        fare = calc.calculate_fare_from_locations(
            Location(27.6921, 83.4615), Location(27.6588, 83.4534), VehicleType.TAXI
        )
        # ~3.8 km x 2.5 x 2.5 = ~23.7 -> 25
        assert fare == 25.0
        assert fare % 5 == 0


class TestResolveVehicleType:
    def test_accepts_string_and_enum(self):
        assert resolve_vehicle_type("taxi") is VehicleType.TAXI
        assert resolve_vehicle_type(VehicleType.BIKE) is VehicleType.BIKE

    def test_invalid_is_a_value_error(self):
        with pytest.raises(ValueError, match="Invalid vehicle type"):
            resolve_vehicle_type("rickshaw")
