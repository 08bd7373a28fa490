"""Tests for Haversine distance, proximity, nearest-vehicle search and ETA helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from ridetrack.domain.distance import (
    check_proximity,
    find_nearest_vehicle,
    haversine_km,
    is_within_service_area,
)
from ridetrack.domain.entities import Location
from ridetrack.domain.enums import ProximityLevel
from ridetrack.domain.eta import (
    calculate_eta,
    format_distance,
    format_eta,
    format_time_ago,
    road_distance_factor,
)

CENTER = Location(27.6588, 83.4534)


def north_of(origin: Location, degrees: float) -> Location:
    # 0.001 degrees of latitude is ~111 m
    return Location(origin.latitude + degrees, origin.longitude)


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(27.6588, 83.4534, 27.6588, 83.4534) == 0.0

    def test_known_distance(self):
        # Butwal centre to Devinagar, ~3.8 km
        d = haversine_km(27.6588, 83.4534, 27.6921, 83.4615)
        assert 3.5 < d < 4.1

    def test_symmetric(self):
        d1 = haversine_km(27.6588, 83.4534, 27.7172, 85.3240)
        d2 = haversine_km(27.7172, 85.3240, 27.6588, 83.4534)
        assert abs(d1 - d2) < 1e-9


class TestServiceArea:
    def test_inside_radius(self):
        assert is_within_service_area(Location(27.6921, 83.4615), CENTER)

    def test_kathmandu_is_outside(self):
        assert not is_within_service_area(Location(27.7172, 85.3240), CENTER)

    def test_custom_radius(self):
        assert not is_within_service_area(Location(27.6921, 83.4615), CENTER, radius_km=1)


class TestProximity:
    @pytest.mark.parametrize(
        "offset,expected",
        [
            (0.0003, ProximityLevel.ARRIVED),
            (0.0009, ProximityLevel.NEARBY),
            (0.003, ProximityLevel.APPROACHING),
            (0.01, ProximityLevel.FAR),
        ],
    )
    def test_bands(self, offset, expected):
        assert check_proximity(north_of(CENTER, offset), CENTER) == expected

    def test_unknown_location(self):
        assert check_proximity(None, CENTER) is None
        assert check_proximity(CENTER, None) is None


class TestNearestVehicle:
    def test_picks_closest(self):
        vehicles = [
            ("bus-far", north_of(CENTER, 0.05)),
            ("bus-near", north_of(CENTER, 0.002)),
            ("bus-mid", north_of(CENTER, 0.01)),
        ]
        vehicle_id, distance_km = find_nearest_vehicle(CENTER, vehicles)
        assert vehicle_id == "bus-near"
        assert distance_km == pytest.approx(0.222, abs=0.01)

    def test_no_vehicles(self):
        assert find_nearest_vehicle(CENTER, []) is None


class TestEta:
    def test_road_factor_bands(self):
        assert road_distance_factor(0.5) == 1.5
        assert road_distance_factor(3) == 1.4
        assert road_distance_factor(7) == 1.3
        assert road_distance_factor(25) == 1.2

    def test_unknown_location(self):
        assert calculate_eta(None, CENTER) is None

    def test_same_point(self):
        assert calculate_eta(CENTER, CENTER) == 0

    def test_short_trip_is_at_least_one_minute(self):
        # 100 m x 1.5 at 30 km/h = 0.3 min
        assert calculate_eta(north_of(CENTER, 0.0009), CENTER) == 1

    def test_one_kilometre(self):
        # 1.11 km x 1.4 = 1.56 km at 30 km/h = 3.1 min -> 4
        assert calculate_eta(north_of(CENTER, 0.01), CENTER) == 4

    def test_speed_override(self):
        assert calculate_eta(north_of(CENTER, 0.01), CENTER, speed_kmh=60) == 2


class TestFormatting:
    def test_format_eta(self):
        assert format_eta(None) == "Calculating..."
        assert format_eta(0) == "Arriving now"
        assert format_eta(1) == "Arriving in 1 min"
        assert format_eta(7) == "Arriving in 7 mins"

    def test_format_distance(self):
        assert format_distance(north_of(CENTER, 0.0009), CENTER) == "100 m"
        assert format_distance(north_of(CENTER, 0.01), CENTER) == "1.1 km"
        assert format_distance(None, CENTER) == "Unknown"

    def test_format_time_ago(self):
        now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        assert format_time_ago(now - timedelta(seconds=30), now) == "30s ago"
        assert format_time_ago(now - timedelta(minutes=2, seconds=5), now) == "2m ago"
        assert format_time_ago(now - timedelta(hours=3), now) == "3h ago"
        assert format_time_ago(now - timedelta(days=2), now) == "2d ago"

    def test_future_timestamp_reads_as_now(self):
        now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        assert format_time_ago(now + timedelta(seconds=5), now) == "0s ago"
