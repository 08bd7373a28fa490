"""
Capacity ledger tests (in-memory store, fixed clock).

Covers availability arithmetic, the online / offline setters, walk-up
passenger add / remove bounds, and that every committed mutation keeps
``0 <= online + offline <= capacity``.
"""

from __future__ import annotations

import random

import pytest

from ridetrack.domain.entities import Booking, Location, VehicleCapacity
from ridetrack.domain.enums import BookingStatus
from ridetrack.domain.errors import (
    CapacityExceededError,
    InsufficientCapacityError,
    NotFoundError,
    VehicleOfflineError,
)
from ridetrack.domain.ledger import CapacityLedger


class TestAvailability:
    def test_forty_seats_with_thirty_nine_taken(self):
        bus = VehicleCapacity(id="bus-001", capacity=40, online_booked_seats=38, offline_occupied_seats=1)
        assert CapacityLedger.get_available(bus) == 1
        assert CapacityLedger.can_accommodate(bus, 1)
        assert not CapacityLedger.can_accommodate(bus, 2)

    def test_available_never_negative(self):
        overfull = VehicleCapacity(id="bus-001", capacity=2, online_booked_seats=3)
        assert CapacityLedger.get_available(overfull) == 0
        assert not CapacityLedger.can_accommodate(overfull, 1)

    @pytest.mark.asyncio
    async def test_get_unknown_vehicle(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.get("ghost")


class TestSetters:
    @pytest.mark.asyncio
    async def test_set_online_stamps_update_time(self, ledger, add_vehicle, clock):
        await add_vehicle()
        vehicle = await ledger.set_online("bus-001", 12)
        assert vehicle.online_booked_seats == 12
        assert vehicle.last_seat_update == clock.now
        assert vehicle.version == 1

    @pytest.mark.asyncio
    async def test_set_online_clamps_negative(self, ledger, add_vehicle):
        await add_vehicle(online=5)
        vehicle = await ledger.set_online("bus-001", -3)
        assert vehicle.online_booked_seats == 0

    @pytest.mark.asyncio
    async def test_set_offline_clamps_negative(self, ledger, add_vehicle):
        await add_vehicle(offline=5)
        vehicle = await ledger.set_offline("bus-001", -1)
        assert vehicle.offline_occupied_seats == 0

    @pytest.mark.asyncio
    async def test_set_online_over_capacity_rejected(self, ledger, add_vehicle, capacity_store):
        await add_vehicle(capacity=10, offline=4)
        with pytest.raises(CapacityExceededError):
            await ledger.set_online("bus-001", 7)
        vehicle = await ledger.get("bus-001")
        assert vehicle.online_booked_seats == 0
        assert capacity_store.writes == 0

    @pytest.mark.asyncio
    async def test_set_offline_over_capacity_rejected(self, ledger, add_vehicle):
        await add_vehicle(capacity=10, online=8)
        with pytest.raises(CapacityExceededError):
            await ledger.set_offline("bus-001", 3)

    @pytest.mark.asyncio
    async def test_setters_on_unknown_vehicle(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.set_online("ghost", 1)
        with pytest.raises(NotFoundError):
            await ledger.set_offline("ghost", 1)


class TestOfflinePassengers:
    @pytest.mark.asyncio
    async def test_add_and_remove(self, ledger, add_vehicle):
        await add_vehicle()
        await ledger.add_offline_passenger("bus-001")
        vehicle = await ledger.add_offline_passenger("bus-001")
        assert vehicle.offline_occupied_seats == 2

        vehicle = await ledger.remove_offline_passenger("bus-001")
        assert vehicle.offline_occupied_seats == 1
        assert vehicle.available_seats == 39

    @pytest.mark.asyncio
    async def test_add_when_full_rejected(self, ledger, add_vehicle, capacity_store):
        await add_vehicle(capacity=4, online=3, offline=1)
        with pytest.raises(CapacityExceededError):
            await ledger.add_offline_passenger("bus-001")

        vehicle = await ledger.get("bus-001")
        assert vehicle.offline_occupied_seats == 1
        assert capacity_store.writes == 0

    @pytest.mark.asyncio
    async def test_remove_at_zero_is_a_noop(self, ledger, add_vehicle, capacity_store):
        await add_vehicle(online=3)
        vehicle = await ledger.remove_offline_passenger("bus-001")
        assert vehicle.offline_occupied_seats == 0
        assert vehicle.last_seat_update is None
        assert capacity_store.writes == 0

    @pytest.mark.asyncio
    async def test_add_on_unknown_vehicle(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.add_offline_passenger("ghost")


class TestReserveRelease:
    @pytest.mark.asyncio
    async def test_reserve_increments_online(self, ledger, add_vehicle):
        await add_vehicle(online=2)
        vehicle = await ledger.reserve("bus-001", 3)
        assert vehicle.online_booked_seats == 5

    @pytest.mark.asyncio
    async def test_reserve_beyond_available(self, ledger, add_vehicle):
        await add_vehicle(capacity=40, online=38, offline=1)
        with pytest.raises(InsufficientCapacityError) as exc_info:
            await ledger.reserve("bus-001", 2)
        assert exc_info.value.requested == 2
        assert exc_info.value.available == 1
        assert "only 1 left" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_reserve_on_inactive_vehicle(self, ledger, add_vehicle):
        await add_vehicle(is_active=False)
        with pytest.raises(VehicleOfflineError):
            await ledger.reserve("bus-001", 1)

    @pytest.mark.asyncio
    async def test_release_clamps_at_zero(self, ledger, add_vehicle):
        await add_vehicle(online=1)
        vehicle = await ledger.release("bus-001", 3)
        assert vehicle.online_booked_seats == 0


class TestInvariant:
    @pytest.mark.asyncio
    async def test_random_operations_keep_counts_in_bounds(self, ledger, add_vehicle):
        await add_vehicle(capacity=6)
        rng = random.Random(7)
        domain_errors = (CapacityExceededError, InsufficientCapacityError)

        for _ in range(300):
            op = rng.choice(["reserve", "release", "add", "remove", "set_online", "set_offline"])
            try:
                if op == "reserve":
                    await ledger.reserve("bus-001", rng.randint(1, 3))
                elif op == "release":
                    await ledger.release("bus-001", rng.randint(1, 3))
                elif op == "add":
                    await ledger.add_offline_passenger("bus-001")
                elif op == "remove":
                    await ledger.remove_offline_passenger("bus-001")
                elif op == "set_online":
                    await ledger.set_online("bus-001", rng.randint(-2, 8))
                else:
                    await ledger.set_offline("bus-001", rng.randint(-2, 8))
            except domain_errors:
                pass

            vehicle = await ledger.get("bus-001")
            assert vehicle.online_booked_seats >= 0
            assert vehicle.offline_occupied_seats >= 0
            assert vehicle.occupied_seats <= vehicle.capacity
            assert vehicle.available_seats == vehicle.capacity - vehicle.occupied_seats


class TestInMemoryStores:
    @pytest.mark.asyncio
    async def test_locations_follow_active_flag(self, capacity_store, add_vehicle):
        await add_vehicle("bus-001")
        await add_vehicle("bus-002")
        here = Location(27.6588, 83.4534)

        await capacity_store.update_location("bus-001", here)
        await capacity_store.update_location("bus-002", here)
        await capacity_store.set_active("bus-002", False)

        assert await capacity_store.get_location("bus-001") == here
        assert await capacity_store.active_locations() == [("bus-001", here)]

        with pytest.raises(NotFoundError):
            await capacity_store.update_location("ghost", here)

    @pytest.mark.asyncio
    async def test_booking_update_guards(self, booking_store):
        booking = await booking_store.create(Booking(vehicle_id="bus-001"))

        assert not await booking_store.update(
            booking.id, {"status": BookingStatus.CANCELLED}, expected_status=BookingStatus.CONFIRMED
        )
        assert await booking_store.update(booking.id, {"status": BookingStatus.CONFIRMED})
        assert (await booking_store.get(booking.id)).status == BookingStatus.CONFIRMED
        assert await booking_store.pending_vehicle_ids() == []

        with pytest.raises(NotFoundError):
            await booking_store.update("missing", {"status": BookingStatus.CANCELLED})
