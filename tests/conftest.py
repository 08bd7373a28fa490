"""
Shared test fixtures.

Domain tests run the ledger and reservation manager against the
in-memory stores with a controllable clock.  Repository, worker and API
tests use a throwaway SQLite database (via aiosqlite) built from the
production models, so they run without Docker / PostgreSQL / Redis.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ridetrack.domain.entities import Location, VehicleCapacity
from ridetrack.domain.enums import VehicleType
from ridetrack.domain.ledger import CapacityLedger
from ridetrack.domain.pricing import FareCalculator
from ridetrack.domain.reservations import ReservationManager
from ridetrack.infrastructure.database import Base
from ridetrack.infrastructure.memory import InMemoryBookingStore, InMemoryCapacityStore
from ridetrack.infrastructure import models  # noqa: F401  (registers tables)

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

DEVINAGAR = Location(27.6921, 83.4615)
BUTWAL_CENTER = Location(27.6588, 83.4534)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ── Domain fixtures (in-memory) ───────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def capacity_store() -> InMemoryCapacityStore:
    return InMemoryCapacityStore()


@pytest.fixture
def booking_store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def ledger(capacity_store, clock) -> CapacityLedger:
    return CapacityLedger(capacity_store, clock=clock, max_retries=3, backoff_seconds=0)


@pytest.fixture
def manager(ledger, booking_store) -> ReservationManager:
    return ReservationManager(ledger, booking_store, FareCalculator(), timeout_minutes=10)


@pytest.fixture
def add_vehicle(capacity_store):
    async def _add(
        vehicle_id: str = "bus-001",
        capacity: int = 40,
        online: int = 0,
        offline: int = 0,
        is_active: bool = True,
        vehicle_type: VehicleType = VehicleType.BUS,
    ) -> VehicleCapacity:
        return await capacity_store.add(
            VehicleCapacity(
                id=vehicle_id,
                capacity=capacity,
                online_booked_seats=online,
                offline_occupied_seats=offline,
                is_active=is_active,
                vehicle_type=vehicle_type,
            )
        )

    return _add


@pytest.fixture
def book(manager):
    """Create a booking between two fixed Butwal points."""

    async def _book(vehicle_id: str = "bus-001", seats: int = 1, passenger: str = "pass-001", **kwargs):
        return await manager.create_booking(
            vehicle_id, passenger, seats, DEVINAGAR, BUTWAL_CENTER, **kwargs
        )

    return _book


# ── Database fixtures (SQLite) ────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh SQLite file, yield a session factory, dispose."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
