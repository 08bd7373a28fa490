"""
Background Expiry Sweeper
=========================

Runs every ``EXPIRY_SWEEP_INTERVAL_SECONDS`` (default 60 s) and expires
pending bookings whose reservation window has closed, releasing their
seats.

Concurrency safety
------------------
* **Redis distributed lock** keeps multiple API processes from sweeping
  at the same time.  This only saves work: every expiry is a conditional
  ``pending -> expired`` update, so overlapping sweeps (including the
  lazy sweeps run by the API) still release each booking's seats once.
* Each vehicle is swept and committed in its own transaction so one
  contended vehicle cannot hold back the rest.

Algorithm per cycle
-------------------
1. List vehicles that have pending bookings.
2. For each, run ``ReservationManager.expire_stale_bookings``.
3. Commit, or roll back and move on if that vehicle failed.
"""

from __future__ import annotations

import asyncio
import logging

from ridetrack.config import settings
from ridetrack.infrastructure.database import async_session_factory
from ridetrack.infrastructure.locks import DistributedLock
from ridetrack.infrastructure.redis_client import get_redis
from ridetrack.infrastructure.repositories import BookingRepository
from ridetrack.infrastructure.wiring import reservation_manager

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_expiry_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Expiry sweeper started (interval=%ds)",
        settings.expiry_sweep_interval_seconds,
    )


async def stop_expiry_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Expiry sweeper stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    """Periodic loop: run a sweep cycle then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_expiry_cycle()
        except Exception:
            logger.exception("Unhandled error in expiry cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.expiry_sweep_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle


async def run_expiry_cycle(session_factory=None) -> int:
    """Execute one sweep cycle.  Returns the number of bookings expired."""
    session_factory = session_factory or async_session_factory
    redis = await get_redis()
    lock = DistributedLock(
        redis, "expiry_sweeper", ttl_seconds=settings.expiry_sweep_interval_seconds
    )

    if not await lock.acquire():
        logger.debug("Lock held by another worker – skipping cycle")
        return 0

    expired = 0
    try:
        async with session_factory() as session:
            vehicle_ids = await BookingRepository(session).pending_vehicle_ids()
            await session.commit()

        for vehicle_id in vehicle_ids:
            async with session_factory() as session:
                try:
                    expired += await reservation_manager(
                        session
                    ).expire_stale_bookings(vehicle_id)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    logger.exception("Expiry sweep failed for vehicle %s", vehicle_id)

        if expired:
            logger.info("Expiry cycle: %d booking(s) expired", expired)
    finally:
        await lock.release()

    return expired
