"""
Redis client for cross-process coordination.

Only the expiry sweeper's ``DistributedLock`` talks to Redis; seat counts
and bookings live in PostgreSQL.  Clients share one pool, created on
first use so importing this module never opens a connection.
"""

from __future__ import annotations

import redis.asyncio as aioredis

from ridetrack.config import settings

_pool: aioredis.ConnectionPool | None = None


def _get_pool() -> aioredis.ConnectionPool:
    global _pool
    if _pool is None:
        _pool = aioredis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout_seconds,
        )
    return _pool


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_get_pool())


async def close_redis() -> None:
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
