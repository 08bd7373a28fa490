"""
Async SQLAlchemy engine, session factory and declarative base.

The engine talks to PostgreSQL through ``asyncpg``.  Seat counters are
guarded by the ``vehicles.version`` column rather than row locks, so
sessions run at the default READ COMMITTED isolation and transactions
stay short: one HTTP request, or one vehicle per sweep.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ridetrack.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the ``vehicles`` and ``bookings`` tables."""


async def dispose_engine() -> None:
    await engine.dispose()
