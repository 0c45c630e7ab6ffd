"""Engine and unit-of-work handling for the device store."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from authn_devices import models  # noqa: F401  registers tables on Base.metadata
from authn_devices.core.config import Settings, get_settings

from .base import Base


class DeviceStore:
    """Owns the async engine for the ``webauthn_devices`` table.

    ``transaction()`` is the unit of work used by callers: the session it
    yields commits when the block exits cleanly and rolls back otherwise.
    Devices stay usable after commit so they can be exported or returned.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.engine = create_async_engine(settings.database_url, echo=settings.debug)
        self.sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        async with self.sessions() as session, session.begin():
            yield session

    async def close(self) -> None:
        """Release pooled connections; the engine reconnects on next use."""

        await self.engine.dispose()


@lru_cache(maxsize=1)
def get_store() -> DeviceStore:
    return DeviceStore()
