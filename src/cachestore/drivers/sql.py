"""Relational database cache driver"""

import asyncio
import logging
import time
from typing import Any

from sqlalchemy import Float, LargeBinary, String, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import NullPool, StaticPool

from cachestore.drivers.base import FOREVER, Driver, Expiration, to_seconds
from cachestore.errors import BackendUnavailable, NumericOpError, ScanError
from cachestore.values import ScanType, decode_tagged, encode_tagged, scan_native

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for cache tables"""

    pass


class CacheEntry(Base):
    """One cached value, stored as a tagged variant"""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    kind: Mapped[str] = mapped_column(String(16))
    value: Mapped[bytes] = mapped_column(LargeBinary)
    # Unix timestamp; NULL never expires
    expires_at: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<CacheEntry(key='{self.key}', kind='{self.kind}')>"


def create_engine_for_url(url: str) -> AsyncEngine:
    """Create an async engine with pooling suited to the database"""
    engine_kwargs: dict[str, Any] = {"echo": False}

    if url.startswith("sqlite"):
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every session sees an empty db
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs.update({
            "pool_size": 20,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
        })

    return create_async_engine(url, **engine_kwargs)


class SQLDriver(Driver):
    """Driver persisting entries in a ``cache_entries`` table

    Values keep their Python type across a round trip. Expiration follows
    the memory driver: 0 uses ``default_expiration`` and a negative value
    (FOREVER) never expires. Expired rows are invisible to reads and are
    purged by ``delete_expired``.

    ``flush`` deletes every row of the table, whichever store wrote it.
    """

    def __init__(self, engine: AsyncEngine, default_expiration: float = 3600):
        self.engine = engine
        self.default_expiration = default_expiration
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        self._initialized = False
        # SQLite ignores FOR UPDATE, so adjustments through this driver are
        # serialized here as well
        self._adjust_lock = asyncio.Lock()

    @classmethod
    def from_url(cls, url: str, default_expiration: float = 3600) -> "SQLDriver":
        return cls(create_engine_for_url(url), default_expiration)

    async def initialize(self) -> None:
        """Create the cache table if it does not exist"""
        if self._initialized:
            return
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self._initialized = True

    def _expires_at(self, expiration: Expiration) -> float | None:
        seconds = to_seconds(expiration)
        if seconds == 0:
            seconds = self.default_expiration
        if seconds <= 0:
            return None
        return time.time() + seconds

    @staticmethod
    def _live():
        return or_(CacheEntry.expires_at.is_(None), CacheEntry.expires_at > time.time())

    async def _load(self, key: str) -> CacheEntry | None:
        await self.initialize()
        async with self._sessions() as session:
            result = await session.execute(
                select(CacheEntry).where(CacheEntry.key == key, self._live())
            )
            return result.scalar_one_or_none()

    async def get(self, key: str) -> Any | None:
        try:
            entry = await self._load(key)
        except SQLAlchemyError as e:
            msg = f"Get {key} failed: {e}"
            raise BackendUnavailable(msg) from e

        if entry is None:
            return None
        return decode_tagged(entry.kind, entry.value)

    async def get_scan(self, key: str, scan_type: ScanType) -> Any:
        try:
            entry = await self._load(key)
        except SQLAlchemyError as e:
            msg = f"Get {key} failed: {e}"
            raise BackendUnavailable(msg) from e

        if entry is None:
            msg = f"Get {key} failed: key not found"
            raise ScanError(msg)
        return scan_native(decode_tagged(entry.kind, entry.value), scan_type)

    async def put(self, key: str, value: Any, expiration: Expiration) -> bool:
        try:
            kind, payload = encode_tagged(value)
        except TypeError as e:
            logger.debug(f"Put {key} failed: {e}")
            return False

        entry = CacheEntry(
            key=key,
            kind=kind,
            value=payload,
            expires_at=self._expires_at(expiration),
        )
        try:
            await self.initialize()
            async with self._sessions() as session, session.begin():
                await session.merge(entry)
        except SQLAlchemyError as e:
            logger.debug(f"Put {key} failed: {e}")
            return False
        return True

    async def _adjust(self, key: str, step: int | float) -> int | float:
        try:
            await self.initialize()
            async with self._adjust_lock, self._sessions() as session, session.begin():
                result = await session.execute(
                    select(CacheEntry)
                    .where(CacheEntry.key == key, self._live())
                    .with_for_update()
                )
                entry = result.scalar_one_or_none()
                if entry is None:
                    msg = f"Item {key} not found"
                    raise NumericOpError(msg)
                if entry.kind not in ("int", "float"):
                    msg = f"The value for {key} is not an integer or float"
                    raise NumericOpError(msg)

                value = decode_tagged(entry.kind, entry.value) + step
                entry.kind, entry.value = encode_tagged(value)
        except SQLAlchemyError as e:
            msg = f"Adjust {key} failed: {e}"
            raise BackendUnavailable(msg) from e
        return value

    async def increment(self, key: str, step: int = 1) -> int | float:
        return await self._adjust(key, step)

    async def decrement(self, key: str, step: int = 1) -> int | float:
        return await self._adjust(key, -step)

    async def forever(self, key: str, value: str) -> bool:
        return await self.put(key, value, FOREVER)

    async def forget(self, key: str) -> bool:
        try:
            await self.initialize()
            async with self._sessions() as session, session.begin():
                result = await session.execute(
                    delete(CacheEntry).where(CacheEntry.key == key, self._live())
                )
        except SQLAlchemyError as e:
            logger.debug(f"Forget {key} failed: {e}")
            return False
        return result.rowcount > 0

    async def has(self, key: str) -> bool:
        try:
            await self.initialize()
            async with self._sessions() as session:
                result = await session.execute(
                    select(CacheEntry.key).where(CacheEntry.key == key, self._live())
                )
                return result.first() is not None
        except SQLAlchemyError as e:
            logger.debug(f"Exists {key} failed: {e}")
            return False

    async def flush(self) -> bool:
        try:
            await self.initialize()
            async with self._sessions() as session, session.begin():
                await session.execute(delete(CacheEntry))
        except SQLAlchemyError as e:
            logger.debug(f"Flush failed: {e}")
            return False
        return True

    async def delete_expired(self) -> int:
        """Remove expired rows and return how many were removed"""
        await self.initialize()
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                delete(CacheEntry).where(
                    CacheEntry.expires_at.is_not(None),
                    CacheEntry.expires_at <= time.time(),
                )
            )
        return result.rowcount

    async def close(self) -> None:
        """Dispose of the engine's connection pool"""
        await self.engine.dispose()
