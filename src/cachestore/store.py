"""Cache store: the prefixing, defaulting facade over a driver"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from cachestore.drivers.base import Driver, Expiration
from cachestore.errors import BackendUnavailable, ScanError
from cachestore.values import ScanType

logger = logging.getLogger(__name__)


class Store:
    """Key-value cache bound to one driver

    Every key is namespaced with ``prefix`` before it reaches the driver, and
    the ``*_default`` variants apply the store's default expiration. The
    store keeps no state beyond its configuration and driver, so it adds no
    locking of its own.
    """

    def __init__(self, driver: Driver, prefix: str, expiration: Expiration):
        """Initialize the store

        Args:
            driver: Driver that owns the backend connection
            prefix: Namespace prepended to every key
            expiration: Default expiration used by the *_default methods
        """
        self._driver = driver
        self._prefix = prefix
        self._expiration = expiration

    def __repr__(self) -> str:
        return f"<Store(driver={type(self._driver).__name__}, prefix='{self._prefix}')>"

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def expiration(self) -> Expiration:
        return self._expiration

    def get_prefix(self) -> str:
        return self._prefix

    def _key(self, key: str) -> str:
        return self._prefix + key

    async def get(self, key: str) -> Any | None:
        """Get a value, or None if it is missing or expired"""
        return await self._driver.get(self._key(key))

    async def get_scan(self, key: str, scan_type: ScanType) -> Any:
        """Get a value coerced to scan_type

        Raises:
            ScanError: If the key is absent or the value cannot be coerced
        """
        return await self._driver.get_scan(self._key(key), scan_type)

    async def get_default(self, key: str, default: Any) -> Any:
        """Get a value, or default if it is missing or expired"""
        value = await self.get(key)
        if value is None:
            return default
        return value

    async def get_scan_default(
        self, key: str, scan_type: ScanType, default: Any
    ) -> Any:
        """Get a value coerced to scan_type, or default if that fails"""
        try:
            return await self.get_scan(key, scan_type)
        except ScanError:
            return default

    async def many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Get several values, one round trip per key

        Returns:
            Mapping of each requested (unprefixed) key to its value or None.
            A key whose fetch fails maps to None; the rest are still fetched.
        """
        data: dict[str, Any] = {}
        for key in keys:
            try:
                data[key] = await self.get(key)
            except BackendUnavailable as e:
                logger.debug(f"Many: fetching {key} failed: {e}")
                data[key] = None
        return data

    async def put(self, key: str, value: Any, expiration: Expiration) -> bool:
        return await self._driver.put(self._key(key), value, expiration)

    async def put_default(self, key: str, value: Any) -> bool:
        return await self.put(key, value, self._expiration)

    async def put_many(self, kv: Mapping[str, Any], expiration: Expiration) -> bool:
        """Store several values in order

        Stops at the first failed write and returns False. Values written
        before the failure are kept.
        """
        for key, value in kv.items():
            if not await self.put(key, value, expiration):
                return False
        return True

    async def put_many_default(self, kv: Mapping[str, Any]) -> bool:
        return await self.put_many(kv, self._expiration)

    async def add(self, key: str, value: Any, expiration: Expiration) -> bool:
        """Store a value only if the key is absent

        This is a has-then-put sequence, not an atomic operation: concurrent
        callers may both see the key absent, and the last write wins.

        Returns:
            True if the value was stored, False if the key existed or the
            write failed
        """
        if await self.has(key):
            return False
        return await self.put(key, value, expiration)

    async def add_default(self, key: str, value: Any) -> bool:
        return await self.add(key, value, self._expiration)

    async def increment(self, key: str, step: int = 1) -> int | float:
        return await self._driver.increment(self._key(key), step)

    async def decrement(self, key: str, step: int = 1) -> int | float:
        return await self._driver.decrement(self._key(key), step)

    async def forever(self, key: str, value: str) -> bool:
        return await self._driver.forever(self._key(key), value)

    async def forget(self, key: str) -> bool:
        return await self._driver.forget(self._key(key))

    async def has(self, key: str) -> bool:
        return await self._driver.has(self._key(key))

    async def flush(self) -> bool:
        """Flush the driver's whole backend scope, not only this prefix"""
        return await self._driver.flush()

    async def close(self) -> None:
        """Close the underlying driver"""
        await self._driver.close()
