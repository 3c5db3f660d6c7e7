"""In-memory cache driver"""

import logging
from typing import Any

from cachestore.drivers.base import FOREVER, Driver, Expiration, to_seconds
from cachestore.drivers.table import ExpiringTable
from cachestore.errors import ScanError
from cachestore.values import ScanType, is_supported, scan_native

logger = logging.getLogger(__name__)


class MemoryDriver(Driver):
    """Driver over an in-process expiring table

    Values are stored as Python objects, so no wire coercion happens. Only
    the scalar types the other drivers can persist are accepted; None and
    containers are failed writes. An expiration of 0 uses
    ``default_expiration``; a negative expiration (FOREVER) never expires.

    The table is usually the process-wide shared one, in which case ``flush``
    clears the keys of every store using it.
    """

    def __init__(self, table: ExpiringTable, default_expiration: float = 3600):
        self.table = table
        self.default_expiration = default_expiration

    def _ttl(self, expiration: Expiration) -> float | None:
        seconds = to_seconds(expiration)
        if seconds == 0:
            seconds = self.default_expiration
        # A non-positive default means entries never expire
        if seconds <= 0:
            return None
        return seconds

    async def get(self, key: str) -> Any | None:
        value, _ = self.table.get(key)
        return value

    async def get_scan(self, key: str, scan_type: ScanType) -> Any:
        value, found = self.table.get(key)
        if not found:
            msg = f"Get {key} failed: key not found"
            raise ScanError(msg)
        return scan_native(value, scan_type)

    async def put(self, key: str, value: Any, expiration: Expiration) -> bool:
        if not is_supported(value):
            logger.debug(f"Put {key} failed: unsupported value type {type(value).__name__}")
            return False
        if isinstance(value, bytearray):
            value = bytes(value)
        self.table.set(key, value, self._ttl(expiration))
        return True

    async def increment(self, key: str, step: int = 1) -> int | float:
        return self.table.increment(key, step)

    async def decrement(self, key: str, step: int = 1) -> int | float:
        return self.table.decrement(key, step)

    async def forever(self, key: str, value: str) -> bool:
        return await self.put(key, value, FOREVER)

    async def forget(self, key: str) -> bool:
        return self.table.delete(key)

    async def has(self, key: str) -> bool:
        return self.table.contains(key)

    async def flush(self) -> bool:
        self.table.flush()
        return True
