"""Redis cache driver"""

import logging
from typing import Any

import redis.asyncio as redis

from cachestore.drivers.base import Driver, Expiration, to_seconds
from cachestore.errors import (
    BackendUnavailable,
    NumericOpError,
    ScanError,
    ScanTypeMismatch,
)
from cachestore.values import ScanType, encode_wire, scan_wire

logger = logging.getLogger(__name__)


class RedisDriver(Driver):
    """Driver for a remote Redis server

    Values travel as text: booleans as "1"/"0", timestamps as ISO-8601.
    An expiration of 0 (or FOREVER) stores the key with no expiry.
    Reading a key that holds a non-string Redis type (a list, a hash) raises
    ScanTypeMismatch, not BackendUnavailable.

    ``flush`` issues FLUSHDB and therefore clears the whole logical database
    the client is bound to, including keys written under other prefixes.
    """

    def __init__(self, client: redis.Redis, encoding: str = "utf-8"):
        self.client = client
        self.encoding = encoding

    @classmethod
    def from_addr(
        cls, addr: str, password: str | None = None, db: int = 0
    ) -> "RedisDriver":
        """Create a driver connected to host:port"""
        host, _, port = addr.rpartition(":")
        if not host:
            host, port = addr, "6379"
        client = redis.Redis(
            host=host,
            port=int(port),
            password=password or None,
            db=db,
        )
        return cls(client)

    async def _fetch(self, key: str) -> bytes | None:
        """GET a key

        Raises:
            ScanTypeMismatch: If the key holds a non-string Redis type
            BackendUnavailable: If the server cannot be reached
        """
        try:
            return await self.client.get(key)
        except redis.ResponseError as e:
            msg = f"Get {key} failed: {e}"
            raise ScanTypeMismatch(msg) from e
        except redis.RedisError as e:
            msg = f"Get {key} failed: {e}"
            raise BackendUnavailable(msg) from e

    async def get(self, key: str) -> Any | None:
        value = await self._fetch(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            try:
                return value.decode(self.encoding)
            except UnicodeDecodeError:
                return value
        return value

    async def get_scan(self, key: str, scan_type: ScanType) -> Any:
        value = await self._fetch(key)
        if value is None:
            msg = f"Get {key} failed: redis: nil"
            raise ScanError(msg)
        return scan_wire(value, scan_type)

    async def put(self, key: str, value: Any, expiration: Expiration) -> bool:
        seconds = to_seconds(expiration)
        kwargs: dict[str, int] = {}
        if seconds > 0:
            if seconds.is_integer():
                kwargs["ex"] = int(seconds)
            else:
                kwargs["px"] = max(1, int(seconds * 1000))

        try:
            result = await self.client.set(key, encode_wire(value), **kwargs)
        except (TypeError, redis.RedisError) as e:
            logger.debug(f"Put {key} failed: {e}")
            return False
        return bool(result)

    async def increment(self, key: str, step: int = 1) -> int:
        try:
            return await self.client.incrby(key, step)
        except redis.ResponseError as e:
            raise NumericOpError(f"Increment {key} failed: {e}") from e
        except redis.RedisError as e:
            raise BackendUnavailable(f"Increment {key} failed: {e}") from e

    async def decrement(self, key: str, step: int = 1) -> int:
        try:
            return await self.client.decrby(key, step)
        except redis.ResponseError as e:
            raise NumericOpError(f"Decrement {key} failed: {e}") from e
        except redis.RedisError as e:
            raise BackendUnavailable(f"Decrement {key} failed: {e}") from e

    async def forever(self, key: str, value: str) -> bool:
        return await self.put(key, value, 0)

    async def forget(self, key: str) -> bool:
        try:
            result = await self.client.delete(key)
        except redis.RedisError as e:
            logger.debug(f"Forget {key} failed: {e}")
            return False
        return result > 0

    async def has(self, key: str) -> bool:
        try:
            result = await self.client.exists(key)
        except redis.RedisError as e:
            logger.debug(f"Exists {key} failed: {e}")
            return False
        return result > 0

    async def flush(self) -> bool:
        try:
            await self.client.flushdb()
        except redis.RedisError as e:
            logger.debug(f"Flush failed: {e}")
            return False
        return True

    async def close(self) -> None:
        """Close the Redis connection"""
        # Use aclose() for newer Redis versions
        if hasattr(self.client, "aclose"):
            await self.client.aclose()
        else:
            await self.client.close()
