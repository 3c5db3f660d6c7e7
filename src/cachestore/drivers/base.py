"""Base driver interface"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

from cachestore.values import ScanType

# Never expire
FOREVER = -1
# Use the backend's default expiration
DEFAULT = 0

Expiration = int | float | timedelta


def to_seconds(expiration: Expiration) -> float:
    """Normalise an expiration to seconds"""
    if isinstance(expiration, timedelta):
        return expiration.total_seconds()
    return float(expiration)


class Driver(ABC):
    """Abstract base class for cache drivers

    Drivers receive keys that are already namespaced by the store and must
    give identical observable semantics regardless of the backend behind them.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value

        Args:
            key: Cache key

        Returns:
            Stored value, or None if the key is missing or expired

        Raises:
            BackendUnavailable: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def get_scan(self, key: str, scan_type: ScanType) -> Any:
        """Get a value coerced to a scalar type

        Args:
            key: Cache key
            scan_type: Type the value must be coerced into

        Returns:
            The coerced value

        Raises:
            ScanError: If the key is absent
            ScanTypeMismatch: If the value cannot be coerced to scan_type
        """
        pass

    @abstractmethod
    async def put(self, key: str, value: Any, expiration: Expiration) -> bool:
        """Store a value

        Args:
            key: Cache key
            value: Value to store
            expiration: Seconds or timedelta; FOREVER never expires, DEFAULT
                uses the backend default documented by each driver

        Returns:
            True if written, False on any failure to write
        """
        pass

    @abstractmethod
    async def increment(self, key: str, step: int = 1) -> int | float:
        """Atomically add step to a numeric value

        Returns:
            The new value

        Raises:
            NumericOpError: If the key is absent or not numeric
        """
        pass

    @abstractmethod
    async def decrement(self, key: str, step: int = 1) -> int | float:
        """Atomically subtract step from a numeric value

        Returns:
            The new value

        Raises:
            NumericOpError: If the key is absent or not numeric
        """
        pass

    @abstractmethod
    async def forever(self, key: str, value: str) -> bool:
        """Store a string value that never expires"""
        pass

    @abstractmethod
    async def forget(self, key: str) -> bool:
        """Delete a key

        Returns:
            True if the key existed and was deleted, False otherwise
        """
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check if a key exists and is not expired"""
        pass

    @abstractmethod
    async def flush(self) -> bool:
        """Remove every key visible to this driver

        The scope is the whole backend (table or logical database), not just
        the keys of one prefix.
        """
        pass

    async def close(self) -> None:
        """Release backend resources"""
        pass
