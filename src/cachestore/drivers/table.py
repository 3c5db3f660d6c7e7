"""In-process expiring table"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from cachestore.errors import NumericOpError

logger = logging.getLogger(__name__)


class ExpiringTable:
    """Thread-safe key/value table with per-entry expiration

    Expired entries are invisible to readers immediately and are removed by a
    background janitor thread every ``cleanup_interval`` seconds.
    """

    def __init__(
        self,
        cleanup_interval: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._items: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.cleanup_interval = cleanup_interval

        self._stop = threading.Event()
        self._janitor: threading.Thread | None = None
        if cleanup_interval > 0:
            self._janitor = threading.Thread(
                target=self._run_janitor, name="cachestore-janitor", daemon=True
            )
            self._janitor.start()

    def _run_janitor(self) -> None:
        while not self._stop.wait(self.cleanup_interval):
            removed = self.delete_expired()
            if removed:
                logger.debug(f"Janitor evicted {removed} expired entries")

    def _expired(self, expires_at: float | None, now: float) -> bool:
        return expires_at is not None and now > expires_at

    def _live(self, key: str) -> tuple[Any, float | None] | None:
        # Caller holds the lock
        item = self._items.get(key)
        if item is None or self._expired(item[1], self._clock()):
            return None
        return item

    def get(self, key: str) -> tuple[Any, bool]:
        """Get a value

        Returns:
            (value, found); found is False for missing or expired keys
        """
        with self._lock:
            item = self._live(key)
        if item is None:
            return None, False
        return item[0], True

    def contains(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None

    def set(self, key: str, value: Any, ttl: float | None) -> None:
        """Set a value, replacing any existing one

        Args:
            key: Key
            value: Value
            ttl: Seconds until expiry, or None to never expire
        """
        expires_at = None if ttl is None else self._clock() + ttl
        with self._lock:
            self._items[key] = (value, expires_at)

    def delete(self, key: str) -> bool:
        """Delete a key, returning True if a live entry was removed"""
        with self._lock:
            live = self._live(key) is not None
            self._items.pop(key, None)
        return live

    def increment(self, key: str, step: int | float) -> int | float:
        """Atomically add step to a numeric entry, keeping its expiry"""
        with self._lock:
            item = self._live(key)
            if item is None:
                msg = f"Item {key} not found"
                raise NumericOpError(msg)
            value, expires_at = item
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                msg = f"The value for {key} is not an integer or float"
                raise NumericOpError(msg)
            value = value + step
            self._items[key] = (value, expires_at)
        return value

    def decrement(self, key: str, step: int | float) -> int | float:
        return self.increment(key, -step)

    def flush(self) -> None:
        with self._lock:
            self._items.clear()

    def delete_expired(self) -> int:
        """Remove expired entries and return how many were removed"""
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, (_, expires_at) in self._items.items()
                if self._expired(expires_at, now)
            ]
            for key in expired:
                del self._items[key]
        return len(expired)

    def item_count(self) -> int:
        """Number of stored entries, including expired ones not yet evicted"""
        with self._lock:
            return len(self._items)

    def close(self) -> None:
        """Stop the janitor thread"""
        self._stop.set()
        if self._janitor is not None:
            self._janitor.join(timeout=5.0)
            self._janitor = None


class _TableStore:
    """Singleton store for the process-wide table"""

    _instance: ExpiringTable | None = None
    _lock = threading.Lock()

    @classmethod
    def get(cls, cleanup_interval: float) -> ExpiringTable:
        """Get the shared table (created on first call)"""
        with cls._lock:
            if cls._instance is None:
                cls._instance = ExpiringTable(cleanup_interval)
            return cls._instance

    @classmethod
    def clear(cls) -> None:
        """Close and forget the shared table (mainly for testing)"""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.close()
            cls._instance = None


def shared_table(cleanup_interval: float) -> ExpiringTable:
    """Get the process-wide table shared by every memory-backed store

    The cleanup interval only applies when the table is first created.
    """
    return _TableStore.get(cleanup_interval)


def reset_shared_table() -> None:
    """Discard the process-wide table (mainly for testing)"""
    _TableStore.clear()
