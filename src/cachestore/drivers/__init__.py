"""Cache drivers"""

from cachestore.drivers.base import DEFAULT, FOREVER, Driver, to_seconds
from cachestore.drivers.memory import MemoryDriver
from cachestore.drivers.redis import RedisDriver
from cachestore.drivers.sql import SQLDriver
from cachestore.drivers.table import ExpiringTable, reset_shared_table, shared_table

__all__ = [
    "DEFAULT",
    "FOREVER",
    "Driver",
    "ExpiringTable",
    "MemoryDriver",
    "RedisDriver",
    "SQLDriver",
    "reset_shared_table",
    "shared_table",
    "to_seconds",
]
