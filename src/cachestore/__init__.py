"""Backend-agnostic key-value cache"""

from cachestore.config import BackendKind, Config, StoreConfig, load_config
from cachestore.drivers import (
    DEFAULT,
    FOREVER,
    Driver,
    ExpiringTable,
    MemoryDriver,
    RedisDriver,
    SQLDriver,
)
from cachestore.errors import (
    BackendUnavailable,
    CacheError,
    NumericOpError,
    ScanError,
    ScanTypeMismatch,
)
from cachestore.factory import get_supported_backends, new_store, store_from_config
from cachestore.store import Store
from cachestore.values import ScanType

__all__ = [
    "DEFAULT",
    "FOREVER",
    "BackendKind",
    "BackendUnavailable",
    "CacheError",
    "Config",
    "Driver",
    "ExpiringTable",
    "MemoryDriver",
    "NumericOpError",
    "RedisDriver",
    "SQLDriver",
    "ScanError",
    "ScanType",
    "ScanTypeMismatch",
    "Store",
    "StoreConfig",
    "get_supported_backends",
    "load_config",
    "new_store",
    "store_from_config",
]
