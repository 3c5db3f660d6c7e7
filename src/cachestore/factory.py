"""Store factory"""

import logging

from cachestore.config import BackendKind, Config, StoreConfig
from cachestore.drivers.base import Driver
from cachestore.drivers.memory import MemoryDriver
from cachestore.drivers.redis import RedisDriver
from cachestore.drivers.sql import SQLDriver
from cachestore.drivers.table import shared_table
from cachestore.store import Store

logger = logging.getLogger(__name__)


def _build_driver(kind: BackendKind, config: StoreConfig) -> Driver:
    if kind is BackendKind.MEMORY:
        return MemoryDriver(
            shared_table(config.cleanup_interval),
            default_expiration=config.expiration,
        )
    if kind is BackendKind.REDIS:
        return RedisDriver.from_addr(config.addr, config.password, config.db)
    return SQLDriver.from_url(config.database_url, config.expiration)


def new_store(
    kind: BackendKind | str,
    config: StoreConfig | None = None,
    driver: Driver | None = None,
) -> Store | None:
    """Create a store for a backend kind

    Unset configuration fields are resolved to their defaults once, here.

    Args:
        kind: Backend kind ("memory", "redis" or "database")
        config: Store configuration (defaults if None)
        driver: Existing driver to bind instead of building one

    Returns:
        A new Store, or None if the backend kind is not supported
    """
    try:
        kind = BackendKind(kind)
    except ValueError:
        logger.warning(
            f"Unsupported cache backend: {kind}. "
            f"Supported: {', '.join(get_supported_backends())}"
        )
        return None

    resolved = (config or StoreConfig()).resolve()
    if driver is None:
        driver = _build_driver(kind, resolved)
        logger.info(f"Created {kind.value} cache driver with prefix '{resolved.prefix}'")

    return Store(driver, prefix=resolved.prefix, expiration=resolved.expiration)


def store_from_config(config: Config) -> Store:
    """Create a store from a loaded configuration

    Raises:
        ValueError: If the configured backend is not supported
    """
    store = new_store(config.backend, config.store)
    if store is None:
        msg = f"Unsupported cache backend: {config.backend}"
        raise ValueError(msg)
    return store


def get_supported_backends() -> list[str]:
    """Get list of supported cache backend types"""
    return [kind.value for kind in BackendKind]
