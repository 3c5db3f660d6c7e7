"""Configuration loading and management for cachestore"""

import os
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

DEFAULT_PREFIX = "cache_"
# One hour
DEFAULT_EXPIRATION = 3600
DEFAULT_CLEANUP_INTERVAL = 3600
DEFAULT_ADDR = "localhost:6379"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CONFIG_FILENAME = ".cachestore.yaml"


class BackendKind(str, Enum):
    """Backends a store can be built on"""

    MEMORY = "memory"
    REDIS = "redis"
    DATABASE = "database"


class StoreConfig(BaseModel):
    """Store configuration

    Empty strings and zero durations mean "unset" and are replaced by the
    module defaults in ``resolve``.
    """

    prefix: str = Field(default="", description="Key prefix")
    expiration: float = Field(
        default=0, description="Default expiration in seconds (-1 = forever)"
    )
    cleanup_interval: float = Field(
        default=0, ge=0, description="Memory janitor interval in seconds"
    )
    addr: str = Field(default="", description="Redis address (host:port)")
    password: str | None = Field(default=None, description="Redis password")
    password_env: str | None = Field(
        default=None, description="Environment variable holding the Redis password"
    )
    db: int = Field(default=0, ge=0, description="Redis database number")
    database_url: str = Field(default="", description="SQLAlchemy database URL")

    def resolve(self) -> "StoreConfig":
        """Return a copy with every unset field replaced by its default

        Raises:
            ValueError: If password_env names an unset environment variable
        """
        password = self.password
        if password is None and self.password_env:
            password = os.getenv(self.password_env)
            if password is None:
                msg = (
                    f"Environment variable {self.password_env} not set. "
                    f"Please set it or remove password_env."
                )
                raise ValueError(msg)

        return self.model_copy(
            update={
                "prefix": self.prefix or DEFAULT_PREFIX,
                "expiration": self.expiration or DEFAULT_EXPIRATION,
                "cleanup_interval": self.cleanup_interval or DEFAULT_CLEANUP_INTERVAL,
                "addr": self.addr or DEFAULT_ADDR,
                "password": password,
                "database_url": self.database_url or DEFAULT_DATABASE_URL,
            }
        )


class Config(BaseModel):
    """Application configuration"""

    backend: BackendKind = BackendKind.MEMORY
    store: StoreConfig = StoreConfig()


def find_config_file(max_parents: int = 5) -> Path | None:
    """Find the nearest .cachestore.yaml, looking at most max_parents levels up"""
    start = Path.cwd()
    for directory in [start, *start.parents][: max_parents + 1]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file

    Args:
        config_path: Path to config file. If None, searches for .cachestore.yaml
            and falls back to the defaults when none is found

    Returns:
        Loaded configuration object

    Raises:
        FileNotFoundError: If an explicit config file cannot be read
        ValueError: If config is invalid
    """
    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            return Config()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config file: {e}"
        raise ValueError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file: {e}"
        raise FileNotFoundError(msg) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = "Config file must contain a YAML object"
        raise ValueError(msg)

    try:
        return Config(**data)
    except ValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ValueError(msg) from e
