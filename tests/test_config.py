"""Tests for configuration loading"""

import pytest

from cachestore.config import (
    DEFAULT_ADDR,
    DEFAULT_CLEANUP_INTERVAL,
    DEFAULT_DATABASE_URL,
    DEFAULT_EXPIRATION,
    DEFAULT_PREFIX,
    BackendKind,
    Config,
    StoreConfig,
    find_config_file,
    load_config,
)


class TestStoreConfig:
    """Test default resolution"""

    def test_resolve_fills_unset_fields(self):
        resolved = StoreConfig().resolve()
        assert resolved.prefix == DEFAULT_PREFIX
        assert resolved.expiration == DEFAULT_EXPIRATION
        assert resolved.cleanup_interval == DEFAULT_CLEANUP_INTERVAL
        assert resolved.addr == DEFAULT_ADDR
        assert resolved.database_url == DEFAULT_DATABASE_URL
        assert resolved.password is None
        assert resolved.db == 0

    def test_resolve_keeps_set_fields(self):
        config = StoreConfig(
            prefix="p_", expiration=-1, cleanup_interval=10, addr="redis:7000", db=2
        )
        resolved = config.resolve()
        assert resolved.prefix == "p_"
        # A forever default is kept, not replaced
        assert resolved.expiration == -1
        assert resolved.cleanup_interval == 10
        assert resolved.addr == "redis:7000"
        assert resolved.db == 2

    def test_password_from_environment(self, monkeypatch):
        monkeypatch.setenv("TEST_REDIS_PASSWORD", "hunter2")
        resolved = StoreConfig(password_env="TEST_REDIS_PASSWORD").resolve()
        assert resolved.password == "hunter2"

    def test_explicit_password_wins(self, monkeypatch):
        monkeypatch.setenv("TEST_REDIS_PASSWORD", "from-env")
        resolved = StoreConfig(
            password="explicit", password_env="TEST_REDIS_PASSWORD"
        ).resolve()
        assert resolved.password == "explicit"

    def test_missing_password_env(self, monkeypatch):
        monkeypatch.delenv("TEST_REDIS_PASSWORD", raising=False)
        with pytest.raises(ValueError, match="TEST_REDIS_PASSWORD not set"):
            StoreConfig(password_env="TEST_REDIS_PASSWORD").resolve()

    def test_negative_db_rejected(self):
        with pytest.raises(ValueError):
            StoreConfig(db=-1)


class TestLoadConfig:
    """Test loading YAML configuration"""

    def test_load_config(self, tmp_path):
        config_file = tmp_path / ".cachestore.yaml"
        config_file.write_text(
            "backend: redis\n"
            "store:\n"
            "  prefix: app_\n"
            "  expiration: 600\n"
            "  addr: cache.internal:6379\n"
            "  db: 2\n"
        )

        config = load_config(config_file)
        assert config.backend is BackendKind.REDIS
        assert config.store.prefix == "app_"
        assert config.store.expiration == 600
        assert config.store.db == 2

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / ".cachestore.yaml"
        config_file.write_text("")
        assert load_config(config_file) == Config()

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / ".cachestore.yaml"
        config_file.write_text("backend: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(config_file)

    def test_non_mapping(self, tmp_path):
        config_file = tmp_path / ".cachestore.yaml"
        config_file.write_text("- memory\n- redis\n")
        with pytest.raises(ValueError, match="must contain a YAML object"):
            load_config(config_file)

    def test_unknown_backend(self, tmp_path):
        config_file = tmp_path / ".cachestore.yaml"
        config_file.write_text("backend: memcached\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Cannot read config file"):
            load_config(tmp_path / "nope.yaml")

    def test_find_config_in_parent(self, tmp_path, monkeypatch):
        config_file = tmp_path / ".cachestore.yaml"
        config_file.write_text("backend: database\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert find_config_file() == config_file
        assert load_config().backend is BackendKind.DATABASE

    def test_find_config_stops_at_max_parents(self, tmp_path, monkeypatch):
        (tmp_path / ".cachestore.yaml").write_text("backend: redis\n")
        nested = tmp_path / "a" / "b" / "c"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert find_config_file(max_parents=2) is None
        assert find_config_file(max_parents=3) == tmp_path / ".cachestore.yaml"

    def test_no_config_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        if find_config_file() is None:
            assert load_config() == Config()
