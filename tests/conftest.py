import fakeredis
import fakeredis.aioredis
import pytest
from hypothesis import Verbosity, settings

from cachestore.drivers.memory import MemoryDriver
from cachestore.drivers.redis import RedisDriver
from cachestore.drivers.table import ExpiringTable, reset_shared_table

# Register test profiles
settings.register_profile("dev", max_examples=10)
settings.register_profile("ci", max_examples=100)
settings.register_profile("debug", max_examples=1000, verbosity=Verbosity.verbose)


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_shared_table():
    """Give every test a fresh process-wide memory table"""
    yield
    reset_shared_table()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def table(clock):
    # No janitor thread; tests evict explicitly
    return ExpiringTable(cleanup_interval=0, clock=clock)


@pytest.fixture
def memory_driver(table):
    return MemoryDriver(table, default_expiration=3600)


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis_client(fake_server):
    return fakeredis.aioredis.FakeRedis(server=fake_server)


@pytest.fixture
def redis_driver(redis_client):
    return RedisDriver(redis_client)
