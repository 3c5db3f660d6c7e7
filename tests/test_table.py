"""Tests for the in-process expiring table"""

import threading
import time

import pytest

from cachestore.drivers.table import ExpiringTable, reset_shared_table, shared_table
from cachestore.errors import NumericOpError


class TestExpiringTable:
    """Test expiring table operations"""

    def test_basic_operations(self, table):
        """Test set, get, contains and delete"""
        table.set("key1", "value1", None)
        assert table.get("key1") == ("value1", True)
        assert table.get("missing") == (None, False)
        assert table.contains("key1") is True

        assert table.delete("key1") is True
        assert table.delete("key1") is False
        assert table.contains("key1") is False

    def test_stored_none_is_found(self, table):
        """Test a stored None is distinguishable from a missing key"""
        table.set("nothing", None, None)
        assert table.get("nothing") == (None, True)
        assert table.contains("nothing") is True

    def test_expiration(self, table, clock):
        """Test entries disappear after their ttl"""
        table.set("short", "v", 10)
        table.set("never", "v", None)

        clock.advance(10)
        assert table.contains("short") is True

        clock.advance(0.001)
        assert table.get("short") == (None, False)
        assert table.contains("never") is True

        # Expired entries are invisible but still stored until evicted
        assert table.item_count() == 2
        assert table.delete_expired() == 1
        assert table.item_count() == 1

    def test_delete_expired_entry_reports_false(self, table, clock):
        table.set("key", "v", 1)
        clock.advance(2)
        assert table.delete("key") is False

    def test_increment_decrement(self, table):
        """Test numeric adjustments"""
        table.set("int", 10, None)
        table.set("float", 1.5, None)

        assert table.increment("int", 5) == 15
        assert table.decrement("int", 20) == -5
        assert table.increment("float", 1) == 2.5
        assert table.get("int") == (-5, True)

    def test_increment_keeps_expiry(self, table, clock):
        table.set("counter", 1, 10)
        table.increment("counter", 1)
        clock.advance(11)
        assert table.contains("counter") is False

    def test_increment_errors(self, table, clock):
        """Test increment on absent, expired and non-numeric entries"""
        with pytest.raises(NumericOpError, match="not found"):
            table.increment("missing", 1)

        table.set("text", "abc", None)
        table.set("flag", True, None)
        with pytest.raises(NumericOpError, match="not an integer or float"):
            table.increment("text", 1)
        with pytest.raises(NumericOpError):
            table.decrement("flag", 1)

        table.set("old", 1, 1)
        clock.advance(2)
        with pytest.raises(NumericOpError, match="not found"):
            table.increment("old", 1)

    def test_concurrent_increments_are_atomic(self):
        """Test increments from many threads are not lost"""
        table = ExpiringTable()
        table.set("counter", 0, None)

        def work():
            for _ in range(1000):
                table.increment("counter", 1)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert table.get("counter") == (8000, True)

    def test_flush(self, table):
        table.set("a", 1, None)
        table.set("b", 2, None)
        table.flush()
        assert table.item_count() == 0

    def test_janitor_evicts_expired_entries(self):
        """Test the background janitor removes expired entries"""
        table = ExpiringTable(cleanup_interval=0.02)
        try:
            table.set("key", "value", 0.01)
            deadline = time.monotonic() + 2
            while table.item_count() and time.monotonic() < deadline:
                time.sleep(0.01)
            assert table.item_count() == 0
        finally:
            table.close()


class TestSharedTable:
    """Test the process-wide table"""

    def test_shared_table_is_a_singleton(self):
        first = shared_table(3600)
        second = shared_table(60)
        assert first is second
        # Interval comes from the first caller
        assert second.cleanup_interval == 3600

    def test_reset_shared_table(self):
        first = shared_table(3600)
        first.set("key", "value", None)
        reset_shared_table()
        second = shared_table(3600)
        assert second is not first
        assert second.contains("key") is False
