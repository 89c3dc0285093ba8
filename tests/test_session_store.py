"""
Tests for the in-memory session store and the response cache.
"""
import threading
import time

import pytest

from barista_bot.services.session import InMemorySessionStore, ResponseCache
from barista_bot.tasks.errors import StaleSessionWrite
from barista_bot.tasks.models import ProductRef


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSessionStore:
    """Basic storage semantics."""

    def test_create_and_get(self, store):
        session = store.create("abc")
        assert session.version == 1
        loaded = store.get("abc")
        assert loaded.session_id == "abc"
        assert loaded.version == 1

    def test_generated_ids_are_unique(self, store):
        assert store.create().session_id != store.create().session_id

    def test_missing_key(self, store):
        assert store.get("nope") is None
        assert "nope" not in store

    def test_get_returns_isolated_copy(self, store):
        store.create("abc")
        working = store.get("abc")
        working.current_order.branch = "Starbucks Condesa"
        assert store.get("abc").current_order.branch is None

    def test_set_bumps_version(self, store):
        store.create("abc")
        working = store.get("abc")
        new_version = store.set("abc", working, expected_version=working.version)
        assert new_version == 2
        assert working.version == 2
        assert store.get("abc").version == 2

    def test_stale_write_is_rejected(self, store):
        """Two writers read version 1; the second write fails."""
        store.create("abc")
        first = store.get("abc")
        second = store.get("abc")

        first.current_order.branch = "Starbucks Condesa"
        store.set("abc", first, expected_version=1)

        second.current_order.beverage = ProductRef(id="americano", name="Americano")
        with pytest.raises(StaleSessionWrite) as exc_info:
            store.set("abc", second, expected_version=1)
        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2

        stored = store.get("abc")
        assert stored.current_order.branch == "Starbucks Condesa"
        assert stored.current_order.beverage is None

    def test_create_refuses_live_key(self, store):
        """A second create for the same key keeps the stored session."""
        store.create("abc")
        working = store.get("abc")
        working.current_order.branch = "Starbucks Condesa"
        store.set("abc", working, expected_version=working.version)

        with pytest.raises(StaleSessionWrite) as exc_info:
            store.create("abc")
        assert exc_info.value.expected == 0
        assert exc_info.value.actual == 2
        assert store.get("abc").current_order.branch == "Starbucks Condesa"

    def test_delete(self, store):
        store.create("abc")
        assert store.delete("abc")
        assert not store.delete("abc")
        assert store.get("abc") is None


class TestExpiryAndEviction:

    def test_idle_session_expires(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, max_size=10, clock=clock)
        store.create("abc")
        clock.now += 30
        assert store.get("abc") is not None
        clock.now += 61
        assert store.get("abc") is None

    def test_expired_key_can_be_created_again(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, max_size=10, clock=clock)
        store.create("abc")
        clock.now += 61
        session = store.create("abc")
        assert session.version == 1
        assert store.get("abc").version == 1

    def test_cleanup_expired(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, max_size=10, clock=clock)
        store.create("a")
        store.create("b")
        clock.now += 120
        assert store.cleanup_expired() == 2
        assert len(store) == 0

    def test_least_recently_used_is_evicted(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=3600, max_size=3, clock=clock)
        for key in ("a", "b", "c"):
            store.create(key)
            clock.now += 1
        store.get("a")  # refresh a
        clock.now += 1
        store.create("d")
        assert "b" not in store
        assert "a" in store
        assert "d" in store
        assert len(store) == 3

    def test_locked_session_is_not_evicted(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=3600, max_size=2, clock=clock)
        store.create("a")
        clock.now += 1
        store.create("b")
        clock.now += 1
        with store.lock("a"):
            store.create("c")
            assert "a" in store
            assert "b" not in store

    def test_stats(self, store):
        store.create("abc")
        with store.lock("abc"):
            stats = store.stats()
        assert stats["size"] == 1
        assert stats["locked"] == 1
        assert store.stats()["locked"] == 0


class TestSessionLock:
    """Per-session serialization."""

    def test_lock_serializes_turns(self, store):
        """Concurrent read-modify-write cycles under the lock lose no update."""
        store.create("abc")
        workers = 8

        def bump():
            with store.lock("abc"):
                working = store.get("abc")
                working.turn_count += 1
                time.sleep(0.001)
                store.set("abc", working, expected_version=working.version)

        threads = [threading.Thread(target=bump) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = store.get("abc")
        assert final.turn_count == workers
        assert final.version == 1 + workers

    def test_different_sessions_do_not_block(self, store):
        store.create("a")
        store.create("b")
        acquired = threading.Event()

        def hold_b():
            with store.lock("b"):
                acquired.set()

        with store.lock("a"):
            thread = threading.Thread(target=hold_b)
            thread.start()
            assert acquired.wait(timeout=2)
            thread.join()


class TestResponseCache:

    def test_put_and_get(self):
        cache = ResponseCache(max_size=2)
        cache.put(("hola", 1, "s"), "reply")
        assert cache.get(("hola", 1, "s")) == "reply"
        assert cache.get(("hola", 2, "s")) is None

    def test_oldest_entry_dropped_first(self):
        cache = ResponseCache(max_size=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)
        assert "a" not in cache
        assert "b" in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_zero_size_disables_cache(self):
        cache = ResponseCache(max_size=0)
        cache.put("a", 1)
        assert cache.get("a") is None
