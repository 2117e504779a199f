"""Tests for the in-memory key-value store."""
from geocurrency.storage import MemoryStore, SqlStore, build_store

import pytest


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_cache_set_get():
    """Test basic set and get."""
    cache = MemoryStore()
    cache.set("key1", "value1", ttl_seconds=10)
    assert cache.get("key1") == "value1"


def test_cache_expiration():
    """Test TTL expiration."""
    clock = FakeClock()
    cache = MemoryStore(clock=clock)
    cache.set("key1", "value1", ttl_seconds=1)
    clock.now += 1.1
    assert cache.get("key1") is None
    assert len(cache) == 0


def test_cache_delete():
    """Test delete."""
    cache = MemoryStore()
    cache.set("key1", "value1")
    cache.delete("key1")
    cache.delete("never-set")
    assert cache.get("key1") is None


def test_cache_clear():
    """Test clear all."""
    cache = MemoryStore()
    cache.set("key1", "value1")
    cache.set("key2", "value2")
    cache.clear()
    assert cache.get("key1") is None
    assert cache.get("key2") is None


def test_cache_cleanup_expired():
    """Test cleanup of expired entries."""
    clock = FakeClock()
    cache = MemoryStore(clock=clock)
    cache.set("key1", "value1", ttl_seconds=10)
    cache.set("key2", "value2", ttl_seconds=1)
    clock.now += 1.1

    count = cache.cleanup_expired()
    assert count == 1
    assert cache.get("key1") == "value1"
    assert cache.get("key2") is None


def test_build_store():
    assert isinstance(build_store("memory"), MemoryStore)
    assert isinstance(build_store("sqlite", ":memory:"), SqlStore)
    with pytest.raises(ValueError):
        build_store("redis")
