"""Tests for the SQLite key-value store."""
import pytest

from geocurrency.storage import SqlStore
from geocurrency.utils.errors import CacheError


@pytest.fixture
def store(tmp_path):
    s = SqlStore(path=str(tmp_path / "cache.db"))
    yield s
    s.close()


def test_set_get_replace(store):
    store.set("a", '{"x": 1}')
    assert store.get("a") == '{"x": 1}'
    store.set("a", '{"x": 2}')
    assert store.get("a") == '{"x": 2}'
    assert store.keys() == ["a"]


def test_missing_key(store):
    assert store.get("nope") is None


def test_expired_entry_is_dropped(store):
    store.set("a", "v", ttl_seconds=-1)
    assert store.get("a") is None
    assert store.keys() == []


def test_delete_and_clear(store):
    store.set("a", "1")
    store.set("b", "2")
    store.delete("a")
    assert store.get("a") is None
    store.clear()
    assert store.keys() == []


def test_survives_reopen(tmp_path):
    path = str(tmp_path / "persist.db")
    first = SqlStore(path=path)
    first.set("k", "v")
    first.close()

    second = SqlStore(path=path)
    assert second.get("k") == "v"
    second.close()


def test_errors_are_wrapped(store):
    store.engine.dispose()
    store._session_factory = None  # any use now fails
    with pytest.raises(CacheError):
        store.get("a")
    with pytest.raises(CacheError):
        store.set("a", "v")
