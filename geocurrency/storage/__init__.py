"""Key-value stores backing the resolution cache."""

from .base import KeyValueStore
from .memory import MemoryStore
from .sql import SqlStore


def build_store(backend: str = "memory", path: str = "data/geocurrency_cache.db") -> KeyValueStore:
    """Get a store by canonical backend name ("memory" or "sqlite")."""
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        return SqlStore(path=path)
    raise ValueError(f"Unknown cache backend: {backend}")


__all__ = ["KeyValueStore", "MemoryStore", "SqlStore", "build_store"]
