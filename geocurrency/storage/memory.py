"""Simple in-memory store with optional TTL."""
import threading
import time
from typing import Any, Callable, Dict, Optional

from geocurrency.storage.base import KeyValueStore


class MemoryStore(KeyValueStore):
    """Thread-safe in-memory store. Entries vanish with the process."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store value with optional expiration."""
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._cache[key] = {"value": value, "expires_at": expires_at}

    def get(self, key: str) -> Optional[Any]:
        """Retrieve value if not expired."""
        with self._lock:
            item = self._cache.get(key)
            if item is None:
                return None
            expires_at = item["expires_at"]
            if expires_at is None or self._clock() < expires_at:
                return item["value"]
            del self._cache[key]
            return None

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def cleanup_expired(self) -> int:
        """Remove expired entries. Returns count removed."""
        with self._lock:
            now = self._clock()
            expired = [
                k for k, v in self._cache.items()
                if v["expires_at"] is not None and now >= v["expires_at"]
            ]
            for key in expired:
                del self._cache[key]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
