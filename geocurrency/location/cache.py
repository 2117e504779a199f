"""Last-good location result, persisted in a key-value store with a TTL."""
from __future__ import annotations

import json
import time
from typing import Callable, Optional

from geocurrency.location.models import CacheEntry, LocationResult
from geocurrency.storage.base import KeyValueStore
from geocurrency.storage.memory import MemoryStore
from geocurrency.utils.errors import CacheError, CacheReadError, ValidationError
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

CACHE_KEY = "geocurrency:location"


class ResolutionCache:
    """TTL cache for one resolver.

    Disabled caches never return anything and never write. Corrupt entries
    are dropped and reported as a miss.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        ttl_seconds: float = 600.0,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store if store is not None else MemoryStore()
        self.ttl_seconds = float(ttl_seconds)
        self.enabled = enabled and self.ttl_seconds > 0
        self._clock = clock

    @staticmethod
    def key_for(ip: Optional[str] = None) -> str:
        return f"{CACHE_KEY}:{ip}" if ip else CACHE_KEY

    def read(self, ip: Optional[str] = None) -> Optional[LocationResult]:
        if not self.enabled:
            return None
        key = self.key_for(ip)
        try:
            entry = self._load(key)
        except CacheReadError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            self._safe_delete(key)
            return None
        except CacheError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

        if entry is None:
            logger.debug(f"Cache miss for {key}")
            return None
        if not entry.is_valid(self._clock(), self.ttl_seconds):
            logger.debug(f"Cache entry for {key} expired")
            self._safe_delete(key)
            return None
        logger.debug(f"Cache hit for {key} ({entry.result.detection_method})")
        return entry.result

    def write(self, result: LocationResult, ip: Optional[str] = None) -> None:
        if not self.enabled:
            return
        key = self.key_for(ip)
        entry = CacheEntry(result=result, created_at=self._clock())
        try:
            self.store.set(key, json.dumps(entry.to_dict(), ensure_ascii=False))
        except CacheError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def invalidate(self, ip: Optional[str] = None) -> None:
        """Drop one lookup's entry, or every entry when called without an ip."""
        if ip:
            self._safe_delete(self.key_for(ip))
            return
        try:
            self.store.clear()
        except CacheError as e:
            logger.warning(f"Cache clear failed: {e}")
        logger.info("Location cache invalidated")

    def _load(self, key: str) -> Optional[CacheEntry]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.from_dict(json.loads(raw))
        except (TypeError, ValueError, ValidationError) as e:
            raise CacheReadError(str(e)) from e

    def _safe_delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except CacheError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
