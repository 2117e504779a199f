"""Key-value store contract used for persisted cache entries."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Minimal string key-value store.

    Values are opaque strings (serialized JSON); stores never interpret them.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        """Store value, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""

    def close(self) -> None:
        """Release resources held by the store."""
