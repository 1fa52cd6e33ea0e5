"""
In-process TTL cache for inference responses and agent results.

Expiry is lazy: there is no eviction thread, an expired entry is removed the
next time it is read. There is no capacity bound; ``set`` always overwrites.
"""
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Key/value store with per-entry expiry, safe to share between threads."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[V]] = {}
        self._lock = Lock()

    def get(self, key: Hashable) -> Optional[V]:
        """
        Get value for key.

        Returns:
            The cached value, or None if absent or expired.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: Hashable, value: V, ttl_ms: float) -> None:
        """
        Store value under key, replacing any existing entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl_ms: Time to live in milliseconds
        """
        with self._lock:
            self._entries[key] = CacheEntry(
                value=value,
                expires_at=self._clock() + ttl_ms / 1000.0,
            )

    def delete(self, key: Hashable) -> bool:
        """
        Remove the entry for key.

        Args:
            key: Cache key

        Returns:
            True if an entry (expired or not) was removed
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        # Counts expired-but-unread entries too.
        with self._lock:
            return len(self._entries)
