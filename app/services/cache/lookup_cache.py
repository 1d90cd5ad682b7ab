"""
In-process lookup cache.

Size-bounded key/value store with a fixed time-to-live per entry.
When full, the oldest inserted entry is evicted (FIFO, not LRU).
Expired entries are removed lazily when read; there is no sweeper.

Values must be immutable snapshots: callers never mutate a cached value
in place, they replace it with set() or drop it with invalidate().
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from app.config.business_constants import (
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL_SECONDS,
)


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Any
    expires_at: float


class LookupCache:
    """
    FIFO cache with absolute per-entry expiry.

    Example:
        >>> cache = LookupCache(max_size=2, ttl_seconds=60)
        >>> cache.set("participant:1", snapshot)
        >>> cache.get("participant:1")
        snapshot
    """

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            ttl_seconds: Lifetime of each entry from insertion
            clock: Monotonic time source (seconds)
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # dict preserves insertion order, which drives FIFO eviction
        self._entries: dict[str, _Entry] = {}

        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0

    def get(self, key: str) -> Any | None:
        """
        Get a live value.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if self._clock() > entry.expires_at:
            del self._entries[key]
            self.expirations += 1
            self.misses += 1
            return None

        self.hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """
        Store a value with expiry now + TTL.

        Replacing an existing key refreshes its expiry and moves it to
        the back of the eviction queue.

        Args:
            key: Cache key
            value: Immutable value snapshot
        """
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            self.evictions += 1

        self._entries[key] = _Entry(value, self._clock() + self.ttl_seconds)

    def invalidate(self, key: str) -> bool:
        """
        Drop a key.

        Returns:
            True if the key was present
        """
        return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """
        Drop every key starting with prefix.

        Returns:
            Number of keys dropped
        """
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        size = len(self._entries)
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0
        logger.info(
            "Lookup cache cleared", extra={"entries_dropped": size}
        )

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def hit_rate(self) -> float:
        """Hit rate in percent over all reads since the last clear."""
        total = self.hits + self.misses
        return (self.hits / total) * 100 if total else 0.0

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with size, bounds and counters
        """
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate": round(self.hit_rate, 2),
        }
