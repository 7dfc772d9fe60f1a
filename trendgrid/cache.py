"""Result cache — short-lived store for batch trend evaluations.

Owned by the API layer and passed in explicitly; the period calculator
and trend evaluator never touch it. Keys combine the instrument set, the
display timezone and the optional ``at`` override.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger("trendgrid.cache")


@dataclass(frozen=True)
class CacheKey:
    """Identity of a cached batch result."""

    instruments: tuple[str, ...]
    display_timezone: str
    at: Optional[str] = None  # ISO override instant, None for "now"

    @classmethod
    def build(
        cls,
        instruments: Iterable[str],
        display_timezone: str,
        at: Optional[datetime] = None,
    ) -> "CacheKey":
        return cls(
            instruments=tuple(sorted(set(instruments))),
            display_timezone=display_timezone,
            at=at.isoformat() if at is not None else None,
        )


class _Entry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float) -> None:
        self.value = value
        self.expires_at = expires_at


class ResultCache:
    """Thread-safe TTL cache with LRU eviction.

    Args:
        ttl_seconds: Lifetime of an entry.
        max_entries: Upper bound before the least recently used entry is evicted.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_entries: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, _Entry]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: CacheKey) -> Optional[Any]:
        """Return the cached value, or ``None`` on a miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = _Entry(value, self._clock() + self._ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry for %s", evicted.display_timezone)

    def invalidate(self, key: Optional[CacheKey] = None) -> int:
        """Drop one entry, or everything when *key* is ``None``.

        Returns the number of entries removed.
        """
        with self._lock:
            if key is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                removed = 1 if self._entries.pop(key, None) is not None else 0
        logger.info("Cache invalidated (%d entr%s)", removed, "y" if removed == 1 else "ies")
        return removed

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "expirations": self._expirations,
                "ttl_seconds": self._ttl,
            }
