"""Short-lived in-process cache for read responses.

Entries live for a fixed TTL and are dropped wholesale on every write. A
change to the record count shifts every pagination window, so per-key
invalidation would not be any more precise.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache
from pydantic import BaseModel, ConfigDict

from .logger import get_logger

logger = get_logger(__name__)

type Clock = Callable[[], float]


class CacheEntry(BaseModel):
    """A cached read response and the clock reading it was stored at."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any
    stored_at: float


def page_cache_key(page: int, limit: int) -> str:
    """Key for one page of the blog listing."""
    return f"blogs:{page}:{limit}"


class CacheLayer:
    """TTL-bounded key/value store, safe to share between tasks and threads.

    Parameters
    ----------
    ttl_seconds
        Age at which an entry is treated as absent. An entry is valid while
        ``clock() - stored_at < ttl_seconds``.
    max_entries
        Upper bound on stored entries; the least recently used go first.
    clock
        Monotonic time source, injectable for tests.

    Expiry is lazy: nothing sweeps in the background, ``get`` evicts the
    stale entry it finds.
    """

    __slots__ = ("_clock", "_entries", "_lock", "_ttl_seconds")

    def __init__(self, ttl_seconds: float = 10.0, max_entries: int = 1024, clock: Clock = time.monotonic) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: TTLCache[str, CacheEntry] = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=clock)
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, key: str) -> Any | None:
        """Return the stored value, or None when absent or expired."""
        entry = self.entry(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, stored_at=self._clock())

    def entry(self, key: str) -> CacheEntry | None:
        """Return the live entry for ``key`` with its metadata, if any."""
        with self._lock:
            # TTLCache hides expired items from lookups but only drops them on expire()
            self._entries.expire()
            entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss", cache_key=key)
        else:
            logger.debug("Cache hit", cache_key=key)
        return entry

    def age(self, entry: CacheEntry) -> float:
        """Seconds since ``entry`` was stored, on this cache's clock."""
        return self._clock() - entry.stored_at

    def invalidate_all(self) -> None:
        """Drop every entry regardless of age."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        logger.debug("Cache invalidated", dropped=dropped)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
