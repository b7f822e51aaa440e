"""Bounded in-memory LRU cache for encoded render outputs."""

from collections import OrderedDict
from threading import Lock
from typing import List, Optional

from typst_raster.contexts.caching.logger import log_cache_eviction, log_cache_lookup


class LRUCache:
    """
    Thread-safe LRU cache mapping cache keys to encoded bytes.

    Recency is the order of the underlying OrderedDict: every get() and put()
    moves the key to the most-recently-used end, so two accesses are always
    orderable regardless of clock resolution. When the cache grows beyond its
    capacity the least recently used entry is evicted. A capacity of 0 keeps
    nothing (every put is immediately evicted).
    """

    def __init__(self, capacity: int = 100):
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise ValueError(f"capacity must be an integer (got {capacity!r})")
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0 (got {capacity})")

        self.capacity = capacity
        self.hits = 0
        self.misses = 0
        self._lock = Lock()
        self._data: "OrderedDict[str, bytes]" = OrderedDict()

    def get(self, key: str) -> Optional[bytes]:
        """
        Look up a key and mark it most recently used.

        Returns:
            Cached bytes, or None on a miss
        """
        with self._lock:
            value = self._data.get(key)
            if value is None:
                self.misses += 1
            else:
                self._data.move_to_end(key)
                self.hits += 1

        log_cache_lookup(key, hit=value is not None)
        return value

    def put(self, key: str, value: bytes) -> None:
        """Insert or overwrite a key, evicting the least recently used entry if full."""
        evicted: List[str] = []

        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = bytes(value)

            while len(self._data) > self.capacity:
                oldest, _ = self._data.popitem(last=False)
                evicted.append(oldest)

        for oldest in evicted:
            log_cache_eviction(oldest, self.capacity)

    def keys(self) -> List[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._data)

    def clear(self) -> None:
        """Drop every entry and reset hit/miss counters."""
        with self._lock:
            self._data.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, key: object) -> bool:
        # Membership checks do not refresh recency
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
