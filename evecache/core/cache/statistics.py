"""Thread-safe cache usage counters."""

import threading

from evecache.core.cache.models import CacheStats


class CacheStatistics:
    """Hit, miss, write and eviction counters for one identity cache.

    Callers get a read-only view; the ``record_*`` methods are reserved for
    the cache store, which calls them alongside the store operation they
    describe. All counters share one lock, so ``snapshot()`` and ``reset()``
    never observe a half-applied update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._evictions = 0

    @property
    def hits(self) -> int:
        with self._lock:
            return self._hits

    @property
    def misses(self) -> int:
        with self._lock:
            return self._misses

    @property
    def writes(self) -> int:
        with self._lock:
            return self._writes

    @property
    def evictions(self) -> int:
        with self._lock:
            return self._evictions

    @property
    def total_requests(self) -> int:
        with self._lock:
            return self._hits + self._misses

    def snapshot(self) -> CacheStats:
        """Return a consistent copy of all counters."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                writes=self._writes,
                evictions=self._evictions,
            )

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._writes = 0
            self._evictions = 0

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def record_write(self) -> None:
        with self._lock:
            self._writes += 1

    def record_evictions(self, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            self._evictions += count

    def __str__(self) -> str:
        stats = self.snapshot()
        return (
            f"Writes: {stats.writes}, Hits: {stats.hits}, "
            f"Misses: {stats.misses}, Total Requests: {stats.total_requests}"
        )
