"""Cache data models and types."""

import time
import weakref
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time copy of the cache performance counters."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    evictions: int = 0

    @property
    def total_requests(self) -> int:
        """Lookups that either hit or missed."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.hits / self.total_requests) * 100.0

    @property
    def miss_rate(self) -> float:
        """Calculate cache miss rate as percentage."""
        if self.total_requests == 0:
            return 0.0
        return 100.0 - self.hit_rate


@dataclass
class CacheConfig:
    """Configuration for identity cache instances."""

    # Lifetime of reclaimable values that cannot be weakly referenced
    default_ttl_seconds: int | None = 3600
    # Minimum delay between opportunistic sweeps; None disables them
    clean_interval_seconds: int | None = 300
    enable_statistics: bool = True
    # Weakly referenced values also kept strongly, per region; None is unbounded
    max_retained_entries: int | None = 1000
    retention_policy: str = "lru"  # "lru", "lfu", "fifo"


@dataclass
class CacheEntry:
    """A single region-scoped binding of key to value.

    Permanent entries hold the value strongly. Reclaimable entries hold a weak
    reference when the value supports one, plus a strong retained reference
    until the owning region releases it to stay within its retention bound.
    Values that cannot be weakly referenced are held strongly until
    ``expires_at`` passes.
    """

    key: Any
    permanent: bool
    created_at: float
    last_accessed: float
    access_count: int = 0
    expires_at: float | None = None
    _strong: Any = field(default=None, repr=False)
    _weak: "weakref.ref[Any] | None" = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        key: Any,
        value: Any,
        permanent: bool,
        ttl_seconds: int | None = None,
        retain: bool = False,
    ) -> "CacheEntry":
        """Build an entry, choosing the reference kind for ``value``."""
        now = time.time()
        entry = cls(key=key, permanent=permanent, created_at=now, last_accessed=now)

        if permanent:
            entry._strong = value
            return entry

        try:
            entry._weak = weakref.ref(value)
            if retain:
                entry._strong = value
        except TypeError:
            entry._strong = value
            if ttl_seconds is not None:
                entry.expires_at = now + ttl_seconds
        return entry

    @property
    def is_retained(self) -> bool:
        """Check if a weakly referenced value is also held strongly."""
        return self._weak is not None and self._strong is not None

    def release(self) -> None:
        """Drop the retained reference; the value lives on only while used."""
        if self._weak is not None:
            self._strong = None

    @property
    def is_expired(self) -> bool:
        """Check if a strongly held reclaimable entry has outlived its TTL."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at

    def peek(self) -> Any:
        """Return the value, or None if the entry is dead. No metadata update."""
        if self._weak is not None:
            return self._weak()
        if self.is_expired:
            return None
        return self._strong

    def is_alive(self) -> bool:
        if self.permanent:
            return True
        return self.peek() is not None

    def touch(self) -> None:
        """Update last accessed time and increment access count."""
        self.last_accessed = time.time()
        self.access_count += 1
