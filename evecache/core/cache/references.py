"""Per-region entry storage for permanent and reclaimable values."""

from collections.abc import Iterator
from typing import Any

from evecache.core.cache.keys import CacheKeyType
from evecache.core.cache.models import CacheEntry


class ReferenceCollection:
    """The entries of a single region.

    Not synchronized: the owning cache calls it under the region lock (or the
    master write lock). Reads never add, remove or release entries, so they
    are safe under a shared read lock; dead reclaimable entries linger until
    the next write to the same key or the next :meth:`sweep`. A read does
    update the entry's ``last_accessed`` and ``access_count``. Concurrent
    readers may lose some of those updates, which only affects the order in
    which retained entries are released.

    Reclaimable entries whose value supports weak references are also
    retained strongly. Once more than ``max_retained`` entries are retained,
    writes release the least valuable ones according to ``retention_policy``;
    released entries stay reachable for as long as something else holds the
    value.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        max_retained: int | None = None,
        retention_policy: str = "lru",
    ):
        self.ttl_seconds = ttl_seconds
        self.max_retained = max_retained
        self.retention_policy = retention_policy
        self._entries: dict[CacheKeyType, CacheEntry] = {}
        self._retained_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def retained_count(self) -> int:
        return self._retained_count

    def get(self, key: CacheKeyType) -> Any:
        """Return the live value for ``key`` or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value = entry.peek()
        if value is not None:
            entry.touch()
        return value

    def contains(self, key: CacheKeyType) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_alive()

    def set(self, key: CacheKeyType, value: Any, permanent: bool) -> CacheEntry:
        """Store ``value`` under ``key``, replacing any existing entry."""
        entry = CacheEntry.create(
            key,
            value,
            permanent,
            ttl_seconds=self.ttl_seconds,
            retain=self.max_retained != 0,
        )
        self._discard(self._entries.get(key))
        self._entries[key] = entry
        if entry.is_retained:
            self._retained_count += 1
            self._enforce_retention_limit()
        return entry

    def remove(self, key: CacheKeyType) -> Any:
        """Drop the entry for ``key`` and return its value if still alive."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return None
        self._discard(entry)
        return entry.peek()

    def clear(self) -> None:
        self._entries.clear()
        self._retained_count = 0

    def sweep(self) -> int:
        """Remove reclaimable entries whose value is gone.

        Permanent and retained entries are never touched.

        Returns:
            Number of entries removed
        """
        dead_keys = [
            key
            for key, entry in self._entries.items()
            if not entry.permanent and not entry.is_alive()
        ]
        for key in dead_keys:
            del self._entries[key]
        return len(dead_keys)

    def live_items(self) -> Iterator[tuple[CacheKeyType, Any]]:
        """Yield ``(key, value)`` for every entry whose value is still alive."""
        for key, entry in list(self._entries.items()):
            value = entry.peek()
            if value is not None:
                yield key, value

    def _discard(self, entry: CacheEntry | None) -> None:
        if entry is not None and entry.is_retained:
            self._retained_count -= 1

    def _enforce_retention_limit(self) -> int:
        """Release retained entries until the region is within its bound."""
        if self.max_retained is None or self._retained_count <= self.max_retained:
            return 0

        retained = [entry for entry in self._entries.values() if entry.is_retained]

        # Sort by retention policy (default LRU)
        if self.retention_policy == "lfu":
            retained.sort(key=lambda entry: entry.access_count)
        elif self.retention_policy == "fifo":
            retained.sort(key=lambda entry: entry.created_at)
        else:
            retained.sort(key=lambda entry: entry.last_accessed)

        to_release = retained[: self._retained_count - self.max_retained]
        for entry in to_release:
            entry.release()
        self._retained_count -= len(to_release)
        return len(to_release)
