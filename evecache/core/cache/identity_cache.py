"""Identity-map cache for immutable reference values."""

import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

from evecache.core.cache.keys import CacheKeyType, key_for
from evecache.core.cache.locks import RegionLockManager
from evecache.core.cache.models import CacheConfig, CacheStats
from evecache.core.cache.references import ReferenceCollection
from evecache.core.cache.regions import RegionMap
from evecache.core.cache.statistics import CacheStatistics
from evecache.core.errors import (
    CacheKeyMismatchError,
    CacheReentrancyError,
    CacheValueError,
)
from evecache.core.structlog_logger import StructlogMixin
from evecache.models.cacheable import Cacheable


T = TypeVar("T")


class IdentityCache(StructlogMixin):
    """Keeps at most one live instance per (declared type, identifier).

    The cache is split into regions, one per registered type or type family,
    each with its own reader/writer lock. Entries are either permanent (held
    strongly until removed) or reclaimable and pruned by :meth:`clean`. A
    reclaimable value is held weakly and also retained strongly until its
    region holds more than ``config.max_retained_entries`` retained values;
    values that cannot be weakly referenced live under a TTL instead.

    Identifiers are scalars or tuples of sub-identifiers; tuples are combined
    with :func:`evecache.core.cache.keys.make_key`.

    A factory passed to :meth:`get_or_add` runs while its region's write lock
    is held. It may read from or write to the cache, including its own
    region, but every other thread touching that region waits until it
    returns. There is no timeout. A factory must not call :meth:`clear`,
    :meth:`items`, ``len()`` or an unrestricted :meth:`clean`; these lock every
    region and raise :class:`CacheReentrancyError` when nested.
    """

    def __init__(self, region_map: RegionMap, config: CacheConfig | None = None):
        """Initialize identity cache.

        Args:
            region_map: Type to region registration table
            config: Cache configuration options
        """
        super().__init__()
        self.region_map = region_map
        self.config = config or CacheConfig()
        self._locks = RegionLockManager()
        self._collections: dict[str, ReferenceCollection] = {}
        self._statistics = CacheStatistics()
        self._clean_lock = threading.Lock()
        self._last_clean = time.monotonic()

    @property
    def statistics(self) -> CacheStatistics:
        """Read-only usage counters."""
        return self._statistics

    @property
    def locks(self) -> RegionLockManager:
        return self._locks

    def get_stats(self) -> CacheStats:
        """Get a snapshot of the cache performance statistics."""
        return self._statistics.snapshot()

    def get_or_add(
        self,
        value_type: type[T],
        identifier: Any,
        factory: Callable[[], T],
        permanent: bool = False,
    ) -> T:
        """Return the cached value, building and storing it on a miss.

        The factory is invoked at most once per miss. If it raises, the
        exception propagates, the miss is still counted and nothing is
        stored; the next caller retries the factory.

        Args:
            value_type: Declared type, selects the region
            identifier: Scalar id or tuple of sub-identifiers
            factory: Builds the value from the backing store
            permanent: Store as a permanent instead of reclaimable entry

        Returns:
            The instance stored for this key, identical for all racing callers

        Raises:
            RegionNotRegisteredError: If no region is registered for the type
            CacheKeyMismatchError: If the built value reports a different key
            CacheValueError: If the factory returns None
        """
        region = self.region_map.get_region(value_type)
        key = key_for(identifier)

        with self._locks.read(region):
            value = self._lookup(region, key)
            if value is not None:
                self._record_hit()
                return value  # type: ignore[no-any-return]

        with self._locks.write(region):
            # Another thread may have stored it while we waited for the write lock
            value = self._lookup(region, key)
            if value is not None:
                self._record_hit()
                return value  # type: ignore[no-any-return]

            self._record_miss()
            try:
                value = factory()
            except Exception as e:
                self.log_error_with_context(
                    "cache_factory_failed", e, region=region, key=key
                )
                raise
            self._verify_value(key, value)
            self._store(region, key, value, permanent)

        self.logger.debug("cache_miss_stored", region=region, key=key, permanent=permanent)
        self._maybe_clean()
        return value

    def get_or_add_value(self, value: T, permanent: bool = False) -> T:
        """Identity-map an already built value under its own type.

        Returns the cached instance when one exists, otherwise stores and
        returns ``value``.
        """
        if not isinstance(value, Cacheable):
            raise CacheValueError(
                f"{type(value).__qualname__} does not expose a cache_key"
            )
        return self.get_or_add(
            type(value), value.cache_key, lambda: value, permanent=permanent
        )

    def try_get_value(self, value_type: type[T], identifier: Any) -> tuple[bool, T | None]:
        """Look up a value without building it.

        Returns:
            ``(True, value)`` on a hit, ``(False, None)`` on a miss
        """
        region = self.region_map.get_region(value_type)
        key = key_for(identifier)

        with self._locks.read(region):
            value = self._lookup(region, key)
            if value is None:
                self._record_miss()
                return False, None
            self._record_hit()
            return True, value

    def get(self, value_type: type[T], identifier: Any, default: Any = None) -> T | Any:
        """Return the cached value or ``default``; counts as a lookup."""
        found, value = self.try_get_value(value_type, identifier)
        return value if found else default

    def add_or_replace(
        self,
        value_type: type[T],
        value: T,
        permanent: bool = False,
        key: Any = None,
    ) -> None:
        """Store ``value``, overwriting any entry for the same key.

        Permanent entries are replaced as well.

        Args:
            value_type: Declared type, selects the region
            value: Value to store
            permanent: Store as a permanent instead of reclaimable entry
            key: Identifier to store under; defaults to ``value.cache_key``
        """
        if key is None:
            if not isinstance(value, Cacheable):
                raise CacheValueError(
                    f"{type(value).__qualname__} does not expose a cache_key; "
                    "pass key= explicitly"
                )
            key = value.cache_key

        region = self.region_map.get_region(value_type)
        cache_key = key_for(key)

        with self._locks.write(region):
            self._store(region, cache_key, value, permanent)

        self.logger.debug("cache_entry_replaced", region=region, key=cache_key, permanent=permanent)
        self._maybe_clean()

    def remove(self, value_type: type[T], identifier: Any) -> T | None:
        """Remove an entry.

        Returns:
            The removed value, or None if absent or already reclaimed
        """
        region = self.region_map.get_region(value_type)
        key = key_for(identifier)

        with self._locks.write(region):
            collection = self._collections.get(region)
            value = collection.remove(key) if collection is not None else None

        if value is not None:
            self.logger.debug("cache_entry_removed", region=region, key=key)
        return value

    def contains(self, value_type: type, identifier: Any) -> bool:
        """Check for a live entry. Does not affect statistics."""
        region = self.region_map.get_region(value_type)
        key = key_for(identifier)

        with self._locks.read(region):
            collection = self._collections.get(region)
            return collection is not None and collection.contains(key)

    def clear(self) -> None:
        """Remove every entry, permanent and reclaimable, in every region."""
        self._check_not_nested("clear")
        with self._locks.write_all():
            removed = sum(len(collection) for collection in self._collections.values())
            for collection in self._collections.values():
                collection.clear()

        self.logger.debug("cache_cleared", removed=removed)

    def clean(self, value_type: type | None = None) -> int:
        """Remove reclaimable entries whose value is gone.

        Args:
            value_type: Restrict the sweep to this type's region; None sweeps
                every region under the master write lock

        Returns:
            Number of entries removed
        """
        if value_type is None:
            self._check_not_nested("clean")
            with self._locks.write_all():
                removed = sum(
                    collection.sweep() for collection in self._collections.values()
                )
                self._last_clean = time.monotonic()
            region = None
        else:
            region = self.region_map.get_region(value_type)
            with self._locks.write(region):
                collection = self._collections.get(region)
                removed = collection.sweep() if collection is not None else 0

        if self.config.enable_statistics:
            self._statistics.record_evictions(removed)
        self.logger.debug("cache_cleaned", region=region, removed=removed)
        return removed

    def items(self) -> list[tuple[str, CacheKeyType, Any]]:
        """Snapshot of every live entry as ``(region, key, value)``."""
        self._check_not_nested("items")
        with self._locks.write_all():
            return [
                (region, key, value)
                for region, collection in self._collections.items()
                for key, value in collection.live_items()
            ]

    def __len__(self) -> int:
        return len(self.items())

    def _lookup(self, region: str, key: CacheKeyType) -> Any:
        collection = self._collections.get(region)
        if collection is None:
            return None
        return collection.get(key)

    def _store(self, region: str, key: CacheKeyType, value: Any, permanent: bool) -> None:
        """Write an entry; caller holds the region write lock."""
        if value is None:
            raise CacheValueError("Cannot cache None")

        collection = self._collections.get(region)
        if collection is None:
            collection = self._collections.setdefault(
                region,
                ReferenceCollection(
                    ttl_seconds=self.config.default_ttl_seconds,
                    max_retained=self.config.max_retained_entries,
                    retention_policy=self.config.retention_policy,
                ),
            )
        collection.set(key, value, permanent)

        if self.config.enable_statistics:
            self._statistics.record_write()

    def _check_not_nested(self, operation: str) -> None:
        if self._locks.master.held_by_current_thread():
            raise CacheReentrancyError(operation)

    def _verify_value(self, key: CacheKeyType, value: Any) -> None:
        """Refuse values whose own key would not match the requested key."""
        if value is None:
            raise CacheValueError("The value factory returned None")
        if isinstance(value, Cacheable):
            produced = key_for(value.cache_key)
            if produced != key:
                raise CacheKeyMismatchError(key, produced)

    def _record_hit(self) -> None:
        if self.config.enable_statistics:
            self._statistics.record_hit()

    def _record_miss(self) -> None:
        if self.config.enable_statistics:
            self._statistics.record_miss()

    def _maybe_clean(self) -> None:
        """Run a global sweep if the clean interval has elapsed."""
        interval = self.config.clean_interval_seconds
        if interval is None:
            return
        # A nested call from inside a factory cannot take the master write lock
        if self._locks.master.held_by_current_thread():
            return
        if time.monotonic() - self._last_clean < interval:
            return
        if not self._clean_lock.acquire(blocking=False):
            return
        try:
            self.clean()
        finally:
            self._clean_lock.release()
