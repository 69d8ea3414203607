"""Tests for the bounded strong retention of reclaimable values."""

import gc
import itertools
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from evecache.core.cache import CacheConfig, IdentityCache
from evecache.core.cache.references import ReferenceCollection
from sample_domain import ItemType, Station


@pytest.fixture
def ticking_clock():
    """Give every entry timestamp a distinct, increasing value."""
    with patch("evecache.core.cache.models.time") as mock_time:
        mock_time.time.side_effect = itertools.count(1000.0)
        yield mock_time


def _retaining_cache(region_map, max_retained_entries, policy="lru") -> IdentityCache:
    return IdentityCache(
        region_map,
        CacheConfig(
            clean_interval_seconds=None,
            max_retained_entries=max_retained_entries,
            retention_policy=policy,
        ),
    )


class TestRetentionThroughCache:
    """Test that unheld values are reused while retained."""

    def test_unheld_value_reused(self, region_map):
        cache = _retaining_cache(region_map, 1000)
        calls = []

        def build() -> Station:
            calls.append(1)
            return Station(60003760, "Jita IV - Moon 4")

        for _ in range(5):
            cache.get_or_add(Station, 60003760, build)
            gc.collect()

        stats = cache.get_stats()
        assert len(calls) == 1
        assert (stats.hits, stats.misses) == (4, 1)

    def test_bound_releases_oldest(self, region_map, ticking_clock):
        cache = _retaining_cache(region_map, 2)
        for station_id in (1, 2, 3):
            cache.get_or_add(Station, station_id, lambda i=station_id: Station(i, "unheld"))
        gc.collect()

        assert not cache.contains(Station, 1)
        assert cache.contains(Station, 2)
        assert cache.contains(Station, 3)
        assert cache.clean() == 1

    def test_released_value_rebuilt(self, region_map, ticking_clock):
        cache = _retaining_cache(region_map, 1)
        cache.get_or_add(Station, 1, lambda: Station(1, "First"))
        cache.get_or_add(Station, 2, lambda: Station(2, "Second"))
        gc.collect()

        rebuilt = cache.get_or_add(Station, 1, lambda: Station(1, "Rebuilt"))

        assert rebuilt.name == "Rebuilt"
        assert cache.get_stats().misses == 3

    def test_released_value_kept_while_held(self, region_map, ticking_clock):
        cache = _retaining_cache(region_map, 1)
        held = cache.get_or_add(Station, 1, lambda: Station(1, "Held"))
        cache.get_or_add(Station, 2, lambda: Station(2, "Newer"))
        gc.collect()

        assert cache.get(Station, 1) is held

    def test_bound_applies_per_region(self, region_map, ticking_clock):
        cache = _retaining_cache(region_map, 1)
        cache.get_or_add(Station, 1, lambda: Station(1, "Station"))
        cache.get_or_add(ItemType, 34, lambda: ItemType(34, "Tritanium"))
        gc.collect()

        assert cache.contains(Station, 1)
        assert cache.contains(ItemType, 34)

    def test_zero_bound_keeps_nothing(self, region_map):
        cache = _retaining_cache(region_map, 0)
        cache.get_or_add(Station, 1, lambda: Station(1, "unheld"))
        gc.collect()

        assert not cache.contains(Station, 1)

    def test_clear_drops_retained_values(self, region_map):
        cache = _retaining_cache(region_map, 10)
        cache.get_or_add(Station, 1, lambda: Station(1, "unheld"))

        cache.clear()
        gc.collect()

        assert len(cache) == 0
        assert not cache.contains(Station, 1)


class TestRetentionPolicies:
    """Test which retained entries a region releases first."""

    def test_lru_releases_least_recently_read(self, ticking_clock):
        collection = ReferenceCollection(max_retained=2, retention_policy="lru")
        first = collection.set(1, Station(1, "A"), permanent=False)
        second = collection.set(2, Station(2, "B"), permanent=False)
        collection.get(1)

        third = collection.set(3, Station(3, "C"), permanent=False)

        assert first.is_retained
        assert not second.is_retained
        assert third.is_retained
        assert collection.retained_count == 2

    def test_lfu_releases_least_frequently_read(self, ticking_clock):
        collection = ReferenceCollection(max_retained=3, retention_policy="lfu")
        entries = {
            key: collection.set(key, Station(key, "x"), permanent=False) for key in (1, 2, 3)
        }
        for key, reads in ((1, 3), (2, 1), (3, 2)):
            for _ in range(reads):
                collection.get(key)

        # A fresh entry has no reads yet, so it goes first under LFU
        newest = collection.set(4, Station(4, "new"), permanent=False)

        assert not newest.is_retained
        assert all(entry.is_retained for entry in entries.values())

    def test_fifo_ignores_reads(self, ticking_clock):
        collection = ReferenceCollection(max_retained=2, retention_policy="fifo")
        first = collection.set(1, Station(1, "A"), permanent=False)
        second = collection.set(2, Station(2, "B"), permanent=False)
        for _ in range(5):
            collection.get(1)

        collection.set(3, Station(3, "C"), permanent=False)

        assert not first.is_retained
        assert second.is_retained

    def test_unbounded(self):
        collection = ReferenceCollection(max_retained=None)
        entries = [collection.set(key, Station(key, "x"), permanent=False) for key in range(50)]

        assert all(entry.is_retained for entry in entries)
        assert collection.retained_count == 50


class TestRetainedCount:
    """Test bookkeeping of retained entries."""

    def test_permanent_and_ttl_entries_not_counted(self):
        collection = ReferenceCollection(ttl_seconds=60, max_retained=1)
        pinned = collection.set(1, Station(1, "Pinned"), permanent=True)
        timed = collection.set(2, "plain string", permanent=False)
        weak = collection.set(3, Station(3, "Weak"), permanent=False)

        assert not pinned.is_retained
        assert not timed.is_retained
        assert weak.is_retained
        assert collection.retained_count == 1

    def test_replace_and_remove(self):
        collection = ReferenceCollection(max_retained=10)
        collection.set(1, Station(1, "A"), permanent=False)
        collection.set(1, Station(1, "B"), permanent=False)
        assert collection.retained_count == 1

        collection.set(1, Station(1, "C"), permanent=True)
        assert collection.retained_count == 0

        collection.set(2, Station(2, "D"), permanent=False)
        collection.remove(2)
        assert collection.retained_count == 0

    def test_clear_resets_count(self):
        collection = ReferenceCollection(max_retained=10)
        for key in range(3):
            collection.set(key, Station(key, "x"), permanent=False)

        collection.clear()

        assert collection.retained_count == 0
        assert len(collection) == 0


class TestReadMetadata:
    """Test that reads only update access metadata."""

    def test_read_updates_access_metadata(self, ticking_clock):
        collection = ReferenceCollection(max_retained=10)
        entry = collection.set(1, Station(1, "A"), permanent=False)
        created = entry.last_accessed

        collection.get(1)
        collection.get(1)

        assert entry.access_count == 2
        assert entry.last_accessed > created

    def test_concurrent_reads_leave_entries_unchanged(self):
        collection = ReferenceCollection(max_retained=10)
        station = Station(1, "A")
        entry = collection.set(1, station, permanent=False)

        def read(_: int) -> bool:
            return all(collection.get(1) is station for _ in range(200))

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(read, range(8)))

        assert all(results)
        assert len(collection) == 1
        assert collection.retained_count == 1
        assert entry.is_retained
        assert 0 < entry.access_count <= 8 * 200
