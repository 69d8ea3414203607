"""Identity-map cache for evecache.

Keeps one live instance per (declared type, identifier) for the static
reference dataset and partitions storage into independently locked regions.
"""

from collections.abc import Mapping
from typing import Any

from evecache.core.cache.identity_cache import IdentityCache
from evecache.core.cache.keys import CacheKeyType, key_for, make_key, pack_pair, unpack_pair
from evecache.core.cache.locks import ReaderWriterLock, RegionLockManager
from evecache.core.cache.models import CacheConfig, CacheEntry, CacheStats
from evecache.core.cache.regions import RegionMap
from evecache.core.cache.statistics import CacheStatistics
from evecache.core.errors import ConfigError


def create_identity_cache(
    regions: Mapping[type, str | None] | RegionMap,
    parents: Mapping[type, type] | None = None,
    default_ttl_seconds: int | None = 3600,
    clean_interval_seconds: int | None = 300,
    enable_statistics: bool = True,
    max_retained_entries: int | None = 1000,
    retention_policy: str = "lru",
) -> IdentityCache:
    """Create an identity cache from a startup registration table.

    Args:
        regions: Type to region table, or a ready-built RegionMap
        parents: Child type to declared parent type (ignored for a RegionMap)
        default_ttl_seconds: Lifetime of reclaimable values that cannot be
            weakly referenced
        clean_interval_seconds: Minimum delay between opportunistic sweeps;
            None disables them
        enable_statistics: Track hit/miss/write counters
        max_retained_entries: Reclaimable values kept strongly per region;
            None keeps every value, 0 keeps them only while used elsewhere
        retention_policy: Which retained values to release first: "lru",
            "lfu" or "fifo"

    Returns:
        Configured identity cache
    """
    region_map = (
        regions if isinstance(regions, RegionMap) else RegionMap.from_table(regions, parents)
    )
    config = CacheConfig(
        default_ttl_seconds=default_ttl_seconds,
        clean_interval_seconds=clean_interval_seconds,
        enable_statistics=enable_statistics,
        max_retained_entries=max_retained_entries,
        retention_policy=retention_policy,
    )
    return IdentityCache(region_map, config)


def create_cache_from_settings(
    settings: Any, region_map: RegionMap | None = None
) -> IdentityCache:
    """Create an identity cache using application settings.

    Args:
        settings: Settings object exposing ``to_cache_config()`` and
            ``region_table``
        region_map: Type to region registration table; loaded from
            ``settings.region_table`` when omitted

    Returns:
        Configured identity cache

    Raises:
        ConfigError: If no region map is given and no region table is configured
    """
    if region_map is None:
        if settings.region_table is None:
            raise ConfigError(
                "No region table configured; set EVECACHE_REGION_TABLE or pass a region map"
            )
        # evecache.config imports this package
        from evecache.config.region_table import load_region_map

        region_map = load_region_map(settings.region_table)
    return IdentityCache(region_map, settings.to_cache_config())


__all__ = [
    "IdentityCache",
    "RegionMap",
    "RegionLockManager",
    "ReaderWriterLock",
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "CacheStatistics",
    "CacheKeyType",
    "make_key",
    "key_for",
    "pack_pair",
    "unpack_pair",
    "create_identity_cache",
    "create_cache_from_settings",
]
