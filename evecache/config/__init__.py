"""Configuration for evecache."""

from evecache.config.region_table import (
    RegionEntry,
    RegionTable,
    load_region_map,
    load_region_table,
    resolve_type,
)
from evecache.config.settings import EveCacheSettings


__all__ = [
    "EveCacheSettings",
    "RegionEntry",
    "RegionTable",
    "load_region_map",
    "load_region_table",
    "resolve_type",
]
