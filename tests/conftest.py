"""Core test fixtures for the evecache project."""

import logging
import os
from collections.abc import Generator

import pytest
from typer.testing import CliRunner

from evecache.core.cache import CacheConfig, IdentityCache, RegionMap
from sample_domain import AttributeValue, BlueprintType, ItemType, Station


# ---- Base Fixtures ----


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def region_map() -> RegionMap:
    """Region table covering the sample domain objects."""
    return RegionMap.from_table(
        {
            Station: "Station",
            ItemType: "ItemType",
            AttributeValue: "AttributeValue",
        },
        parents={BlueprintType: ItemType},
    )


@pytest.fixture
def cache_config() -> CacheConfig:
    """Weak-only cache configuration without opportunistic sweeps.

    Nothing is retained, so a reclaimable value dies as soon as the test
    drops it.
    """
    return CacheConfig(
        default_ttl_seconds=3600, clean_interval_seconds=None, max_retained_entries=0
    )


@pytest.fixture
def cache(region_map: RegionMap, cache_config: CacheConfig) -> IdentityCache:
    """Fresh identity cache for each test."""
    return IdentityCache(region_map, cache_config)


@pytest.fixture
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Remove EVECACHE_ variables and run from an empty directory."""
    for name in list(os.environ):
        if name.startswith("EVECACHE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def restore_root_logging() -> Generator[None, None, None]:
    """Undo handler changes made by setup_logging during a test."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level)
