"""Tests for structlog setup and cache error logging."""

import json
import logging
from pathlib import Path

import pytest

from evecache.core.cache import IdentityCache
from evecache.core.logging import setup_logging
from sample_domain import Station


def _read_json_lines(path: Path) -> list[dict]:
    for handler in logging.getLogger().handlers:
        handler.flush()
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestSetupLogging:
    """Test handler installation."""

    def test_console_handler_only(self):
        setup_logging(log_level_name="info")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1

    def test_file_handler_creates_parent_dirs(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "evecache.log"

        logger = setup_logging(log_level_name="INFO", log_file=log_file)
        logger.info("cache_ready", regions=3)

        records = _read_json_lines(log_file)
        assert records[-1]["event"] == "cache_ready"
        assert records[-1]["regions"] == 3
        assert records[-1]["level"] == "info"

    def test_level_filters_file_output(self, tmp_path: Path):
        log_file = tmp_path / "evecache.log"

        logger = setup_logging(log_level_name="WARNING", log_file=log_file)
        logger.debug("cache_miss_stored", region="Station")
        logger.warning("cache_slow_factory", region="Station")

        events = [record["event"] for record in _read_json_lines(log_file)]
        assert events == ["cache_slow_factory"]


class TestCacheErrorLogging:
    """Test that failing factories are reported with context."""

    def test_factory_failure_logged(self, tmp_path: Path, cache: IdentityCache):
        log_file = tmp_path / "evecache.log"
        setup_logging(log_level_name="INFO", log_file=log_file)

        def failing() -> Station:
            raise RuntimeError("database offline")

        with pytest.raises(RuntimeError, match="database offline"):
            cache.get_or_add(Station, 60003760, failing)

        records = _read_json_lines(log_file)
        failure = next(r for r in records if r["event"] == "cache_factory_failed")
        assert failure["level"] == "error"
        assert failure["region"] == "Station"
        assert failure["key"] == 60003760
        assert failure["error_type"] == "RuntimeError"
        assert failure["component"] == "IdentityCache"
