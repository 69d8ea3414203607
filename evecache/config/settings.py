"""Application settings with environment variable support."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from evecache.core.cache.models import CacheConfig


class EveCacheSettings(BaseSettings):
    """Runtime settings for tools built on the identity cache.

    Precedence order (highest to lowest):
    1. Constructor arguments
    2. Environment variables (``EVECACHE_`` prefix)
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="EVECACHE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None
    json_logs: bool = False

    # Cache behaviour
    default_ttl_seconds: int | None = Field(
        default=3600,
        ge=0,
        description="Lifetime of reclaimable values that cannot be weakly referenced",
    )
    clean_interval_seconds: int | None = Field(
        default=300,
        ge=0,
        description="Minimum delay between opportunistic sweeps (unset to disable)",
    )
    enable_statistics: bool = True
    max_retained_entries: int | None = Field(
        default=1000,
        ge=0,
        description="Reclaimable values kept strongly per region (unset for no bound)",
    )
    retention_policy: Literal["lru", "lfu", "fifo"] = "lru"

    region_table: Path | None = Field(
        default=None,
        description="YAML file with the type to region registration table",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_file", "region_table", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    def to_cache_config(self) -> CacheConfig:
        """Build the cache configuration from these settings."""
        return CacheConfig(
            default_ttl_seconds=self.default_ttl_seconds,
            clean_interval_seconds=self.clean_interval_seconds,
            enable_statistics=self.enable_statistics,
            max_retained_entries=self.max_retained_entries,
            retention_policy=self.retention_policy,
        )
