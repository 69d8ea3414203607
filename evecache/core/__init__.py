from .errors import (
    CacheKeyMismatchError,
    CacheReentrancyError,
    CacheValueError,
    ConfigError,
    EveCacheError,
    RegionNotRegisteredError,
)
from .logging import setup_logging


__all__ = [
    "setup_logging",
    "EveCacheError",
    "ConfigError",
    "RegionNotRegisteredError",
    "CacheKeyMismatchError",
    "CacheValueError",
    "CacheReentrancyError",
]
