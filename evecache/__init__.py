"""evecache - identity-map cache for the EVE static reference dataset."""

from importlib.metadata import PackageNotFoundError, distribution

from .core.cache import (
    CacheConfig,
    CacheStats,
    IdentityCache,
    RegionMap,
    create_identity_cache,
    make_key,
)
from .core.errors import (
    CacheKeyMismatchError,
    CacheReentrancyError,
    CacheValueError,
    ConfigError,
    EveCacheError,
    RegionNotRegisteredError,
)
from .models import Cacheable, EveBaseModel


try:
    __version__ = distribution(__package__ or "evecache").version
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "IdentityCache",
    "RegionMap",
    "CacheConfig",
    "CacheStats",
    "Cacheable",
    "EveBaseModel",
    "create_identity_cache",
    "make_key",
    "EveCacheError",
    "ConfigError",
    "RegionNotRegisteredError",
    "CacheKeyMismatchError",
    "CacheValueError",
    "CacheReentrancyError",
    "__version__",
]
