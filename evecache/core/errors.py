"""Error hierarchy for evecache."""


class EveCacheError(Exception):
    """Base class for all evecache errors."""


class ConfigError(EveCacheError):
    """Invalid cache configuration (region table, parent table, settings)."""


class RegionNotRegisteredError(ConfigError, LookupError):
    """No region is registered for a type or any of its declared ancestors."""

    def __init__(self, value_type: type):
        self.value_type = value_type
        super().__init__(
            f"No cache region has been registered for "
            f"{value_type.__module__}.{value_type.__qualname__}."
        )


class CacheKeyMismatchError(EveCacheError):
    """A factory produced a value whose cache key differs from the requested key."""

    def __init__(self, requested: object, produced: object):
        self.requested = requested
        self.produced = produced
        super().__init__(
            f"The key of the value being added ({produced!r}) must be the same "
            f"as the key being requested ({requested!r})."
        )


class CacheValueError(EveCacheError, ValueError):
    """A value cannot be stored in the cache."""


class CacheReentrancyError(EveCacheError, RuntimeError):
    """A whole-cache operation was called from inside a value factory."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"{operation}() locks every region and cannot be called from inside "
            f"a value factory."
        )
