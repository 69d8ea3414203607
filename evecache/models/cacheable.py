"""Protocol for values that know their own cache key."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cacheable(Protocol):
    """A domain object that can be stored in the identity cache.

    ``cache_key`` is the identifier the object is looked up by: a scalar id,
    or a tuple of sub-identifiers for composite primary keys.
    """

    @property
    def cache_key(self) -> Any:
        """Identifier of this object within its region."""
        ...
