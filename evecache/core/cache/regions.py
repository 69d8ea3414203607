"""Type to cache-region resolution.

Each cacheable type is mapped to a region, a namespace string that
partitions the cache and owns its own lock. Types are registered explicitly
at startup; subtypes that share a region with their family declare their
parent in an explicit parent table instead of relying on class inheritance.
"""

from collections.abc import Mapping

from evecache.core.cache.locks import ReaderWriterLock
from evecache.core.errors import ConfigError, RegionNotRegisteredError
from evecache.core.structlog_logger import StructlogMixin


class RegionMap(StructlogMixin):
    """Resolve declared types to cache regions, memoizing every resolution.

    Example:
        region_map = RegionMap()
        region_map.register_type(ItemType, "ItemType")
        region_map.declare_parent(StationType, ItemType)
        region_map.get_region(StationType)  # "ItemType"
    """

    def __init__(self) -> None:
        super().__init__()
        self._regions: dict[type, str] = {}
        self._parents: dict[type, type] = {}
        self._lock = ReaderWriterLock()

    @classmethod
    def from_table(
        cls,
        regions: Mapping[type, str | None],
        parents: Mapping[type, type] | None = None,
    ) -> "RegionMap":
        """Build a region map from a startup registration table.

        Args:
            regions: Type to region name; ``None`` uses the type name
            parents: Child type to its single declared parent type
        """
        region_map = cls()
        for child, parent in (parents or {}).items():
            region_map.declare_parent(child, parent)
        for value_type, region in regions.items():
            region_map.register_type(value_type, region)
        return region_map

    def register_type(self, value_type: type, region: str | None = None) -> str:
        """Assign ``value_type`` (and its undeclared descendants) to a region.

        Raises:
            ConfigError: If the type is already mapped to a different region
        """
        region = region or value_type.__name__
        with self._lock.write_locked():
            current = self._regions.get(value_type)
            if current is not None and current != region:
                raise ConfigError(
                    f"{value_type.__qualname__} is already mapped to region "
                    f"{current!r}; cannot move it to {region!r}"
                )
            self._regions[value_type] = region

        self.logger.debug("region_registered", type=value_type.__qualname__, region=region)
        return region

    def declare_parent(self, child: type, parent: type) -> None:
        """Declare ``parent`` as the single supertype of ``child``.

        Raises:
            ConfigError: If the declaration would make the chain cyclic
        """
        with self._lock.write_locked():
            ancestor: type | None = parent
            while ancestor is not None:
                if ancestor is child:
                    raise ConfigError(
                        f"Declaring {parent.__qualname__} as parent of "
                        f"{child.__qualname__} creates a cycle"
                    )
                ancestor = self._parents.get(ancestor)
            self._parents[child] = parent

    def parent_of(self, value_type: type) -> type | None:
        with self._lock.read_locked():
            return self._parents.get(value_type)

    def get_region(self, value_type: type) -> str:
        """Return the region for ``value_type``.

        Raises:
            RegionNotRegisteredError: If neither the type nor any declared
                ancestor is registered
        """
        with self._lock.read_locked():
            region = self._regions.get(value_type)
            if region is not None:
                return region

        with self._lock.write_locked():
            # Another thread may have resolved it while we waited
            region = self._regions.get(value_type)
            if region is None:
                region = self._find_ancestor_region(value_type)
                if region is None:
                    raise RegionNotRegisteredError(value_type)
                self._regions[value_type] = region
                self.logger.debug(
                    "region_inherited", type=value_type.__qualname__, region=region
                )
            return region

    def is_registered(self, value_type: type) -> bool:
        """Check whether ``value_type`` or a declared ancestor has a region."""
        with self._lock.read_locked():
            if value_type in self._regions:
                return True
            return self._find_ancestor_region(value_type) is not None

    def registered_types(self) -> dict[type, str]:
        """Copy of every explicit and memoized type to region mapping."""
        with self._lock.read_locked():
            return dict(self._regions)

    def _find_ancestor_region(self, value_type: type) -> str | None:
        """Walk the declared parent chain for the nearest registered ancestor."""
        ancestor = self._parents.get(value_type)
        while ancestor is not None:
            region = self._regions.get(ancestor)
            if region is not None:
                return region
            ancestor = self._parents.get(ancestor)
        return None
