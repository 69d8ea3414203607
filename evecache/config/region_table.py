"""Load the type to region registration table from YAML.

Example file::

    regions:
      - type: "eve.universe:Station"
        region: "Station"
      - type: "eve.items:ItemType"
      - type: "eve.items:StationType"
        parent: "eve.items:ItemType"

Entries without ``region`` and without ``parent`` are registered under the
type's own name. Entries with only ``parent`` inherit the parent's region.
"""

import importlib
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator

from evecache.core.cache.regions import RegionMap
from evecache.core.errors import ConfigError
from evecache.core.structlog_logger import get_struct_logger
from evecache.models.base import EveBaseModel


logger = get_struct_logger(__name__)


class RegionEntry(EveBaseModel):
    """A single row of the region table."""

    type: str = Field(description="Dotted import path, 'package.module:Class'")
    region: str | None = Field(default=None, description="Region name")
    parent: str | None = Field(default=None, description="Declared parent type path")

    @field_validator("type", "parent")
    @classmethod
    def validate_type_path(cls, v: str | None) -> str | None:
        if v is not None and ":" not in v:
            raise ValueError(f"Type path must look like 'package.module:Class', got {v!r}")
        return v


class RegionTable(EveBaseModel):
    """The complete registration table."""

    regions: list[RegionEntry] = Field(default_factory=list)

    def build_region_map(self) -> RegionMap:
        """Import every referenced type and build a RegionMap."""
        region_map = RegionMap()

        # Parents first, so region registration order does not matter
        for entry in self.regions:
            if entry.parent is not None:
                region_map.declare_parent(
                    resolve_type(entry.type), resolve_type(entry.parent)
                )

        for entry in self.regions:
            if entry.region is not None or entry.parent is None:
                region_map.register_type(resolve_type(entry.type), entry.region)

        return region_map


def resolve_type(path: str) -> type:
    """Import ``package.module:Class`` and return the class.

    Raises:
        ConfigError: If the module or attribute cannot be found
    """
    module_name, _, qualname = path.partition(":")
    try:
        target: Any = importlib.import_module(module_name)
        for attribute in qualname.split("."):
            target = getattr(target, attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Cannot resolve type {path!r}: {e}") from e

    if not isinstance(target, type):
        raise ConfigError(f"{path!r} does not refer to a class")
    return target


def load_region_table(path: Path) -> RegionTable:
    """Read and validate a region table file.

    Raises:
        ConfigError: If the file is missing or invalid
    """
    try:
        with path.open(encoding="utf-8") as f:
            raw_table = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read region table {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in region table {path}: {e}") from e

    try:
        table = RegionTable.model_validate(raw_table)
    except ValidationError as e:
        raise ConfigError(f"Invalid region table {path}: {e}") from e

    logger.debug("region_table_loaded", path=str(path), entries=len(table.regions))
    return table


def load_region_map(path: Path) -> RegionMap:
    """Read a region table file and build its RegionMap."""
    return load_region_table(path).build_region_map()
