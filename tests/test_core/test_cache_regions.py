"""Tests for type to region resolution."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from evecache.core.cache import RegionMap
from evecache.core.errors import ConfigError, RegionNotRegisteredError


class Bar:
    pass


class Foo:
    pass


class Baz:
    pass


class Other:
    pass


class TestRegionMap:
    """Test registration and resolution."""

    @pytest.fixture
    def region_map(self) -> RegionMap:
        region_map = RegionMap()
        region_map.register_type(Bar, "Bar")
        region_map.declare_parent(Foo, Bar)
        region_map.declare_parent(Baz, Foo)
        return region_map

    def test_registered_type_resolves(self, region_map: RegionMap):
        assert region_map.get_region(Bar) == "Bar"

    def test_default_region_is_type_name(self):
        region_map = RegionMap()
        assert region_map.register_type(Other) == "Other"
        assert region_map.get_region(Other) == "Other"

    def test_subtype_falls_back_to_parent(self, region_map: RegionMap):
        assert region_map.get_region(Foo) == "Bar"

    def test_grandchild_falls_back_through_chain(self, region_map: RegionMap):
        assert "Baz" not in {t.__name__ for t in region_map.registered_types()}
        assert region_map.get_region(Baz) == "Bar"
        assert region_map.registered_types()[Baz] == "Bar"

    def test_fallback_is_memoized(self, region_map: RegionMap):
        with patch.object(
            region_map,
            "_find_ancestor_region",
            wraps=region_map._find_ancestor_region,
        ) as walk:
            assert region_map.get_region(Foo) == "Bar"
            assert region_map.get_region(Foo) == "Bar"
            assert region_map.get_region(Foo) == "Bar"

        assert walk.call_count == 1

    def test_unregistered_type_raises(self, region_map: RegionMap):
        with pytest.raises(RegionNotRegisteredError, match="Other"):
            region_map.get_region(Other)

    def test_unregistered_error_is_config_and_lookup_error(self, region_map: RegionMap):
        with pytest.raises(ConfigError):
            region_map.get_region(Other)
        with pytest.raises(LookupError):
            region_map.get_region(Other)

    def test_is_registered(self, region_map: RegionMap):
        assert region_map.is_registered(Bar)
        assert region_map.is_registered(Baz)
        assert not region_map.is_registered(Other)

    def test_is_registered_does_not_memoize(self, region_map: RegionMap):
        region_map.is_registered(Foo)
        assert Foo not in region_map.registered_types()

    def test_explicit_registration_beats_parent(self, region_map: RegionMap):
        region_map.register_type(Foo, "Foo")
        assert region_map.get_region(Foo) == "Foo"
        assert region_map.get_region(Baz) == "Foo"

    def test_resolved_region_is_stable(self, region_map: RegionMap):
        region_map.get_region(Foo)
        with pytest.raises(ConfigError, match="already mapped"):
            region_map.register_type(Foo, "Elsewhere")
        assert region_map.get_region(Foo) == "Bar"

    def test_same_registration_is_idempotent(self, region_map: RegionMap):
        region_map.register_type(Bar, "Bar")
        assert region_map.get_region(Bar) == "Bar"

    def test_cyclic_parent_rejected(self, region_map: RegionMap):
        with pytest.raises(ConfigError, match="cycle"):
            region_map.declare_parent(Bar, Baz)

    def test_self_parent_rejected(self):
        with pytest.raises(ConfigError):
            RegionMap().declare_parent(Bar, Bar)

    def test_parent_of(self, region_map: RegionMap):
        assert region_map.parent_of(Foo) is Bar
        assert region_map.parent_of(Bar) is None

    def test_from_table(self):
        region_map = RegionMap.from_table({Bar: "Bar", Other: None}, parents={Foo: Bar})
        assert region_map.get_region(Foo) == "Bar"
        assert region_map.get_region(Other) == "Other"

    def test_concurrent_resolution_agrees(self, region_map: RegionMap):
        with ThreadPoolExecutor(max_workers=8) as executor:
            regions = list(executor.map(lambda _: region_map.get_region(Baz), range(64)))

        assert set(regions) == {"Bar"}
