# tests/test_location_resolver.py
import pytest

from campusnav.core.config import DEFAULT_LOCATIONS_FILE
from campusnav.models.routing import Coordinate
from campusnav.services.location_resolver import LocationResolver, is_live_position_query

from conftest import TEST_LOCATIONS


@pytest.mark.parametrize("location", TEST_LOCATIONS, ids=lambda loc: loc.name)
def test_exact_name_resolves_to_its_coordinates(resolver, location):
    assert resolver.resolve(location.name) == location.coordinates
    assert resolver.resolve(location.name.upper()) == location.coordinates


@pytest.mark.parametrize("query", ["", "my location", "My Location", "  MY LOCATION ", "   "])
def test_live_position_queries_resolve_to_none(resolver, query):
    assert is_live_position_query(query)
    assert resolver.resolve(query) is None


def test_unique_substring_match(resolver):
    assert resolver.resolve("library") == Coordinate(lon=-84.58392, lat=34.03847)
    assert resolver.find("burruss").name == "Burruss Building"


def test_ambiguous_substring_returns_first_in_catalogue_order(resolver):
    # "center" is in three names; the catalogue order decides, not the alphabet
    assert resolver.find("center").name == "Student Center Ballroom"


def test_exact_match_beats_earlier_substring_match(resolver):
    assert resolver.find("student center").name == "Student Center"


def test_unknown_place_resolves_to_none(resolver):
    assert resolver.resolve("Zzzznotaplace") is None


def test_search_keeps_catalogue_order_and_limit(resolver):
    names = [loc.name for loc in resolver.search("center", limit=2)]
    assert names == ["Student Center Ballroom", "Student Center"]
    assert len(resolver.search("", limit=3)) == 3


def test_packaged_catalogue_loads():
    resolver = LocationResolver.from_file(DEFAULT_LOCATIONS_FILE)
    assert len(resolver.locations) > 0
    assert resolver.resolve("Library") is not None
