"""
Store locator: haversine distance, nearest-first ranking, filtering.
"""
import math
import uuid

import pytest

from loyalty_app.schemas.store import Coordinate, StoreRead
from loyalty_app.services.store_locator import (
    directions_url,
    filter_stores,
    haversine_km,
    list_cities,
    rank_stores,
)

CAPE_TOWN = Coordinate(lat=-33.9249, lng=18.4241)
JOHANNESBURG = Coordinate(lat=-26.2041, lng=28.0473)


def _store(name, lat=None, lng=None, city="Cape Town", address="1 Main Rd") -> StoreRead:
    return StoreRead(
        id=uuid.uuid4(),
        name=name,
        address=address,
        city=city,
        province="Western Cape",
        latitude=lat,
        longitude=lng,
    )


def _offset(km: float) -> tuple[float, float]:
    """A point `km` north of Cape Town (1 degree latitude ~ 111.19 km)."""
    return CAPE_TOWN.lat + km / 111.195, CAPE_TOWN.lng


# -------- distance --------


def test_haversine_same_point_is_zero():
    assert haversine_km(CAPE_TOWN, CAPE_TOWN) == 0


def test_haversine_is_symmetric():
    assert haversine_km(CAPE_TOWN, JOHANNESBURG) == pytest.approx(haversine_km(JOHANNESBURG, CAPE_TOWN))


def test_haversine_cape_town_to_johannesburg():
    assert haversine_km(CAPE_TOWN, JOHANNESBURG) == pytest.approx(1270, abs=20)


@pytest.mark.parametrize(
    "a, b",
    [
        (Coordinate(lat=-45.14, lng=-169.0), Coordinate(lat=45.14, lng=11.0)),
        (Coordinate(lat=0.0, lng=0.0), Coordinate(lat=0.0, lng=180.0)),
        (Coordinate(lat=90.0, lng=0.0), Coordinate(lat=-90.0, lng=0.0)),
    ],
)
def test_haversine_antipodal_points_is_half_circumference(a, b):
    assert haversine_km(a, b) == pytest.approx(math.pi * 6371.0, abs=0.01)


# -------- ranking --------


def test_rank_nearest_first_with_unknown_distance_last():
    a = _store("A", *_offset(5))
    b = _store("B")
    c = _store("C", *_offset(2))

    ranked = rank_stores([a, b, c], CAPE_TOWN)

    assert [s.name for s in ranked] == ["C", "A", "B"]
    assert ranked[0].distance_km == pytest.approx(2, abs=0.05)
    assert ranked[1].distance_km == pytest.approx(5, abs=0.05)
    assert ranked[2].distance_km is None


def test_rank_without_origin_is_alphabetical_case_insensitive():
    ranked = rank_stores([_store("zeta", 1, 1), _store("Alpha"), _store("beta", 2, 2)])

    assert [s.name for s in ranked] == ["Alpha", "beta", "zeta"]
    assert all(s.distance_km is None for s in ranked)


def test_rank_ties_broken_by_name():
    lat, lng = _offset(3)
    ranked = rank_stores([_store("Beta", lat, lng), _store("alpha", lat, lng)], CAPE_TOWN)

    assert [s.name for s in ranked] == ["alpha", "Beta"]


def test_zero_coordinates_are_valid():
    store = _store("Null Island", 0.0, 0.0)
    assert store.coordinate == Coordinate(lat=0.0, lng=0.0)
    assert rank_stores([store], Coordinate(lat=0.0, lng=0.0))[0].distance_km == 0


# -------- directions / filtering --------


def test_directions_url_uses_coordinates_when_known():
    url = directions_url(_store("A", -33.9, 18.4))
    assert url == "https://www.google.com/maps/dir/?api=1&destination=-33.9,18.4"


def test_directions_url_falls_back_to_address_search():
    url = directions_url(_store("A", address="12 Long St"))
    assert url.startswith("https://www.google.com/maps/search/?api=1&query=")
    assert "12%20Long%20St" in url


def test_filter_by_query_and_city():
    stores = [
        _store("Canal Walk", city="Cape Town"),
        _store("Sandton City", city="Johannesburg", address="83 Rivonia Rd"),
        _store("Rosebank", city="Johannesburg"),
    ]

    assert [s.name for s in filter_stores(stores, query="sandton")] == ["Sandton City"]
    assert [s.name for s in filter_stores(stores, query="rivonia")] == ["Sandton City"]
    assert [s.name for s in filter_stores(stores, city="Johannesburg")] == ["Sandton City", "Rosebank"]
    assert len(filter_stores(stores, city="all")) == 3
    assert list_cities(stores) == ["Cape Town", "Johannesburg"]
