# loyalty_app/services/store_locator.py
import math
from typing import Iterable
from urllib.parse import quote

from loyalty_app.schemas.store import Coordinate, RankedStore, StoreRead

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two points, in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def directions_url(store: StoreRead) -> str:
    """Maps link: directions by coordinates, else a search by address."""
    coord = store.coordinate
    if coord is not None:
        return f"https://www.google.com/maps/dir/?api=1&destination={coord.lat},{coord.lng}"
    query = quote(f"{store.address}, {store.city}, {store.province}")
    return f"https://www.google.com/maps/search/?api=1&query={query}"


def filter_stores(
    stores: Iterable[StoreRead],
    query: str | None = None,
    city: str | None = None,
) -> list[StoreRead]:
    """
    Case-insensitive search on name/address/city, plus an exact city filter.
    `city` of None or "all" disables the city filter.
    """
    needle = (query or "").strip().lower()
    result = []
    for store in stores:
        if city and city != "all" and store.city != city:
            continue
        if needle and not any(
            needle in field.lower() for field in (store.name, store.address, store.city)
        ):
            continue
        result.append(store)
    return result


def list_cities(stores: Iterable[StoreRead]) -> list[str]:
    return sorted({store.city for store in stores})


def rank_stores(
    stores: Iterable[StoreRead],
    origin: Coordinate | None = None,
) -> list[RankedStore]:
    """
    Attach distances and sort nearest first.

    - A store gets a distance only if both it and `origin` have coordinates.
    - Stores without a distance go after every store with one.
    - Ties (and the no-distance group) are ordered by name, case-insensitive.
    """
    ranked = []
    for store in stores:
        coord = store.coordinate
        distance = haversine_km(origin, coord) if origin and coord else None
        ranked.append(
            RankedStore(
                **store.model_dump(),
                distance_km=distance,
                directions_url=directions_url(store),
            )
        )

    ranked.sort(
        key=lambda s: (
            s.distance_km is None,
            s.distance_km if s.distance_km is not None else 0.0,
            s.name.casefold(),
        )
    )
    return ranked
