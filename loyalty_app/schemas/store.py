# loyalty_app/schemas/store.py
import uuid
from typing import Any

from sqlmodel import SQLModel, Field


class Coordinate(SQLModel):
    """A geodetic point in decimal degrees."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class StoreRead(SQLModel):
    """
    A `stores` row. Coordinates are optional.
    """

    id: uuid.UUID
    name: str
    address: str
    city: str
    province: str
    postal_code: str | None = None
    phone: str | None = None
    opening_hours: Any = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(lat=self.latitude, lng=self.longitude)


class RankedStore(StoreRead):
    """Store plus its distance from the user (None when unknown)."""

    distance_km: float | None = None
    directions_url: str


class StoreList(SQLModel):
    cities: list[str]
    stores: list[RankedStore]
