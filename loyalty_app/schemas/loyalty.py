# loyalty_app/schemas/loyalty.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import field_validator
from sqlmodel import SQLModel

Tier = Literal["silver", "gold", "platinum"]


class LoyaltyAccountRead(SQLModel):
    """
    A `loyalty_accounts` row as returned by the gateway.

    Points and tier are authoritative gateway values; the client only
    displays them. `next_tier_points` is optional and, when the gateway
    sends it, wins over the local tier table.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    member_id: str
    barcode_value: str
    current_points: int = 0
    lifetime_points: int = 0
    current_tier: Tier = "silver"
    tier_multiplier: float = 1.0
    max_discount_unlocked: float = 0
    is_active: bool = False
    activated_at: datetime | None = None
    next_tier_points: int | None = None

    @field_validator("current_tier", mode="before")
    @classmethod
    def normalize_tier(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


class TierProgress(SQLModel):
    """
    Progress towards the next tier, based on lifetime points.

    next_tier / next_tier_points are None at the top tier.
    """

    current_tier: Tier
    multiplier: float
    lifetime_points: int
    next_tier: Tier | None = None
    next_tier_points: int | None = None
    points_to_next: int = 0
    percent: float = 100.0


class LoyaltyCard(SQLModel):
    """Data behind the barcode screen."""

    member_id: str
    barcode_value: str
    current_tier: Tier
    current_points: int
    is_active: bool
