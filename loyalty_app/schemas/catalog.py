# loyalty_app/schemas/catalog.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import model_validator
from sqlmodel import SQLModel

from loyalty_app.schemas.loyalty import Tier

RedemptionStatus = Literal["active", "used", "expired", "cancelled"]


class DealRead(SQLModel):
    """
    A `deals` row (active promotions).
    """

    id: uuid.UUID
    title: str
    description: str | None = None
    discount_value: str
    category: str
    is_member_only: bool = False
    min_points: int | None = None
    min_tier: Tier | None = None
    image_url: str | None = None
    valid_from: datetime | None = None
    valid_until: datetime
    created_at: datetime | None = None


class DealView(DealRead):
    """Deal as shown on the deals screen."""

    ending_soon: bool = False


class DealList(SQLModel):
    categories: list[str]
    deals: list[DealView]


class RewardRead(SQLModel):
    """
    A `rewards` row (catalogue item bought with points).
    """

    id: uuid.UUID
    title: str
    description: str | None = None
    category: str
    points_cost: int
    min_tier: Tier | None = None
    stock_quantity: int | None = None
    image_url: str | None = None


class RewardView(RewardRead):
    """
    Reward with affordability against the caller's current points.

    `affordable` is None for anonymous callers.
    """

    affordable: bool | None = None


class RedemptionRead(SQLModel):
    """
    A `redemptions` row with the joined reward/deal title.

    The gateway embeds joined rows as `rewards: {"title": ...}` and
    `deals: {"title": ...}`; those are flattened into `title`.
    """

    id: uuid.UUID
    redemption_code: str
    status: RedemptionStatus
    points_spent: int = 0
    expires_at: datetime
    created_at: datetime | None = None
    used_at: datetime | None = None
    title: str | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_joined_title(cls, data):
        if not isinstance(data, dict) or data.get("title"):
            return data
        for key in ("rewards", "deals"):
            joined = data.get(key)
            if isinstance(joined, dict) and joined.get("title"):
                return {**data, "title": joined["title"]}
        return data


class RedemptionGroups(SQLModel):
    active: list[RedemptionRead]
    used: list[RedemptionRead]
