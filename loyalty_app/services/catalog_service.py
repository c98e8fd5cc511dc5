# loyalty_app/services/catalog_service.py
from datetime import datetime, timedelta, timezone

from supabase import AsyncClient

from loyalty_app.repositories.catalog_repo import DealRepository, RewardRepository
from loyalty_app.schemas.catalog import (
    DealList,
    DealRead,
    DealView,
    RedemptionGroups,
    RewardView,
)
from loyalty_app.schemas.loyalty import LoyaltyAccountRead

ENDING_SOON_WINDOW = timedelta(days=7)


def is_ending_soon(valid_until: datetime, now: datetime | None = None) -> bool:
    """True if the deal ends within the next 7 days (and hasn't ended)."""
    now = now or datetime.now(timezone.utc)
    if valid_until.tzinfo is None:
        valid_until = valid_until.replace(tzinfo=timezone.utc)
    remaining = valid_until - now
    return timedelta(0) < remaining < ENDING_SOON_WINDOW


def filter_deals(
    deals: list[DealRead],
    category: str | None = None,
    query: str | None = None,
) -> list[DealRead]:
    """
    Category match is case-insensitive ("all" or None = any).
    Search looks at title and description.
    """
    needle = (query or "").strip().lower()
    wanted = (category or "all").lower()
    result = []
    for deal in deals:
        if wanted != "all" and deal.category.lower() != wanted:
            continue
        if needle and needle not in deal.title.lower() and needle not in (deal.description or "").lower():
            continue
        result.append(deal)
    return result


class CatalogService:
    """
    Deals and rewards screens.

    Responsibilities:
      - category list + filtering for deals, "ending soon" flag
      - reward affordability against the caller's current points
      - grouping redemptions into active / used
    """

    def __init__(self, deal_repo: DealRepository, reward_repo: RewardRepository):
        self.deal_repo = deal_repo
        self.reward_repo = reward_repo

    async def list_deals(
        self,
        client: AsyncClient,
        category: str | None = None,
        query: str | None = None,
    ) -> DealList:
        deals = await self.deal_repo.list_active(client)

        # Categories in first-seen order (deals come newest first)
        categories = list(dict.fromkeys(d.category for d in deals))

        now = datetime.now(timezone.utc)
        views = [
            DealView(**deal.model_dump(), ending_soon=is_ending_soon(deal.valid_until, now))
            for deal in filter_deals(deals, category, query)
        ]
        return DealList(categories=categories, deals=views)

    async def list_rewards(
        self,
        client: AsyncClient,
        account: LoyaltyAccountRead | None = None,
    ) -> list[RewardView]:
        rewards = await self.reward_repo.list_active(client)
        points = account.current_points if account is not None else None
        return [
            RewardView(
                **reward.model_dump(),
                affordable=None if points is None else points >= reward.points_cost,
            )
            for reward in rewards
        ]

    async def list_redemptions(
        self,
        client: AsyncClient,
        account: LoyaltyAccountRead,
    ) -> RedemptionGroups:
        redemptions = await self.reward_repo.list_redemptions(client, str(account.id))
        return RedemptionGroups(
            active=[r for r in redemptions if r.status == "active"],
            used=[r for r in redemptions if r.status == "used"],
        )
