# loyalty_app/repositories/catalog_repo.py
from supabase import AsyncClient

from loyalty_app.schemas.catalog import DealRead, RedemptionRead, RewardRead


class DealRepository:
    """Read access to `deals`."""

    async def list_active(self, client: AsyncClient) -> list[DealRead]:
        """Active deals, newest first."""
        response = (
            await client.table("deals")
            .select("*")
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute()
        )
        return [DealRead.model_validate(row) for row in response.data or []]


class RewardRepository:
    """Read access to `rewards` and the caller's `redemptions`."""

    async def list_active(self, client: AsyncClient) -> list[RewardRead]:
        """Active rewards, cheapest first."""
        response = (
            await client.table("rewards")
            .select("*")
            .eq("is_active", True)
            .order("points_cost")
            .execute()
        )
        return [RewardRead.model_validate(row) for row in response.data or []]

    async def list_redemptions(
        self, client: AsyncClient, loyalty_account_id: str
    ) -> list[RedemptionRead]:
        """Redemptions for a loyalty account, newest first, with reward/deal titles."""
        response = (
            await client.table("redemptions")
            .select("*, rewards(title), deals(title)")
            .eq("loyalty_account_id", loyalty_account_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [RedemptionRead.model_validate(row) for row in response.data or []]
