# loyalty_app/repositories/history_repo.py
from supabase import AsyncClient

from loyalty_app.schemas.history import PointsLedgerEntry, PurchaseRead


class HistoryRepository:
    """
    Read access to the points ledger and purchases of a loyalty account.
    """

    async def points_history(
        self, client: AsyncClient, loyalty_account_id: str
    ) -> list[PointsLedgerEntry]:
        response = (
            await client.table("points_ledger")
            .select("*")
            .eq("loyalty_account_id", loyalty_account_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [PointsLedgerEntry.model_validate(row) for row in response.data or []]

    async def purchases(
        self, client: AsyncClient, loyalty_account_id: str
    ) -> list[PurchaseRead]:
        response = (
            await client.table("purchases")
            .select("*, stores(name, address, city)")
            .eq("loyalty_account_id", loyalty_account_id)
            .order("purchase_date", desc=True)
            .execute()
        )
        return [PurchaseRead.model_validate(row) for row in response.data or []]
