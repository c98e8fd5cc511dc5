# loyalty_app/repositories/store_repo.py
from supabase import AsyncClient

from loyalty_app.schemas.store import StoreRead


class StoreRepository:
    """Read access to `stores`."""

    async def list_active(self, client: AsyncClient) -> list[StoreRead]:
        """Active stores ordered by name."""
        response = (
            await client.table("stores")
            .select("*")
            .eq("is_active", True)
            .order("name")
            .execute()
        )
        return [StoreRead.model_validate(row) for row in response.data or []]
