# loyalty_app/repositories/account_repo.py
from typing import Any

from supabase import AsyncClient


class AccountRepository:
    """
    Service-role data access used by the delete-account cascade.

    Every delete is by key, so re-running a step is harmless.
    """

    async def find_loyalty_account_id(self, client: AsyncClient, user_id: str) -> str | None:
        response = (
            await client.table("loyalty_accounts")
            .select("id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return str(response.data[0]["id"]) if response.data else None

    async def delete_where(
        self, client: AsyncClient, table: str, column: str, value: str
    ) -> int:
        """Delete all rows of `table` where `column == value`; return the count."""
        response = await client.table(table).delete().eq(column, value).execute()
        return len(response.data or [])

    async def insert_audit_log(
        self,
        client: AsyncClient,
        *,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        details: dict[str, Any],
    ) -> None:
        await client.table("audit_logs").insert(
            {
                "user_id": user_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "details": details,
            }
        ).execute()

    async def delete_auth_user(self, client: AsyncClient, user_id: str) -> None:
        """Permanently delete the auth identity (admin API)."""
        await client.auth.admin.delete_user(user_id)
