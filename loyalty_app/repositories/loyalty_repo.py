# loyalty_app/repositories/loyalty_repo.py
from supabase import AsyncClient

from loyalty_app.schemas.loyalty import LoyaltyAccountRead

TABLE = "loyalty_accounts"


class LoyaltyAccountRepository:
    """
    Data access layer for `loyalty_accounts` (0..1 row per user).
    """

    async def get_by_user_id(
        self, client: AsyncClient, user_id: str
    ) -> LoyaltyAccountRead | None:
        """Return the user's loyalty account, or None if not yet activated."""
        response = (
            await client.table(TABLE).select("*").eq("user_id", user_id).limit(1).execute()
        )
        return LoyaltyAccountRead.model_validate(response.data[0]) if response.data else None

    async def create_for_user(
        self,
        client: AsyncClient,
        user_id: str,
        referred_by_staff_code: str | None = None,
    ) -> LoyaltyAccountRead | None:
        """
        Insert an inactive loyalty account for a new sign-up.

        member_id / barcode_value are filled in by gateway defaults
        (`generate_member_id()` / `generate_barcode()`).
        """
        row = {
            "user_id": user_id,
            "current_points": 0,
            "lifetime_points": 0,
            "current_tier": "silver",
            "is_active": False,
            "referred_by_staff_code": referred_by_staff_code,
        }
        response = await client.table(TABLE).insert(row).execute()
        return LoyaltyAccountRead.model_validate(response.data[0]) if response.data else None
