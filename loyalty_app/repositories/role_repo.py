# loyalty_app/repositories/role_repo.py
from typing import Literal

from supabase import AsyncClient

AppRole = Literal["admin", "staff", "customer"]


class RoleRepository:
    """
    Role checks through the gateway's `has_role(_user_id, _role)` function.

    Roles only gate UI; the gateway enforces access with RLS.
    """

    async def has_role(self, client: AsyncClient, user_id: str, role: AppRole) -> bool:
        response = await client.rpc(
            "has_role", {"_user_id": user_id, "_role": role}
        ).execute()
        return bool(response.data)
