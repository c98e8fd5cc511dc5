# loyalty_app/repositories/profile_repo.py
from typing import Any

from supabase import AsyncClient

from loyalty_app.schemas.profile import ProfileCreate, ProfileRead

TABLE = "profiles"


class ProfileRepository:
    """
    Data access layer for the `profiles` table.

    Responsibilities:
      - Pure gateway operations (select / insert / upsert)
      - No FastAPI, no business logic
    """

    async def get_by_user_id(self, client: AsyncClient, user_id: str) -> ProfileRead | None:
        """Return the profile for an auth user, or None if there is no row yet."""
        response = (
            await client.table(TABLE).select("*").eq("user_id", user_id).limit(1).execute()
        )
        return ProfileRead.model_validate(response.data[0]) if response.data else None

    async def create(self, client: AsyncClient, payload: ProfileCreate) -> ProfileRead:
        """Insert the profile row created at sign-up."""
        row = payload.model_dump(mode="json")
        # profiles.id mirrors the auth user id
        row["id"] = row["user_id"]
        response = await client.table(TABLE).insert(row).execute()
        return ProfileRead.model_validate(response.data[0])

    async def upsert(
        self,
        client: AsyncClient,
        user_id: str,
        changes: dict[str, Any],
    ) -> ProfileRead | None:
        """
        Insert-or-update on `user_id` (profile edit works even when the
        sign-up insert never landed).

        Returns None when the gateway returns no row (e.g. RLS refused it).
        """
        row = {"user_id": user_id, **changes}
        response = await client.table(TABLE).upsert(row, on_conflict="user_id").execute()
        return ProfileRead.model_validate(response.data[0]) if response.data else None
