# loyalty_app/repositories/notification_repo.py
from typing import Any

from supabase import AsyncClient

from loyalty_app.schemas.notification import NotificationPreferences, NotificationRead


class NotificationRepository:
    """
    Data access for `notifications` and `notification_preferences`.
    """

    # ----- Notifications -----

    async def list_for_user(
        self, client: AsyncClient, user_id: str, limit: int = 50
    ) -> list[NotificationRead]:
        """Latest notifications for a user, newest first."""
        response = (
            await client.table("notifications")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [NotificationRead.model_validate(row) for row in response.data or []]

    async def mark_read(self, client: AsyncClient, user_id: str, notification_id: str) -> bool:
        """
        Mark a single notification read.

        Returns False if no row matched (unknown id or not the user's).
        """
        response = (
            await client.table("notifications")
            .update({"is_read": True})
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    async def mark_many_read(
        self, client: AsyncClient, user_id: str, notification_ids: list[str]
    ) -> None:
        if not notification_ids:
            return
        await (
            client.table("notifications")
            .update({"is_read": True})
            .in_("id", notification_ids)
            .eq("user_id", user_id)
            .execute()
        )

    # ----- Preferences -----

    async def get_preferences(
        self, client: AsyncClient, user_id: str
    ) -> NotificationPreferences | None:
        response = (
            await client.table("notification_preferences")
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return NotificationPreferences.model_validate(response.data[0]) if response.data else None

    async def upsert_preferences(
        self, client: AsyncClient, user_id: str, changes: dict[str, Any]
    ) -> NotificationPreferences:
        row = {"user_id": user_id, **changes}
        response = (
            await client.table("notification_preferences")
            .upsert(row, on_conflict="user_id")
            .execute()
        )
        if response.data:
            return NotificationPreferences.model_validate(response.data[0])
        return NotificationPreferences.model_validate(changes)
