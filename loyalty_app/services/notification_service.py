# loyalty_app/services/notification_service.py
from fastapi import HTTPException, status
from supabase import AsyncClient

from loyalty_app.repositories.notification_repo import NotificationRepository
from loyalty_app.schemas.notification import (
    NotificationList,
    NotificationPreferences,
    NotificationPreferencesUpdate,
)


class NotificationService:
    """
    Notifications inbox and notification settings.
    """

    def __init__(self, repo: NotificationRepository):
        self.repo = repo

    async def inbox(self, client: AsyncClient, user_id: str) -> NotificationList:
        notifications = await self.repo.list_for_user(client, user_id)
        unread = sum(1 for n in notifications if not n.is_read)
        return NotificationList(unread_count=unread, notifications=notifications)

    async def mark_read(self, client: AsyncClient, user_id: str, notification_id: str) -> None:
        """
        Raises:
            HTTPException(404): if the notification is not the user's.
        """
        if not await self.repo.mark_read(client, user_id, notification_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found",
            )

    async def mark_all_read(self, client: AsyncClient, user_id: str) -> NotificationList:
        inbox = await self.inbox(client, user_id)
        unread_ids = [str(n.id) for n in inbox.notifications if not n.is_read]
        await self.repo.mark_many_read(client, user_id, unread_ids)
        for n in inbox.notifications:
            n.is_read = True
        return NotificationList(unread_count=0, notifications=inbox.notifications)

    # ----- Preferences -----

    async def get_preferences(self, client: AsyncClient, user_id: str) -> NotificationPreferences:
        """Stored preferences, or the defaults if the user never saved any."""
        prefs = await self.repo.get_preferences(client, user_id)
        return prefs or NotificationPreferences()

    async def update_preferences(
        self,
        client: AsyncClient,
        user_id: str,
        payload: NotificationPreferencesUpdate,
    ) -> NotificationPreferences:
        changes = payload.model_dump(exclude_none=True)
        if not changes:
            return await self.get_preferences(client, user_id)
        return await self.repo.upsert_preferences(client, user_id, changes)
