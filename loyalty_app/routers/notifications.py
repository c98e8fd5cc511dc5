# loyalty_app/routers/notifications.py
import uuid

from fastapi import APIRouter, Depends, status
from supabase import AsyncClient

from loyalty_app.core.auth import require_auth
from loyalty_app.core.supabase_client import get_admin_client
from loyalty_app.repositories.notification_repo import NotificationRepository
from loyalty_app.schemas.notification import NotificationList
from loyalty_app.schemas.session import AuthSession
from loyalty_app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])

service = NotificationService(NotificationRepository())


@router.get("", response_model=NotificationList)
async def list_notifications(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    """Latest 50 notifications with the unread count."""
    return await service.inbox(client, identity.user_id)


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    notification_id: uuid.UUID,
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    await service.mark_read(client, identity.user_id, str(notification_id))


@router.post("/read-all", response_model=NotificationList)
async def mark_all_read(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    return await service.mark_all_read(client, identity.user_id)
