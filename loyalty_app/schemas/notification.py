# loyalty_app/schemas/notification.py
import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict
from sqlmodel import SQLModel


class NotificationRead(SQLModel):
    id: uuid.UUID
    title: str
    message: str
    type: str = "general"
    is_read: bool = False
    data: Any = None
    created_at: datetime


class NotificationList(SQLModel):
    unread_count: int
    notifications: list[NotificationRead]


class NotificationPreferences(SQLModel):
    """
    `notification_preferences` row (one per user). Defaults mirror the
    gateway's column defaults.
    """

    push_enabled: bool = True
    email_enabled: bool = True
    sms_enabled: bool = False
    whatsapp_enabled: bool = False
    promo_notifications: bool = True
    points_notifications: bool = True
    tier_notifications: bool = True


class NotificationPreferencesUpdate(SQLModel):
    """
    Partial update of notification preferences. All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    push_enabled: bool | None = None
    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    whatsapp_enabled: bool | None = None
    promo_notifications: bool | None = None
    points_notifications: bool | None = None
    tier_notifications: bool | None = None
