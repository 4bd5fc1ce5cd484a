"""Notification schema definitions."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


class Notification(BaseModel):
    id: int
    user_id: int = Field(description="The user this notification is addressed to.")
    title: str
    content: str
    type: NotificationType = NotificationType.INFO
    read: bool = False
    link: Optional[str] = Field(
        default=None,
        description="View the reader is sent to once the notification is opened.",
    )
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )


class CreateNotificationRequest(BaseModel):
    user_id: int
    title: str
    content: str
    type: NotificationType = NotificationType.INFO
    link: Optional[str] = None


class NotificationResponse(BaseModel):
    notification: Notification


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
