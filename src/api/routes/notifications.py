"""Notification routes."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from core.dependencies import NotificationManagerDep
from core.exceptions import NotFoundError
from schemas.notification import (
    CreateNotificationRequest,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", summary="List notifications")
def list_notifications(
    notification_manager: NotificationManagerDep,
    user_id: Optional[int] = None,
) -> NotificationListResponse:
    return NotificationListResponse(
        notifications=notification_manager.list_notifications(user_id)
    )


@router.post("", summary="Create notification", status_code=status.HTTP_201_CREATED)
def create_notification(
    req: CreateNotificationRequest,
    notification_manager: NotificationManagerDep,
) -> NotificationResponse:
    try:
        notification = notification_manager.create_notification(req)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return NotificationResponse(notification=notification)


@router.put("/{notification_id}/read", summary="Mark notification as read")
def mark_notification_read(
    notification_id: int,
    notification_manager: NotificationManagerDep,
) -> NotificationResponse:
    try:
        notification = notification_manager.mark_read(notification_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return NotificationResponse(notification=notification)


@router.delete("/{notification_id}", summary="Delete notification")
def delete_notification(
    notification_id: int,
    notification_manager: NotificationManagerDep,
) -> NotificationResponse:
    try:
        notification = notification_manager.delete_notification(notification_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return NotificationResponse(notification=notification)
