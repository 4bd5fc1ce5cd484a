"""Notification storage for the API server."""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models.notification import NotificationModel
from models.user import UserModel
from schemas.notification import CreateNotificationRequest, Notification
from utils.converters import model_to_notification

logger = logging.getLogger(__name__)


class NotificationManager:
    """Manages notification rows using SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    def _get_model(self, notification_id: int) -> NotificationModel:
        model = (
            self.db.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .first()
        )
        if not model:
            raise NotFoundError("Notification", notification_id)
        return model

    def list_notifications(self, user_id: Optional[int] = None) -> List[Notification]:
        """List notifications, newest first, optionally for one recipient."""
        query = self.db.query(NotificationModel)
        if user_id is not None:
            query = query.filter(NotificationModel.user_id == user_id)
        models = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        ).all()
        return [model_to_notification(m) for m in models]

    def create_notification(self, req: CreateNotificationRequest) -> Notification:
        """Store a new unread notification.

        Raises:
            NotFoundError: If the recipient does not exist.
        """
        if not self.db.query(UserModel).filter(UserModel.id == req.user_id).first():
            raise NotFoundError("User", req.user_id)
        model = NotificationModel(
            user_id=req.user_id,
            title=req.title,
            content=req.content,
            type=req.type,
            read=False,
            link=req.link,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Notification %s created for user %s", model.id, req.user_id)
        return model_to_notification(model)

    def mark_read(self, notification_id: int) -> Notification:
        """Mark a notification as read. Marking it again changes nothing."""
        model = self._get_model(notification_id)
        if not model.read:
            model.read = True
            self.db.commit()
            self.db.refresh(model)
        return model_to_notification(model)

    def delete_notification(self, notification_id: int) -> Notification:
        model = self._get_model(notification_id)
        deleted = model_to_notification(model)
        self.db.delete(model)
        self.db.commit()
        logger.info("Notification %s deleted", notification_id)
        return deleted
