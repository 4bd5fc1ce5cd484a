"""Notification Dispatcher.

Creates, lists and marks notifications through the Sync Coordinator.
Delivery is best-effort: ``notify`` never raises, so a failed notification
never undoes the workflow change that triggered it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import pytz

from client.state import NOTIFICATIONS
from client.sync import Operation, OperationKind, SyncCoordinator, SyncResult
from core.exceptions import MagazineError, NotFoundError
from schemas.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


@dataclass
class MarkReadResult:
    notification: Notification
    # View the Presentation Layer should open next, if any
    navigate_to: Optional[str] = None


def _newest_first(notifications: List[Notification]) -> List[Notification]:
    return sorted(notifications, key=lambda n: (n.created_at, n.id), reverse=True)


class NotificationDispatcher:
    def __init__(self, sync: SyncCoordinator):
        self.sync = sync
        self.state = sync.state
        self.remote = sync.remote

    def _require(self, notification_id: int) -> Notification:
        notification = self.state.find(NOTIFICATIONS, notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        return notification

    def notify(
        self,
        user_id: int,
        title: str,
        content: str,
        type: NotificationType = NotificationType.INFO,
        link: Optional[str] = None,
    ) -> Optional[SyncResult]:
        """Send a notification to a user.

        Returns:
            The SyncResult, or None if delivery failed entirely.
        """
        payload = {
            "user_id": user_id,
            "title": title,
            "content": content,
            "type": NotificationType(type).value,
            "link": link,
        }

        def apply_local() -> Notification:
            notification = Notification(
                id=self.state.next_id(NOTIFICATIONS),
                user_id=user_id,
                title=title,
                content=content,
                type=type,
                read=False,
                link=link,
                created_at=datetime.now(pytz.utc).isoformat(),
            )
            self.state.notifications.insert(0, notification)
            return notification

        try:
            return self.sync.execute(
                Operation(
                    kind=OperationKind.WRITE,
                    target=NOTIFICATIONS,
                    payload=payload,
                    remote_call=lambda: self.remote.create_notification(payload),
                    apply_remote=lambda n: self.state.upsert(NOTIFICATIONS, n),
                    apply_local=apply_local,
                )
            )
        except (MagazineError, ValueError) as e:
            logger.error("Failed to deliver notification to user %s: %s", user_id, e)
            return None

    def list(self, user_id: int) -> SyncResult:
        """Notifications for a user, most recent first."""

        def apply_remote(notifications: List[Notification]) -> List[Notification]:
            others = [n for n in self.state.notifications if n.user_id != user_id]
            self.state.replace(NOTIFICATIONS, _newest_first(notifications + others))
            return _newest_first(notifications)

        def apply_local() -> List[Notification]:
            return _newest_first(
                [n for n in self.state.notifications if n.user_id == user_id]
            )

        return self.sync.execute(
            Operation(
                kind=OperationKind.READ,
                target=NOTIFICATIONS,
                payload={"user_id": user_id},
                remote_call=lambda: self.remote.list_notifications(user_id),
                apply_remote=apply_remote,
                apply_local=apply_local,
            )
        )

    def mark_read(self, notification_id: int) -> MarkReadResult:
        """Mark a notification as read. Repeating the call changes nothing.

        Raises:
            NotFoundError: If the notification is not known locally.
        """
        notification = self._require(notification_id)
        if not notification.read:

            def apply_local() -> Notification:
                notification.read = True
                return notification

            result = self.sync.execute(
                Operation(
                    kind=OperationKind.WRITE,
                    target=NOTIFICATIONS,
                    payload={"id": notification_id},
                    remote_call=lambda: self.remote.mark_notification_read(notification_id),
                    apply_remote=lambda n: self.state.upsert(NOTIFICATIONS, n),
                    apply_local=apply_local,
                )
            )
            notification = result.value
        return MarkReadResult(notification=notification, navigate_to=notification.link)

    def delete(self, notification_id: int) -> SyncResult:
        """Remove a notification.

        Raises:
            NotFoundError: If the notification is not known locally.
        """
        self._require(notification_id)
        return self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=NOTIFICATIONS,
                payload={"id": notification_id},
                remote_call=lambda: self.remote.delete_notification(notification_id),
                apply_remote=lambda _: self.state.remove(NOTIFICATIONS, notification_id),
                apply_local=lambda: self.state.remove(NOTIFICATIONS, notification_id),
            )
        )

    def unread_count(self, user_id: int) -> int:
        return sum(
            1 for n in self.state.notifications if n.user_id == user_id and not n.read
        )
