from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence, Union

from ..common.datetime_utils import now_local
from ..common.refs import new_id
from ..common.validators import require_non_empty
from ..core.enums import NotificationType
from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository
from .model import InboxItem, Notification, NotificationMessage
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Fan-out of broadcasts plus each recipient's read/clear state."""

    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    def notify_all_users(
        self,
        type: NotificationType,
        message: Union[str, NotificationMessage],
        created_by: str,
        *,
        now: datetime | None = None,
    ) -> Optional[Notification]:
        """Create one notification addressed to every active user.

        Returns None (nothing created) when there are no active users. Errors propagate;
        callers running this after their own write catch and log them.
        """
        if isinstance(message, NotificationMessage):
            text, miqaat_id = message.text, message.miqaat_id
        else:
            text, miqaat_id = str(message), None
        logger.info("Fan-out start: type=%s by=%s", type.value, created_by)

        recipients = frozenset(self._users.list_active_ids())
        if not recipients:
            logger.info("Fan-out: no active users, nothing created")
            return None

        notification = Notification(
            notification_id=new_id(),
            message=text,
            type=type,
            created_by=created_by,
            for_users=recipients,
            read_by=frozenset(),
            miqaat_id=miqaat_id,
            created_at=now or now_local(),
        )
        self._notifications.create(notification)
        logger.info("Fan-out created notification %s for %d users", notification.notification_id, len(recipients))
        return notification

    def broadcast(self, message: Optional[str], created_by: str) -> Optional[Notification]:
        text = require_non_empty(message, "Message")
        return self.notify_all_users(NotificationType.GENERAL, text, created_by)

    def inbox(self, user_id: str) -> Sequence[InboxItem]:
        return self._notifications.list_for_user(user_id)

    def mark_read(self, notification_id: str, user_id: str) -> None:
        if not self._notifications.mark_read(notification_id, user_id):
            raise NotFoundError("Notification not found")

    def mark_all_read(self, user_id: str) -> int:
        return self._notifications.mark_all_read(user_id)

    def clear(self, notification_id: str, user_id: str) -> None:
        if not self._notifications.clear(notification_id, user_id):
            raise NotFoundError("Notification not found")

    def clear_all(self, user_id: str) -> int:
        return self._notifications.clear_all(user_id)
