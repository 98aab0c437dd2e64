from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import InboxItem, Notification


class NotificationRepository(Protocol):
    def create(self, notification: Notification) -> str:
        """Persist the notification and its recipients in one unit."""
        raise NotImplementedError

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[InboxItem]:
        """Notifications currently addressed to ``user_id``, newest first."""
        raise NotImplementedError

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        """False when ``user_id`` is not a recipient; re-marking is a no-op that returns True."""
        raise NotImplementedError

    def mark_all_read(self, user_id: str) -> int:
        raise NotImplementedError

    def clear(self, notification_id: str, user_id: str) -> bool:
        """Drop ``user_id`` from recipients and readers; False when it was not a recipient."""
        raise NotImplementedError

    def clear_all(self, user_id: str) -> int:
        raise NotImplementedError
