from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class NotificationMessage:
    """Structured message: text plus the Miqaat that triggered it, if any."""

    text: str
    miqaat_id: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    """One broadcast addressed to many users.

    Invariant: ``read_by`` is always a subset of ``for_users``.
    """

    notification_id: str
    message: str
    type: NotificationType
    created_by: str
    for_users: frozenset[str]
    read_by: frozenset[str] = field(default_factory=frozenset)
    miqaat_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class InboxItem:
    """A notification as seen by one recipient."""

    notification_id: str
    message: str
    type: NotificationType
    created_by: str
    miqaat_id: Optional[str]
    created_at: Optional[datetime]
    read: bool

    def to_dict(self) -> dict:
        return {
            "_id": self.notification_id,
            "message": self.message,
            "type": self.type.value,
            "miqaatId": self.miqaat_id,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "read": self.read,
        }
