from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import InboxItem, Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, notification: Notification) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(notification_id, message, type, miqaat_id, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    notification.notification_id,
                    notification.message,
                    notification.type.value,
                    notification.miqaat_id,
                    notification.created_by,
                    notification.created_at,
                ),
            )
            cur.executemany(
                "INSERT INTO notification_recipients(notification_id, user_id) VALUES(%s,%s)",
                [(notification.notification_id, uid) for uid in sorted(notification.for_users)],
            )
            return notification.notification_id

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, message, type, miqaat_id, created_by, created_at
                FROM notifications
                WHERE notification_id=%s
                """,
                (notification_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            cur.execute("SELECT user_id FROM notification_recipients WHERE notification_id=%s", (notification_id,))
            for_users = frozenset(r["user_id"] for r in fetchall(cur))
            cur.execute("SELECT user_id FROM notification_reads WHERE notification_id=%s", (notification_id,))
            read_by = frozenset(r["user_id"] for r in fetchall(cur))
            return Notification(
                notification_id=row["notification_id"],
                message=row["message"],
                type=NotificationType(row["type"]),
                created_by=row["created_by"],
                for_users=for_users,
                read_by=read_by,
                miqaat_id=row.get("miqaat_id"),
                created_at=row.get("created_at"),
            )

    def list_for_user(self, user_id: str) -> Sequence[InboxItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT n.notification_id, n.message, n.type, n.miqaat_id, n.created_by, n.created_at,
                       (r.user_id IS NOT NULL) AS is_read
                FROM notification_recipients fr
                JOIN notifications n ON n.notification_id = fr.notification_id
                LEFT JOIN notification_reads r
                       ON r.notification_id = fr.notification_id AND r.user_id = fr.user_id
                WHERE fr.user_id=%s
                ORDER BY n.created_at DESC
                """,
                (user_id,),
            )
            return [
                InboxItem(
                    notification_id=r["notification_id"],
                    message=r["message"],
                    type=NotificationType(r["type"]),
                    created_by=r["created_by"],
                    miqaat_id=r.get("miqaat_id"),
                    created_at=r.get("created_at"),
                    read=bool(r["is_read"]),
                )
                for r in fetchall(cur)
            ]

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM notification_recipients WHERE notification_id=%s AND user_id=%s",
                (notification_id, user_id),
            )
            if not fetchone(cur):
                return False
            cur.execute(
                "INSERT IGNORE INTO notification_reads(notification_id, user_id) VALUES(%s,%s)",
                (notification_id, user_id),
            )
            return True

    def mark_all_read(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO notification_reads(notification_id, user_id)
                SELECT notification_id, user_id FROM notification_recipients WHERE user_id=%s
                """,
                (user_id,),
            )
            return int(cur.rowcount or 0)

    def clear(self, notification_id: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM notification_recipients WHERE notification_id=%s AND user_id=%s",
                (notification_id, user_id),
            )
            removed = cur.rowcount > 0
            cur.execute(
                "DELETE FROM notification_reads WHERE notification_id=%s AND user_id=%s",
                (notification_id, user_id),
            )
            return removed

    def clear_all(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM notification_recipients WHERE user_id=%s", (user_id,))
            removed = int(cur.rowcount or 0)
            cur.execute("DELETE FROM notification_reads WHERE user_id=%s", (user_id,))
            return removed
