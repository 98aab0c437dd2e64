from __future__ import annotations

from datetime import datetime

from conftest import ScriptedDatabase
from bgi_admin.core.enums import NotificationType
from bgi_admin.notifications.model import Notification
from bgi_admin.notifications.mysql_notification_repository import MySQLNotificationRepository


def test_create_stores_notification_and_every_recipient():
    db = ScriptedDatabase()
    notification = Notification(
        notification_id="n-1",
        message="Hello",
        type=NotificationType.GENERAL,
        created_by="admin",
        for_users=frozenset({"u-2", "u-1"}),
        created_at=datetime(2026, 3, 10, 8, 30),
    )

    MySQLNotificationRepository(db).create(notification)

    assert db.statements[0].startswith("INSERT INTO notifications")
    assert db.statements[1].startswith("INSERT INTO notification_recipients")
    assert db.batches == [[("n-1", "u-1"), ("n-1", "u-2")]]
    assert db.events == ["commit", "close"]


def test_clear_removes_recipient_and_read_marker():
    db = ScriptedDatabase(rowcount=1)

    assert MySQLNotificationRepository(db).clear("n-1", "u-1") is True

    assert db.statements == [
        "DELETE FROM notification_recipients WHERE notification_id=%s AND user_id=%s",
        "DELETE FROM notification_reads WHERE notification_id=%s AND user_id=%s",
    ]


def test_clear_for_non_recipient_reports_false():
    db = ScriptedDatabase(rowcount=0)

    assert MySQLNotificationRepository(db).clear("n-1", "stranger") is False


def test_clear_all_deletes_from_both_tables():
    db = ScriptedDatabase(rowcount=3)

    assert MySQLNotificationRepository(db).clear_all("u-1") == 3
    assert [s.split(" WHERE")[0] for s in db.statements] == [
        "DELETE FROM notification_recipients",
        "DELETE FROM notification_reads",
    ]


def test_mark_read_requires_recipient():
    db = ScriptedDatabase()

    assert MySQLNotificationRepository(db).mark_read("n-1", "stranger") is False
    assert not any(s.startswith("INSERT") for s in db.statements)


def test_mark_read_inserts_once_for_recipient():
    def respond(sql, params):
        return [{"found": 1}] if sql.startswith("SELECT 1 AS found FROM notification_recipients") else []

    db = ScriptedDatabase(respond)

    assert MySQLNotificationRepository(db).mark_read("n-1", "u-1") is True
    assert db.statements[-1].startswith("INSERT IGNORE INTO notification_reads")
