from __future__ import annotations

from flask import Flask

from ..auth.gate import current_identity
from ..common.refs import require_id
from ..common.responses import json_body, ok
from ..container import Container
from ..core.enums import ADMIN_ROLES


def register(app: Flask, container: Container) -> None:
    gate = container.gate
    notifications = container.notification_service

    @app.get("/notifications", endpoint="list_notifications")
    @gate.required
    def list_notifications():
        items = notifications.inbox(current_identity().user_id)
        return ok(
            notifications=[i.to_dict() for i in items],
            unreadCount=sum(1 for i in items if not i.read),
        )

    @app.post("/notifications", endpoint="broadcast_notification")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def broadcast_notification():
        created = notifications.broadcast(json_body().get("message"), current_identity().user_id)
        if created is None:
            return ok("No active users to notify", created=False)
        return ok("Notification sent", 201, created=True, notificationId=created.notification_id)

    @app.patch("/notifications/read-all", endpoint="read_all_notifications")
    @gate.required
    def read_all_notifications():
        notifications.mark_all_read(current_identity().user_id)
        return ok("All notifications marked as read")

    @app.patch("/notifications/read/<notification_id>", endpoint="read_notification")
    @gate.required
    def read_notification(notification_id: str):
        notifications.mark_read(require_id(notification_id, "Notification"), current_identity().user_id)
        return ok("Notification marked as read")

    @app.patch("/notifications/clear-all", endpoint="clear_all_notifications")
    @gate.required
    def clear_all_notifications():
        notifications.clear_all(current_identity().user_id)
        return ok("All notifications cleared for user")

    @app.patch("/notifications/clear/<notification_id>", endpoint="clear_notification")
    @gate.required
    def clear_notification(notification_id: str):
        notifications.clear(require_id(notification_id, "Notification"), current_identity().user_id)
        return ok("Notification cleared for user")
