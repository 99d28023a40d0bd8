from __future__ import annotations

from flask import Flask, jsonify

from ..common.guards import api_login_required, current_actor
from ..container import Container
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    svc = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="api_notifications")
    @api_login_required
    def api_notifications():
        actor = current_actor()
        items = svc.list_for_user(user_id=actor.user_id)
        return jsonify(
            {
                "notifications": [n.to_dict() for n in items],
                "unread": svc.count_unread(user_id=actor.user_id),
            }
        )

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="api_notification_read")
    @api_login_required
    def api_notification_read(notification_id: int):
        try:
            svc.mark_as_read(user_id=current_actor().user_id, notification_id=notification_id)
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        return jsonify({"success": True})

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="api_notifications_read_all")
    @api_login_required
    def api_notifications_read_all():
        updated = svc.mark_all_as_read(user_id=current_actor().user_id)
        return jsonify({"success": True, "updated": updated})
