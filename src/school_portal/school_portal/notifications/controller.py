from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, query_int
from ..common.validators import as_bool, clamp_limit, clamp_offset
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT, MAX_PAGE_LIMIT, WRITE_RATE_LIMIT
from ..core.enums import Role
from ..container import Container
from ..extensions import limiter
from ..users.guards import current_identity
from .service import parse_read_filter


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    def _send():
        sent, recipients = container.notification_service.send(current_identity(), json_body())
        return jsonify(
            {
                "success": True,
                "message": f"Successfully sent {sent} notifications",
                "sent": sent,
                "recipients": recipients,
            }
        ), 201

    def _list_for_school():
        limit = clamp_limit(request.args.get("limit"), default=DEFAULT_NOTIFICATION_LIMIT, maximum=MAX_PAGE_LIMIT)
        offset = clamp_offset(request.args.get("offset"))
        items, total = container.notification_service.list_for_school(
            current_identity(),
            school_id=query_int("school_id"),
            user_id=query_int("user_id"),
            limit=limit,
            offset=offset,
        )
        return jsonify(
            {"notifications": [n.to_dict() for n in items], "total": total, "limit": limit, "offset": offset}
        )

    @app.route("/api/school-admin/notifications", methods=["POST"], endpoint="school_admin_send_notification")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_send_notification():
        return _send()

    @app.route("/api/school-admin/notifications", methods=["GET"], endpoint="school_admin_list_notifications")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    def school_admin_list_notifications():
        return _list_for_school()

    @app.route("/api/teacher/notifications", methods=["POST"], endpoint="teacher_send_notification")
    @guards.roles_required(Role.TEACHER)
    @limiter.limit(WRITE_RATE_LIMIT)
    def teacher_send_notification():
        return _send()

    @app.route("/api/teacher/notifications", methods=["GET"], endpoint="teacher_list_sent_notifications")
    @guards.roles_required(Role.TEACHER)
    def teacher_list_sent_notifications():
        return _list_for_school()

    @app.route("/api/notifications", methods=["GET"], endpoint="list_my_notifications")
    @guards.login_required
    def list_my_notifications():
        limit = clamp_limit(request.args.get("limit"), default=DEFAULT_NOTIFICATION_LIMIT, maximum=MAX_PAGE_LIMIT)
        offset = clamp_offset(request.args.get("offset"))
        items, total, unread = container.notification_service.list_mine(
            current_identity(),
            is_read=parse_read_filter(request.args.get("filter")),
            limit=limit,
            offset=offset,
        )
        return jsonify(
            {
                "notifications": [n.to_dict() for n in items],
                "total": total,
                "unread": unread,
                "limit": limit,
                "offset": offset,
            }
        )

    @app.route("/api/notifications/<int:notification_id>", methods=["PATCH"], endpoint="update_my_notification")
    @guards.login_required
    @limiter.limit(WRITE_RATE_LIMIT)
    def update_my_notification(notification_id: int):
        data = json_body()
        is_read = as_bool(data["is_read"]) if "is_read" in data else True
        notification = container.notification_service.set_read(current_identity(), notification_id, is_read=is_read)
        return jsonify({"notification": notification.to_dict(), "message": "Notification updated successfully"})

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="mark_all_my_notifications_read")
    @guards.login_required
    @limiter.limit(WRITE_RATE_LIMIT)
    def mark_all_my_notifications_read():
        updated = container.notification_service.mark_all_read(current_identity())
        return jsonify({"updated": updated})
