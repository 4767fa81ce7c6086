# backend/farmstore/routes/notifications.py
"""Notification feed for the signed-in user (admins also see the admin feed)."""

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..responses import api_error, api_success
from ..services import notification_service


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/v1/notifications")


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")
    notifications = notification_service.list_notifications(g.current_user, unread_only=unread_only)
    return api_success(
        "Notifications retrieved",
        {
            "notifications": [n.to_dict() for n in notifications],
            "unreadCount": notification_service.unread_count(g.current_user),
        },
    )


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
def mark_read_route(notification_id: int):
    if not notification_service.mark_read(notification_id, g.current_user):
        return api_error("Notification not found", status=404)
    return api_success("Notification marked as read")


@notifications_bp.post("/read-all")
@require_auth
def mark_all_read_route():
    count = notification_service.mark_all_read(g.current_user)
    return api_success("All notifications marked as read", {"updated": count})
