# Overview: Publish-only notification sink plus the read/ack operations behind /notifications.

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Notification, User
from ..models.notifications import NOTIFICATION_TYPES


def _prune(user_id: int | None, keep: int) -> None:
    """Delete everything older than the newest `keep` rows of one audience."""
    stale_ids = [
        row.id
        for row in (
            db.session.query(Notification.id)
            .filter(Notification.user_id.is_(None) if user_id is None else Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(keep)
            .all()
        )
    ]
    if stale_ids:
        db.session.query(Notification).filter(Notification.id.in_(stale_ids)).delete(synchronize_session=False)


def publish(
    type: str,
    title: str,
    message: str,
    *,
    user_id: int | None = None,
    product_id: int | None = None,
) -> Notification:
    """
    Record a notification in the caller's transaction (no commit).

    user_id=None targets the admin feed.
    """
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")

    notification = Notification(
        type=type,
        title=title,
        message=message,
        user_id=user_id,
        product_id=product_id,
    )
    db.session.add(notification)
    db.session.flush()
    _prune(user_id, current_app.config["NOTIFICATION_RETENTION"])
    return notification


def _visible_to(user: User):
    if user.is_admin:
        return or_(Notification.user_id == user.id, Notification.user_id.is_(None))
    return Notification.user_id == user.id


def list_notifications(user: User, *, unread_only: bool = False) -> list[Notification]:
    query = db.session.query(Notification).filter(_visible_to(user))
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def unread_count(user: User) -> int:
    return (
        db.session.query(Notification)
        .filter(_visible_to(user), Notification.read.is_(False))
        .count()
    )


def mark_read(notification_id: int, user: User) -> bool:
    notification = (
        db.session.query(Notification)
        .filter(Notification.id == notification_id, _visible_to(user))
        .first()
    )
    if not notification:
        return False
    notification.read = True
    db.session.commit()
    return True


def mark_all_read(user: User) -> int:
    updated = (
        db.session.query(Notification)
        .filter(_visible_to(user), Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.session.commit()
    return updated
