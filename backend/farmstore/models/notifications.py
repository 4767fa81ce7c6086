from __future__ import annotations

from ..extensions import db
from farmstore.time_utils import to_utc_z


NOTIFICATION_SUCCESS = "success"
NOTIFICATION_WARNING = "warning"
NOTIFICATION_ERROR = "error"
NOTIFICATION_INFO = "info"
NOTIFICATION_TYPES = (NOTIFICATION_SUCCESS, NOTIFICATION_WARNING, NOTIFICATION_ERROR, NOTIFICATION_INFO)


class Notification(db.Model):
    """
    Publish-only notification sink.

    user_id is None for the admin feed (stock alerts, restocks).
    Per-user rows carry back-in-stock and subscription notices.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)

    type = db.Column(db.String(16), nullable=False, default=NOTIFICATION_INFO)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "productId": self.product_id,
            "userId": self.user_id,
            "read": self.read,
            "timestamp": to_utc_z(self.created_at),
        }
