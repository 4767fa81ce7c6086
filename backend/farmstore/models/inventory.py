from __future__ import annotations

from ..extensions import db
from farmstore.time_utils import to_utc_z


class RestockRecord(db.Model):
    """
    Append-only restock history.

    WHY: previous/new stock are captured at write time so history stays
    correct even after later deductions.
    """
    __tablename__ = "restock_records"
    __table_args__ = (
        db.Index("ix_restock_records_product_time", "product_id", "restocked_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)
    restocked_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    restocked_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    notes = db.Column(db.String(500), nullable=True)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "previousStock": self.previous_stock,
            "newStock": self.new_stock,
            "restockedBy": self.restocked_by_user_id,
            "restockedAt": to_utc_z(self.restocked_at),
            "notes": self.notes,
        }


class RestockSubscription(db.Model):
    """'Notify me' registration; deleted once the back-in-stock notice is sent."""
    __tablename__ = "restock_subscriptions"
    __table_args__ = (
        db.UniqueConstraint("product_id", "user_id", name="uq_restock_subscriptions_product_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    user_email = db.Column(db.String(255), nullable=False)
    subscribed_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "subscribedAt": to_utc_z(self.subscribed_at),
        }
