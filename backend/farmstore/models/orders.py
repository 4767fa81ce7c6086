from __future__ import annotations

from ..extensions import db
from farmstore.time_utils import to_utc_z


ORDER_PENDING = "pending"
ORDER_PROCESSING = "processing"
ORDER_SHIPPED = "shipped"
ORDER_DELIVERED = "delivered"
ORDER_CANCELLED = "cancelled"
ORDER_STATUSES = (ORDER_PENDING, ORDER_PROCESSING, ORDER_SHIPPED, ORDER_DELIVERED, ORDER_CANCELLED)

PAYMENT_METHODS = ("card", "paypal", "cod", "bank_transfer")


class Order(db.Model):
    """
    Order document created once, at successful checkout.

    INVARIANTS:
    - total == subtotal + shipping + tax
    - subtotal == sum(line.unit_price * line.quantity)
    - lines are price snapshots; catalog changes never touch them
    - cancellation is a status; orders are never deleted
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable document number (e.g., "ORD-2026-000123")
    order_number = db.Column(db.String(32), nullable=False, unique=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_PENDING, index=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    user_email = db.Column(db.String(255), nullable=False)
    classification = db.Column(db.String(32), nullable=False)

    # Shipping address snapshot
    ship_name = db.Column(db.String(255), nullable=False)
    ship_address = db.Column(db.String(500), nullable=False)
    ship_city = db.Column(db.String(120), nullable=False)
    ship_state = db.Column(db.String(120), nullable=False)
    ship_zip_code = db.Column(db.String(20), nullable=True)
    ship_phone = db.Column(db.String(32), nullable=True)

    payment_method = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.String(1000), nullable=True)

    # All amounts in whole Naira
    subtotal = db.Column(db.Integer, nullable=False)
    shipping = db.Column(db.Integer, nullable=False)
    tax = db.Column(db.Integer, nullable=False)
    total = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    lines = db.relationship(
        "OrderLine",
        order_by="OrderLine.id",
        cascade="all, delete-orphan",
        lazy="selectin",
        backref="order",
    )
    timeline = db.relationship(
        "OrderTimelineEvent",
        order_by="OrderTimelineEvent.position",
        cascade="all, delete-orphan",
        lazy="selectin",
        backref="order",
    )

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "date": to_utc_z(self.created_at),
            "status": self.status,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "userType": self.classification,
            "items": [line.to_dict() for line in self.lines],
            "itemCount": self.item_count,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "shippingAddress": {
                "name": self.ship_name,
                "address": self.ship_address,
                "city": self.ship_city,
                "state": self.ship_state,
                "zipCode": self.ship_zip_code,
                "phone": self.ship_phone,
            },
            "paymentMethod": self.payment_method,
            "notes": self.notes,
            "timeline": [event.to_dict() for event in self.timeline],
        }


class OrderLine(db.Model):
    """Order line with the price snapshot actually charged."""
    __tablename__ = "order_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(32), nullable=False)
    category = db.Column(db.String(64), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.product_id,
            "name": self.name,
            "price": self.unit_price,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "lineTotal": self.line_total,
        }


class OrderTimelineEvent(db.Model):
    """One stage of an order's status timeline."""
    __tablename__ = "order_timeline_events"
    __table_args__ = (
        db.UniqueConstraint("order_id", "position", name="uq_order_timeline_position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    label = db.Column(db.String(64), nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "status": self.label,
            "date": to_utc_z(self.occurred_at),
            "completed": self.completed,
        }


class CartItem(db.Model):
    """Server-side cart line. Quantity only; prices are computed at read time."""
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
        db.CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    added_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")
