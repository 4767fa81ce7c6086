"""
Order lifecycle and cart tests.

Covers admin status advance, cancellation rules, order visibility and the
server-side cart.
"""

import pytest

from farmstore.extensions import db
from farmstore.models import Product
from farmstore.services import cart_service, checkout_service, order_service
from farmstore.services.cart_service import CartError
from farmstore.services.order_service import OrderNotFoundError, OrderStateError
from farmstore.validation import AuthorizationError, ValidationError

from conftest import SHIPPING_ADDRESS, auth_headers


@pytest.fixture
def order(tomatoes, retail_user):
    return checkout_service.checkout(
        retail_user,
        lines=[(1, 2)],
        shipping_address=SHIPPING_ADDRESS,
        payment_method="cod",
    )


# =============================================================================
# STATUS LIFECYCLE
# =============================================================================

class TestOrderLifecycle:

    def test_admin_advances_through_stages(self, order, admin_user):
        for status in ("processing", "shipped", "delivered"):
            order = order_service.advance_order_status(order.id, status, admin_user)
            assert order.status == status

        assert all(event.completed for event in order.timeline)
        assert all(event.occurred_at is not None for event in order.timeline)

    def test_cannot_skip_stage(self, order, admin_user):
        with pytest.raises(OrderStateError):
            order_service.advance_order_status(order.id, "shipped", admin_user)
        db.session.rollback()
        assert order_service.get_order(order.id).status == "pending"

    def test_buyer_cannot_advance(self, order, retail_user):
        with pytest.raises(AuthorizationError):
            order_service.advance_order_status(order.id, "processing", retail_user)

    def test_unknown_order(self, admin_user, db_session):
        with pytest.raises(OrderNotFoundError):
            order_service.advance_order_status(12345, "processing", admin_user)


class TestCancellation:

    def test_owner_cancels_pending(self, order, retail_user):
        cancelled = order_service.cancel_order(order.id, retail_user)
        assert cancelled.status == "cancelled"
        assert cancelled.timeline[-1].label == "Cancelled"

    def test_cancel_does_not_return_stock(self, order, retail_user):
        order_service.cancel_order(order.id, retail_user)
        assert db.session.query(Product.stock).filter_by(id=1).scalar() == 98

    def test_owner_cannot_cancel_processing(self, order, retail_user, admin_user):
        order_service.advance_order_status(order.id, "processing", admin_user)
        with pytest.raises(OrderStateError):
            order_service.cancel_order(order.id, retail_user)

    def test_admin_cancels_processing(self, order, admin_user):
        order_service.advance_order_status(order.id, "processing", admin_user)
        assert order_service.cancel_order(order.id, admin_user).status == "cancelled"

    def test_nobody_cancels_shipped(self, order, admin_user):
        order_service.advance_order_status(order.id, "processing", admin_user)
        order_service.advance_order_status(order.id, "shipped", admin_user)
        with pytest.raises(OrderStateError):
            order_service.cancel_order(order.id, admin_user)

    def test_other_buyer_cannot_cancel(self, order, wholesale_user):
        with pytest.raises(AuthorizationError):
            order_service.cancel_order(order.id, wholesale_user)

    def test_cancelled_order_cannot_advance(self, order, retail_user, admin_user):
        order_service.cancel_order(order.id, retail_user)
        with pytest.raises(OrderStateError):
            order_service.advance_order_status(order.id, "processing", admin_user)


class TestOrderQueries:

    def test_list_orders_filters(self, order, retail_user, wholesale_user):
        assert [o.id for o in order_service.list_orders(user_id=retail_user.id)] == [order.id]
        assert order_service.list_orders(user_id=wholesale_user.id) == []
        assert order_service.list_orders(status="delivered") == []

    def test_list_orders_rejects_unknown_status(self, db_session):
        with pytest.raises(ValidationError):
            order_service.list_orders(status="lost")

    def test_lookup_by_number(self, order):
        assert order_service.get_order_by_number(order.order_number).id == order.id


# =============================================================================
# HTTP
# =============================================================================

class TestOrderRoutes:

    def test_owner_sees_order(self, client, order, retail_user):
        response = client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(retail_user))
        assert response.status_code == 200
        assert response.get_json()["data"]["orderNumber"] == order.order_number

    def test_other_buyer_gets_404(self, client, order, wholesale_user):
        response = client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(wholesale_user))
        assert response.status_code == 404

    def test_other_buyer_cancel_gets_404(self, client, order, wholesale_user):
        response = client.post(f"/api/v1/orders/{order.id}/cancel", headers=auth_headers(wholesale_user))
        assert response.status_code == 404

    def test_admin_lists_all(self, client, order, admin_user):
        headers = auth_headers(admin_user)
        own = client.get("/api/v1/orders", headers=headers).get_json()["data"]
        everyone = client.get("/api/v1/orders?all=true", headers=headers).get_json()["data"]
        assert own == []
        assert [o["id"] for o in everyone] == [order.id]

    def test_status_update_requires_admin(self, client, order, retail_user):
        response = client.post(
            f"/api/v1/orders/{order.id}/status",
            json={"status": "processing"},
            headers=auth_headers(retail_user),
        )
        assert response.status_code == 403

    def test_invalid_transition_is_409(self, client, order, admin_user):
        response = client.post(
            f"/api/v1/orders/{order.id}/status",
            json={"status": "delivered"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 409


# =============================================================================
# CART
# =============================================================================

class TestCart:

    def test_set_update_and_remove(self, tomatoes, retail_user):
        cart_service.set_cart_item(retail_user.id, 1, 2)
        cart_service.set_cart_item(retail_user.id, 1, 5)
        assert [(i.product_id, i.quantity) for i in cart_service.get_cart(retail_user.id)] == [(1, 5)]

        cart_service.set_cart_item(retail_user.id, 1, 0)
        assert cart_service.get_cart(retail_user.id) == []

    def test_unknown_product(self, retail_user):
        with pytest.raises(CartError):
            cart_service.set_cart_item(retail_user.id, 404, 1)

    @pytest.mark.parametrize("quantity", [-1, 1.5, "3", True, None])
    def test_rejects_bad_quantity(self, tomatoes, retail_user, quantity):
        with pytest.raises(ValidationError):
            cart_service.set_cart_item(retail_user.id, 1, quantity)

    def test_summary_prices_for_classification(self, tomatoes, wholesale_user):
        cart_service.set_cart_item(wholesale_user.id, 1, 10)
        summary = cart_service.cart_summary(wholesale_user)
        assert summary["items"][0]["unitPrice"] == 6500
        assert summary["items"][0]["savings"] == 10_000
        assert summary["subtotal"] == 65_000
        assert summary["shipping"] == 0
        assert summary["itemCount"] == 10

    def test_cart_routes(self, client, tomatoes, retail_user):
        headers = auth_headers(retail_user)
        response = client.put("/api/v1/cart/items/1", json={"quantity": 3}, headers=headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["subtotal"] == 22_500

        assert client.put("/api/v1/cart/items/999", json={"quantity": 1}, headers=headers).status_code == 404
        assert client.delete("/api/v1/cart/items/1", headers=headers).status_code == 200
        assert client.delete("/api/v1/cart/items/1", headers=headers).status_code == 404


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class TestNotificationRoutes:

    def test_buyer_reads_own_feed(self, client, make_product, retail_user):
        make_product(1, stock=0)
        client.post("/api/v1/products/1/restock-subscription", headers=auth_headers(retail_user))

        response = client.get("/api/v1/notifications", headers=auth_headers(retail_user))
        body = response.get_json()["data"]
        assert body["unreadCount"] == 1
        notification_id = body["notifications"][0]["id"]

        assert client.post(
            f"/api/v1/notifications/{notification_id}/read", headers=auth_headers(retail_user)
        ).status_code == 200
        response = client.get("/api/v1/notifications", headers=auth_headers(retail_user))
        assert response.get_json()["data"]["unreadCount"] == 0

    def test_admin_feed_hidden_from_buyers(self, client, make_product, retail_user, admin_user):
        make_product(1, stock=3)
        client.post("/api/v1/inventory/1/restock", json={"quantity": 5}, headers=auth_headers(admin_user))

        buyer_feed = client.get("/api/v1/notifications", headers=auth_headers(retail_user)).get_json()["data"]
        admin_feed = client.get("/api/v1/notifications", headers=auth_headers(admin_user)).get_json()["data"]
        assert buyer_feed["notifications"] == []
        assert [n["title"] for n in admin_feed["notifications"]] == ["Product Restocked"]
