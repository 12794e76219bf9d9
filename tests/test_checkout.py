"""Checkout, order history and cancellation."""

from decimal import Decimal

import pytest

from storefront.models.cart import CartItem
from storefront.models.order import Order
from storefront.models.product import Product
from storefront.services import cart_store
from storefront.services.checkout import cancel_order, checkout, get_order, list_orders
from storefront.services.default_flag import addresses, payment_methods
from storefront.services.identity import OwnerKey
from storefront.utils.errors import AuthorizationError, NotFoundError, ValidationError

ADDRESS = {
    "full_name": "Alice",
    "phone": "0900000000",
    "address": "1 Main Street",
    "city": "Hanoi",
    "district": "Ba Dinh",
    "ward": "Kim Ma",
}
CARD = {"type": "credit_card", "card_number": "4111111111111111", "card_holder": "ALICE", "expiry_date": "12/29"}


@pytest.fixture()
def shopper(db, user):
    addresses.create(db, user.id, dict(ADDRESS))
    payment_methods.create(db, user.id, dict(CARD))
    return user


def _fill_cart(db, user, product, quantity=2, color=0, size=0):
    cart_store.add_item(
        db, OwnerKey(user_id=user.id), product.id, product.colors[color].id, product.sizes[size].id, quantity
    )


def _stock(db, product_id):
    db.expire_all()
    return db.query(Product.stock).filter(Product.id == product_id).scalar()


class TestCheckout:
    def test_places_order_from_cart(self, db, shopper, make_product):
        product = make_product(price="100.00", sale_price="80.00", stock=5)
        _fill_cart(db, shopper, product, quantity=2, color=1, size=1)

        order = checkout(db, shopper.id)

        assert order.status == "PENDING"
        assert order.total_amount == Decimal("160.00")
        assert order.shipping_city == "Hanoi"
        assert order.payment_type == "credit_card"
        [item] = order.items
        assert (item.product_name, item.color_name, item.size_name) == ("Linen Shirt", "Blue", "M")
        assert item.price == Decimal("80.00")
        assert _stock(db, product.id) == 3
        assert db.query(CartItem).count() == 0

    def test_insufficient_stock_changes_nothing(self, db, shopper, make_product):
        product = make_product(stock=1)
        _fill_cart(db, shopper, product, quantity=2)

        with pytest.raises(ValidationError) as exc:
            checkout(db, shopper.id)

        assert exc.value.message == "Insufficient stock for Linen Shirt. Available: 1"
        assert _stock(db, product.id) == 1
        assert db.query(CartItem).count() == 1
        assert db.query(Order).count() == 0

    def test_empty_cart_is_rejected(self, db, shopper):
        with pytest.raises(ValidationError):
            checkout(db, shopper.id)

    def test_missing_address_is_rejected(self, db, user, product):
        payment_methods.create(db, user.id, dict(CARD))
        _fill_cart(db, user, product)

        with pytest.raises(ValidationError) as exc:
            checkout(db, user.id)

        assert "address" in exc.value.message

    def test_explicit_address_must_belong_to_the_user(self, db, shopper, other_user, product):
        theirs = addresses.create(db, other_user.id, dict(ADDRESS))
        _fill_cart(db, shopper, product)

        with pytest.raises(NotFoundError):
            checkout(db, shopper.id, address_id=theirs.id)


class TestCancelOrder:
    def test_cancel_restores_stock(self, db, shopper, make_product):
        product = make_product(stock=5)
        _fill_cart(db, shopper, product, quantity=3)
        order = checkout(db, shopper.id)

        cancelled = cancel_order(db, order.id, shopper.id)

        assert cancelled.status == "CANCELLED"
        assert _stock(db, product.id) == 5

    def test_cancelled_order_cannot_be_cancelled_again(self, db, shopper, product):
        _fill_cart(db, shopper, product)
        order = checkout(db, shopper.id)
        cancel_order(db, order.id, shopper.id)

        with pytest.raises(ValidationError):
            cancel_order(db, order.id, shopper.id)

        assert _stock(db, product.id) == 10

    def test_shipped_order_cannot_be_cancelled(self, db, shopper, product):
        _fill_cart(db, shopper, product)
        order = checkout(db, shopper.id)
        order.status = "SHIPPED"
        db.commit()

        with pytest.raises(ValidationError):
            cancel_order(db, order.id, shopper.id)

    def test_other_users_order(self, db, shopper, other_user, product):
        _fill_cart(db, shopper, product)
        order = checkout(db, shopper.id)

        with pytest.raises(AuthorizationError):
            cancel_order(db, order.id, other_user.id)


class TestOrderQueries:
    def test_get_order_hides_other_users_orders(self, db, shopper, other_user, product):
        _fill_cart(db, shopper, product)
        order = checkout(db, shopper.id)

        assert get_order(db, order.id, shopper.id).id == order.id
        with pytest.raises(NotFoundError):
            get_order(db, order.id, other_user.id)

    def test_list_orders_is_paginated_newest_first(self, db, shopper, product):
        ids = []
        for _ in range(3):
            _fill_cart(db, shopper, product, quantity=1)
            ids.append(checkout(db, shopper.id).id)

        page, total = list_orders(db, shopper.id, page=1, limit=2)

        assert total == 3
        assert [o.id for o in page] == [ids[2], ids[1]]
        assert [o.id for o in list_orders(db, shopper.id, page=2, limit=2)[0]] == [ids[0]]

    def test_list_orders_filters_by_status(self, db, shopper, product):
        _fill_cart(db, shopper, product, quantity=1)
        order = checkout(db, shopper.id)
        cancel_order(db, order.id, shopper.id)

        assert list_orders(db, shopper.id, status="pending")[1] == 0
        assert list_orders(db, shopper.id, status="cancelled")[1] == 1


class TestOrderApi:
    def test_checkout_then_fetch(self, client, shopper, product, auth_headers):
        headers = auth_headers(shopper)
        client.post(
            "/api/cart/",
            json={"productId": product.id, "colorId": product.colors[0].id, "sizeId": product.sizes[0].id, "quantity": 2},
            headers=headers,
        )

        placed = client.post("/api/orders/", json={}, headers=headers)
        assert placed.status_code == 200
        order = placed.json()
        assert order["totalAmount"] == 200.0
        assert order["shippingAddress"]["ward"] == "Kim Ma"
        assert order["items"][0]["colorName"] == "Red"

        listed = client.get("/api/orders/", headers=headers).json()
        assert listed["pagination"] == {"total": 1, "page": 1, "limit": 10, "totalPages": 1}
        assert client.get(f"/api/orders/{order['id']}", headers=headers).json()["id"] == order["id"]
        assert client.get("/api/cart/", headers=headers).json()["count"] == 0

    def test_other_users_order_is_404(self, client, shopper, other_user, product, auth_headers):
        client.post(
            "/api/cart/",
            json={"productId": product.id, "colorId": product.colors[0].id, "sizeId": product.sizes[0].id},
            headers=auth_headers(shopper),
        )
        order_id = client.post("/api/orders/", json={}, headers=auth_headers(shopper)).json()["id"]

        assert client.get(f"/api/orders/{order_id}", headers=auth_headers(other_user)).status_code == 404

    def test_cancel_endpoint(self, client, shopper, product, auth_headers):
        headers = auth_headers(shopper)
        client.post(
            "/api/cart/",
            json={"productId": product.id, "colorId": product.colors[0].id, "sizeId": product.sizes[0].id},
            headers=headers,
        )
        order_id = client.post("/api/orders/", json={}, headers=headers).json()["id"]

        first = client.post(f"/api/orders/{order_id}/cancel", headers=headers)
        second = client.post(f"/api/orders/{order_id}/cancel", headers=headers)

        assert first.json()["status"] == "CANCELLED"
        assert second.status_code == 400
        assert second.json() == {"detail": "Order cannot be cancelled", "kind": "validation"}
