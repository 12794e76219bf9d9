import logging
from decimal import Decimal
from typing import Optional, Tuple, List

from sqlalchemy.orm import Session

from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, ORDER_STATUSES, CANCELLABLE_STATUSES
from storefront.models.product import Product
from storefront.services.cart_store import clear_cart, get_or_create_cart, lock_cart
from storefront.services.default_flag import addresses, payment_methods
from storefront.services.identity import OwnerKey
from storefront.services.reorder import get_owned_order
from storefront.utils.errors import NotFoundError, ValidationError
from storefront.utils.transaction import atomic

logger = logging.getLogger(__name__)


def _pick(manager, db: Session, user_id: int, item_id: Optional[int], missing: str):
    if item_id is not None:
        return manager.get(db, user_id, item_id)
    item = manager.get_default(db, user_id)
    if not item:
        raise ValidationError(missing)
    return item


def checkout(db: Session, user_id: int, address_id: Optional[int] = None, payment_id: Optional[int] = None) -> Order:
    """Snapshot the user's cart into a new order.

    Stock is decremented and the cart emptied in the same transaction that
    writes the order, so a failure leaves cart, stock and orders untouched.
    """
    address = _pick(addresses, db, user_id, address_id, "A shipping address is required")
    payment = _pick(payment_methods, db, user_id, payment_id, "A payment method is required")

    with atomic(db, "checkout"):
        cart = lock_cart(db, get_or_create_cart(db, OwnerKey(user_id=user_id)))
        lines = db.query(CartItem).filter(CartItem.cart_id == cart.id).order_by(CartItem.id.asc()).all()
        if not lines:
            raise ValidationError("Cart is empty")

        order = Order(
            user_id=user_id,
            shipping_name=address.full_name,
            shipping_phone=address.phone,
            shipping_address=address.address,
            shipping_city=address.city,
            shipping_district=address.district,
            shipping_ward=address.ward,
            payment_type=payment.type,
            status="PENDING",
        )
        total = Decimal("0.00")
        for line in lines:
            product = db.query(Product).filter(Product.id == line.product_id).with_for_update().one()
            if (product.stock or 0) < line.quantity:
                raise ValidationError(f"Insufficient stock for {product.name}. Available: {product.stock or 0}")
            unit_price = Decimal(product.unit_price)
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    color_name=line.color.name if line.color else None,
                    size_name=line.size.name if line.size else None,
                    quantity=line.quantity,
                    price=unit_price,
                )
            )
            product.stock = product.stock - line.quantity
            total += unit_price * line.quantity
        order.total_amount = total
        db.add(order)
        db.flush()
        clear_cart(db, cart)

    db.refresh(order)
    logger.info("Order %s placed by user %s: %s lines, total %s", order.id, user_id, len(order.items), total)
    return order


def cancel_order(db: Session, order_id: int, user_id: int) -> Order:
    with atomic(db, "cancel order"):
        order = get_owned_order(db, order_id, user_id, lock=True)
        if order.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Order cannot be cancelled")
        order.status = "CANCELLED"
        for item in order.items:
            if item.product_id is None:
                continue
            db.query(Product).filter(Product.id == item.product_id).update(
                {Product.stock: Product.stock + item.quantity}, synchronize_session=False
            )
    db.refresh(order)
    logger.info("Order %s cancelled by user %s", order_id, user_id)
    return order


def get_order(db: Session, order_id: int, user_id: int) -> Order:
    # Other users' orders read as missing
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_orders(
    db: Session, user_id: int, page: int = 1, limit: int = 10, status: Optional[str] = None
) -> Tuple[List[Order], int]:
    query = db.query(Order).filter(Order.user_id == user_id)
    if status and status.upper() in ORDER_STATUSES:
        query = query.filter(Order.status == status.upper())
    total = query.count()
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return orders, total
