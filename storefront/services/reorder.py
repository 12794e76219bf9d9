import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from storefront.models.order import Order, OrderItem
from storefront.models.product import Product, ProductColor, ProductSize
from storefront.services.cart_store import get_or_create_cart, lock_cart, upsert_line
from storefront.services.identity import OwnerKey
from storefront.utils.errors import AuthorizationError, NotFoundError, ValidationError
from storefront.utils.transaction import atomic

logger = logging.getLogger(__name__)

PRODUCT_UNAVAILABLE = "product_unavailable"
INSUFFICIENT_STOCK = "insufficient_stock"
VARIANT_UNAVAILABLE = "variant_unavailable"


@dataclass
class ReorderResult:
    cart_id: int
    added: List[dict] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"cartId": self.cart_id, "added": self.added, "skipped": self.skipped}


def get_owned_order(db: Session, order_id: int, user_id: int, lock: bool = False) -> Order:
    query = db.query(Order).filter(Order.id == order_id)
    if lock:
        query = query.with_for_update()
    order = query.first()
    if not order:
        raise NotFoundError("Order not found")
    if order.user_id != user_id:
        raise AuthorizationError("Order belongs to another user")
    return order


def _variant_by_name(db: Session, model, product_id: int, name: Optional[str]):
    if not name:
        return None
    return (
        db.query(model)
        .filter(model.product_id == product_id, model.name == name)
        .order_by(model.id.asc())
        .first()
    )


def _skip(result: ReorderResult, line: OrderItem, reason: str) -> None:
    result.skipped.append({"productId": line.product_id, "name": line.product_name, "reason": reason})
    logger.warning("Reorder skipped line %s (product %s): %s", line.id, line.product_id, reason)


def reorder(db: Session, order_id: int, user_id: int) -> ReorderResult:
    """Put a past order's lines back into the user's cart.

    Lines whose product is gone, short on stock, or no longer offered in the
    ordered color/size are skipped; the call still succeeds. The returned
    report tells the caller which lines landed.
    """
    order = get_owned_order(db, order_id, user_id)

    with atomic(db, "reorder"):
        cart = lock_cart(db, get_or_create_cart(db, OwnerKey(user_id=user_id)))
        result = ReorderResult(cart_id=cart.id)
        for line in order.items:
            product = None
            if line.product_id is not None:
                product = db.query(Product).filter(Product.id == line.product_id).with_for_update(read=True).first()
            if not product:
                _skip(result, line, PRODUCT_UNAVAILABLE)
                continue
            if (product.stock or 0) < line.quantity:
                _skip(result, line, INSUFFICIENT_STOCK)
                continue
            color = _variant_by_name(db, ProductColor, product.id, line.color_name)
            size = _variant_by_name(db, ProductSize, product.id, line.size_name)
            if not color or not size:
                _skip(result, line, VARIANT_UNAVAILABLE)
                continue
            try:
                upsert_line(db, cart, product.id, color.id, size.id, line.quantity)
            except ValidationError:
                _skip(result, line, VARIANT_UNAVAILABLE)
                continue
            result.added.append({"productId": product.id, "quantity": line.quantity})

    logger.info(
        "Reorder of order %s into cart %s: %s added, %s skipped",
        order_id, result.cart_id, len(result.added), len(result.skipped),
    )
    return result
