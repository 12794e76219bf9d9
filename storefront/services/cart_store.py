import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product, ProductColor, ProductSize
from storefront.services.identity import OwnerKey
from storefront.utils.errors import NotFoundError, ValidationError
from storefront.utils.transaction import atomic

logger = logging.getLogger(__name__)

INVALID_SELECTION = "Invalid color or size selection for this product"


def get_cart(db: Session, owner: OwnerKey) -> Optional[Cart]:
    return db.query(Cart).filter(Cart.owner_key == owner.value).first()


def get_or_create_cart(db: Session, owner: OwnerKey) -> Cart:
    """Return the owner's cart, creating it on first access.

    The unique ``owner_key`` decides races: when a concurrent request inserts
    first, our savepoint is rolled back and the winner's row is read instead.
    Does not commit; callers own the surrounding transaction.
    """
    cart = get_cart(db, owner)
    if cart:
        return cart
    try:
        with db.begin_nested():
            cart = Cart(owner_key=owner.value, user_id=owner.user_id)
            db.add(cart)
            db.flush()
        logger.info("Created cart %s for %s", cart.id, "user %s" % owner.user_id if owner.is_authenticated else "guest")
        return cart
    except IntegrityError:
        logger.info("Cart for owner created concurrently; re-reading")
        return db.query(Cart).filter(Cart.owner_key == owner.value).one()


def lock_cart(db: Session, cart: Cart) -> Cart:
    return db.query(Cart).filter(Cart.id == cart.id).with_for_update().one()


def _check_selection(db: Session, product_id: int, color_id: int, size_id: int) -> None:
    color = (
        db.query(ProductColor.id)
        .filter(ProductColor.id == color_id, ProductColor.product_id == product_id)
        .first()
    )
    size = (
        db.query(ProductSize.id)
        .filter(ProductSize.id == size_id, ProductSize.product_id == product_id)
        .first()
    )
    if not color or not size:
        raise ValidationError(INVALID_SELECTION)


def _line_query(db: Session, cart_id: int, product_id: int, color_id: int, size_id: int):
    return db.query(CartItem).filter(
        CartItem.cart_id == cart_id,
        CartItem.product_id == product_id,
        CartItem.color_id == color_id,
        CartItem.size_id == size_id,
    )


def _increment(db: Session, cart_id: int, product_id: int, color_id: int, size_id: int, quantity: int) -> int:
    return _line_query(db, cart_id, product_id, color_id, size_id).update(
        {CartItem.quantity: CartItem.quantity + quantity},
        synchronize_session=False,
    )


def upsert_line(db: Session, cart: Cart, product_id: int, color_id: int, size_id: int, quantity: int) -> None:
    """Add ``quantity`` to the (product, color, size) line, inserting it when absent.

    Runs inside the caller's transaction.
    """
    if _increment(db, cart.id, product_id, color_id, size_id, quantity):
        return
    try:
        with db.begin_nested():
            db.add(
                CartItem(
                    cart_id=cart.id,
                    product_id=product_id,
                    color_id=color_id,
                    size_id=size_id,
                    quantity=quantity,
                )
            )
            db.flush()
    except IntegrityError:
        # Either a concurrent add created the line first, or the variant vanished
        if not _increment(db, cart.id, product_id, color_id, size_id, quantity):
            raise ValidationError(INVALID_SELECTION)


def add_item(
    db: Session,
    owner: OwnerKey,
    product_id: int,
    color_id: int,
    size_id: int,
    quantity: int,
) -> None:
    if product_id is None or color_id is None or size_id is None:
        raise ValidationError("productId, colorId and sizeId are required")
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    with atomic(db, "add to cart"):
        cart = lock_cart(db, get_or_create_cart(db, owner))
        # Shared lock keeps a concurrent variant replacement from slipping in between check and insert
        product = db.query(Product).filter(Product.id == product_id).with_for_update(read=True).first()
        if not product:
            raise NotFoundError("Product not found")
        _check_selection(db, product_id, color_id, size_id)
        upsert_line(db, cart, product_id, color_id, size_id, quantity)

    logger.info("Added product %s (color %s, size %s) x%s to cart %s", product_id, color_id, size_id, quantity, cart.id)


def _owned_item(db: Session, owner: OwnerKey, item_id: int) -> CartItem:
    # Items in someone else's cart are reported exactly like missing ones
    item = (
        db.query(CartItem)
        .join(Cart, Cart.id == CartItem.cart_id)
        .filter(CartItem.id == item_id, Cart.owner_key == owner.value)
        .first()
    )
    if not item:
        raise NotFoundError("Cart item not found")
    return item


def update_quantity(db: Session, owner: OwnerKey, item_id: int, quantity: int) -> None:
    """Set a line's quantity; zero or less removes the line."""
    with atomic(db, "update cart item"):
        item = _owned_item(db, owner, item_id)
        if quantity is None or quantity <= 0:
            db.delete(item)
        else:
            item.quantity = quantity


def remove_item(db: Session, owner: OwnerKey, item_id: int) -> None:
    with atomic(db, "remove cart item"):
        db.delete(_owned_item(db, owner, item_id))


def clear_cart(db: Session, cart: Cart) -> int:
    """Delete every line of ``cart`` inside the caller's transaction."""
    removed = db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
    db.expire(cart, ["items"])
    return removed


def list_with_totals(db: Session, cart: Cart) -> dict:
    """Lines with prices read fresh from the catalog; nothing here is cached."""
    items = (
        db.query(CartItem)
        .filter(CartItem.cart_id == cart.id)
        .order_by(CartItem.id.asc())
        .all()
    )
    lines = []
    subtotal = Decimal("0.00")
    count = 0
    for i in items:
        unit_price = Decimal(i.product.unit_price)
        line_total = unit_price * i.quantity
        subtotal += line_total
        count += i.quantity
        lines.append(
            {
                "id": i.id,
                "productId": i.product_id,
                "name": i.product.name,
                "image": i.product.image,
                "colorId": i.color_id,
                "colorName": i.color.name if i.color else None,
                "sizeId": i.size_id,
                "sizeName": i.size.name if i.size else None,
                "quantity": i.quantity,
                "unitPrice": unit_price,
                "lineTotal": line_total,
            }
        )
    return {"items": lines, "subtotal": subtotal, "count": count}


def merge_anonymous_cart(db: Session, anonymous_token: str, user_id: int) -> int:
    """Move a guest cart's lines into the user's cart and empty the guest cart.

    Quantities of matching (product, color, size) lines are summed. Returns
    the number of lines merged.
    """
    source = get_cart(db, OwnerKey(anonymous_token=anonymous_token))
    if not source:
        return 0
    lines = db.query(CartItem).filter(CartItem.cart_id == source.id).order_by(CartItem.id.asc()).all()
    if not lines:
        return 0

    with atomic(db, "merge guest cart"):
        target = lock_cart(db, get_or_create_cart(db, OwnerKey(user_id=user_id)))
        merged = 0
        for line in lines:
            product_id, color_id, size_id, quantity = line.product_id, line.color_id, line.size_id, line.quantity
            db.delete(line)
            db.flush()
            try:
                upsert_line(db, target, product_id, color_id, size_id, quantity)
            except ValidationError:
                logger.warning("Dropped guest cart line for product %s: variant no longer offered", product_id)
                continue
            merged += 1
        db.expire(source, ["items"])

    logger.info("Merged %s guest cart lines into cart %s for user %s", merged, target.id, user_id)
    return merged
