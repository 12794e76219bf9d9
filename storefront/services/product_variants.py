"""Product create/replace/delete as single units of work.

A product's colors, sizes and attribute links form one aggregate with its
scalar fields. Edits never diff the collections: they are dropped and
rewritten inside the same transaction as the scalar update, so a failure at
any step leaves the product exactly as it was. Cart lines are carried over
to the rewritten variants by color and size name.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from storefront.models.cart import CartItem
from storefront.models.order import OrderItem
from storefront.models.product import Category, Product, ProductColor, ProductSize, product_attributes
from storefront.schemas.product import ProductIn
from storefront.utils.errors import NotFoundError, ValidationError
from storefront.utils.transaction import atomic

logger = logging.getLogger(__name__)


def _fmt(value) -> str:
    d = Decimal(str(value))
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def validate_pricing(price, sale_price) -> None:
    if sale_price is None:
        return
    if Decimal(str(sale_price)) >= Decimal(str(price)):
        raise ValidationError(f"Sale price {_fmt(sale_price)} must be less than price {_fmt(price)}")


def _scalar_fields(payload: ProductIn) -> dict:
    return {
        "name": payload.name,
        "description": payload.description,
        "price": Decimal(str(payload.price)),
        "sale_price": Decimal(str(payload.salePrice)) if payload.salePrice is not None else None,
        "sku": payload.sku,
        "stock": payload.stock,
        "image": payload.image,
        "images": list(payload.images or []),
        "category_id": payload.categoryId,
    }


def _require_category(db: Session, category_id: int) -> None:
    if not db.query(Category.id).filter(Category.id == category_id).first():
        raise NotFoundError("Category not found")


def _cart_lines_by_variant_name(db: Session, product_id: int) -> list:
    """Cart lines of a product with the color and size names they point at."""
    return (
        db.query(
            CartItem.cart_id,
            CartItem.quantity,
            CartItem.created_at,
            ProductColor.name.label("color_name"),
            ProductSize.name.label("size_name"),
        )
        .join(ProductColor, ProductColor.id == CartItem.color_id)
        .join(ProductSize, ProductSize.id == CartItem.size_id)
        .filter(CartItem.product_id == product_id)
        .order_by(CartItem.id.asc())
        .all()
    )


def _ids_by_name(db: Session, model, product_id: int) -> dict:
    ids = {}
    for row in db.query(model.id, model.name).filter(model.product_id == product_id).order_by(model.id.asc()):
        ids.setdefault(row.name, row.id)
    return ids


def _repoint_cart_lines(db: Session, product_id: int, lines: list) -> int:
    """Re-add saved cart lines against the new variant rows; returns how many were dropped."""
    color_ids = _ids_by_name(db, ProductColor, product_id)
    size_ids = _ids_by_name(db, ProductSize, product_id)
    kept = {}
    dropped = 0
    for line in lines:
        color_id = color_ids.get(line.color_name)
        size_id = size_ids.get(line.size_name)
        if color_id is None or size_id is None:
            dropped += 1
            continue
        key = (line.cart_id, color_id, size_id)
        if key in kept:
            # two old rows shared a name; one line per variant
            kept[key].quantity += line.quantity
            continue
        kept[key] = CartItem(
            cart_id=line.cart_id,
            product_id=product_id,
            color_id=color_id,
            size_id=size_id,
            quantity=line.quantity,
            created_at=line.created_at,
        )
    db.add_all(kept.values())
    db.flush()
    return dropped


def replace_variant_aggregate(
    db: Session,
    product: Product,
    fields: dict,
    colors: Iterable[dict],
    sizes: Iterable[dict],
    attribute_ids: Iterable[int],
) -> Product:
    """Rewrite the product's scalar fields and variant collections.

    Must run inside the caller's transaction. Cart lines follow their color
    and size by name onto the new rows; a line whose color or size name is
    gone is removed.
    """
    pid = product.id
    lines = _cart_lines_by_variant_name(db, pid)

    # 1-3: drop the current aggregate
    db.query(CartItem).filter(CartItem.product_id == pid).delete(synchronize_session="fetch")
    db.query(ProductColor).filter(ProductColor.product_id == pid).delete(synchronize_session="fetch")
    db.query(ProductSize).filter(ProductSize.product_id == pid).delete(synchronize_session="fetch")
    db.execute(product_attributes.delete().where(product_attributes.c.product_id == pid))

    # 4: scalar fields
    for key, value in fields.items():
        setattr(product, key, value)
    db.flush()

    # 5-7: write the new aggregate
    db.add_all(
        ProductColor(product_id=pid, name=c["name"], value=c.get("value"), image=c.get("image"))
        for c in colors
    )
    db.add_all(ProductSize(product_id=pid, name=s["name"]) for s in sizes)
    db.flush()
    unique_ids = list(dict.fromkeys(attribute_ids or []))
    if unique_ids:
        db.execute(
            product_attributes.insert(),
            [{"product_id": pid, "attribute_id": aid} for aid in unique_ids],
        )

    if lines:
        dropped = _repoint_cart_lines(db, pid, lines)
        if dropped:
            logger.info("Product %s: removed %s cart line(s) whose variant no longer exists", pid, dropped)
    db.expire(product, ["colors", "sizes", "attributes"])
    return product


def _variant_dicts(payload: ProductIn):
    colors: List[dict] = [c.model_dump() for c in payload.colors]
    sizes: List[dict] = [s.model_dump() for s in payload.sizes]
    return colors, sizes, list(payload.attributes or [])


def create_product(db: Session, payload: ProductIn) -> Product:
    validate_pricing(payload.price, payload.salePrice)
    _require_category(db, payload.categoryId)
    fields = _scalar_fields(payload)
    colors, sizes, attribute_ids = _variant_dicts(payload)

    with atomic(db, "create product"):
        product = Product(**fields)
        db.add(product)
        db.flush()
        replace_variant_aggregate(db, product, {}, colors, sizes, attribute_ids)

    db.refresh(product)
    logger.info("Created product %s with %s colors, %s sizes", product.id, len(colors), len(sizes))
    return product


def replace_product(db: Session, product_id: int, payload: ProductIn) -> Product:
    validate_pricing(payload.price, payload.salePrice)
    if not db.query(Product.id).filter(Product.id == product_id).first():
        raise NotFoundError("Product not found")
    _require_category(db, payload.categoryId)
    fields = _scalar_fields(payload)
    colors, sizes, attribute_ids = _variant_dicts(payload)

    with atomic(db, "update product"):
        product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise NotFoundError("Product not found")
        replace_variant_aggregate(db, product, fields, colors, sizes, attribute_ids)

    db.refresh(product)
    logger.info("Replaced product %s: %s colors, %s sizes, %s attributes", product_id, len(colors), len(sizes), len(attribute_ids))
    return product


def delete_product(db: Session, product_id: int) -> None:
    with atomic(db, "delete product"):
        product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise NotFoundError("Product not found")
        db.query(CartItem).filter(CartItem.product_id == product_id).delete(synchronize_session=False)
        db.query(ProductColor).filter(ProductColor.product_id == product_id).delete(synchronize_session=False)
        db.query(ProductSize).filter(ProductSize.product_id == product_id).delete(synchronize_session=False)
        db.execute(product_attributes.delete().where(product_attributes.c.product_id == product_id))
        # Order history keeps its snapshot but loses the link
        db.query(OrderItem).filter(OrderItem.product_id == product_id).update(
            {OrderItem.product_id: None}, synchronize_session=False
        )
        db.query(Product).filter(Product.id == product_id).delete(synchronize_session=False)
        db.expunge(product)
    logger.info("Deleted product %s", product_id)


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()
