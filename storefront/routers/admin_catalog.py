from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from storefront.models.product import Attribute, Category, Product, product_attributes
from storefront.models.user import User, get_db
from storefront.schemas.product import NameIn, NamedOut
from storefront.utils.errors import ConflictError, NotFoundError, ValidationError
from storefront.utils.security import require_admin
from storefront.utils.transaction import atomic

logger = logging.getLogger(__name__)

categories_router = APIRouter()
attributes_router = APIRouter()


def _create_named(db: Session, model, name: str, label: str):
    if db.query(model.id).filter(model.name == name).first():
        raise ValidationError(f"{label} '{name}' already exists")
    with atomic(db, f"create {label.lower()}"):
        row = model(name=name)
        db.add(row)
        db.flush()
    db.refresh(row)
    return row


# 40. List Categories (Admin)
@categories_router.get("/", response_model=List[NamedOut])
def list_categories(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    rows = db.query(Category).order_by(Category.name.asc()).all()
    return [NamedOut(id=c.id, name=c.name) for c in rows]


# 41. Create Category (Admin)
@categories_router.post("/", response_model=NamedOut, status_code=201)
def create_category(payload: NameIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    category = _create_named(db, Category, payload.name, "Category")
    return NamedOut(id=category.id, name=category.name)


# 42. Delete Category (Admin)
@categories_router.delete("/{id}")
def delete_category(id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with atomic(db, "delete category"):
        category = db.query(Category).filter(Category.id == id).first()
        if not category:
            raise NotFoundError("Category not found")
        in_use = db.query(Product.id).filter(Product.category_id == id).count()
        if in_use:
            raise ConflictError(f"Category is used by {in_use} product(s)")
        db.delete(category)
    logger.info("Deleted category %s", id)
    return {"success": True}


# 43. List Attributes (Admin)
@attributes_router.get("/", response_model=List[NamedOut])
def list_attributes(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    rows = db.query(Attribute).order_by(Attribute.name.asc()).all()
    return [NamedOut(id=a.id, name=a.name) for a in rows]


# 44. Create Attribute (Admin)
@attributes_router.post("/", response_model=NamedOut, status_code=201)
def create_attribute(payload: NameIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    attribute = _create_named(db, Attribute, payload.name, "Attribute")
    return NamedOut(id=attribute.id, name=attribute.name)


# 45. Delete Attribute (Admin)
@attributes_router.delete("/{id}")
def delete_attribute(id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with atomic(db, "delete attribute"):
        attribute = db.query(Attribute).filter(Attribute.id == id).first()
        if not attribute:
            raise NotFoundError("Attribute not found")
        # Products lose the tag; the products themselves stay
        db.execute(product_attributes.delete().where(product_attributes.c.attribute_id == id))
        db.delete(attribute)
    logger.info("Deleted attribute %s", id)
    return {"success": True}
