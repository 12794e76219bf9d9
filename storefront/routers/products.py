from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.models.product import Product
from storefront.models.user import User, get_db
from storefront.schemas.product import ProductIn, ProductOut
from storefront.services import product_variants
from storefront.utils.errors import NotFoundError
from storefront.utils.security import require_admin

router = APIRouter()
admin_router = APIRouter()

# Helpers

def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def to_product_out(p: Product) -> ProductOut:
    return ProductOut(
        id=p.id,
        name=p.name,
        description=p.description,
        price=_money(p.price),
        salePrice=_money(p.sale_price),
        sku=p.sku,
        stock=p.stock or 0,
        image=p.image,
        images=p.images or [],
        categoryId=p.category_id,
        category={"id": p.category.id, "name": p.category.name} if p.category else None,
        colors=[{"id": c.id, "name": c.name, "value": c.value, "image": c.image} for c in p.colors],
        sizes=[{"id": s.id, "name": s.name} for s in p.sizes],
        attributes=[{"id": a.id, "name": a.name} for a in p.attributes],
    )

# 6. Get All Products (with filters)
@router.get("/", response_model=List[ProductOut])
def get_all_products(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    categoryId: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List products, newest first, with optional category and name search."""
    query = db.query(Product)
    if categoryId is not None:
        query = query.filter(Product.category_id == categoryId)
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    products = query.order_by(Product.created_at.desc(), Product.id.desc()).offset(page * size).limit(size).all()
    return [to_product_out(p) for p in products]


# 7. Get Product by ID
@router.get("/{id}", response_model=ProductOut)
def get_product_by_id(id: int, db: Session = Depends(get_db)):
    product = product_variants.get_product(db, id)
    if not product:
        raise NotFoundError("Product not found")
    return to_product_out(product)


# 10. Create Product (Admin)
@admin_router.post("/", response_model=ProductOut)
def create_product(payload: ProductIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return to_product_out(product_variants.create_product(db, payload))


# 11. Replace Product with its variants (Admin)
@admin_router.put("/{id}", response_model=ProductOut)
def update_product(id: int, payload: ProductIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return to_product_out(product_variants.replace_product(db, id, payload))


# 12. Delete Product (Admin)
@admin_router.delete("/{id}")
def delete_product(id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    product_variants.delete_product(db, id)
    return {"success": True}
