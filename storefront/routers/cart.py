from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from typing import Optional

from storefront.config import get_settings
from storefront.models.user import get_db
from storefront.schemas.cart import CartItemIn, CartItemUpdate, CartOut, CartItemOut
from storefront.services import cart_store
from storefront.services.identity import OwnerKey, resolve_for_request
from storefront.utils.security import (
    get_optional_user_id,
    set_anonymous_cart_cookie,
    clear_anonymous_cart_cookie,
)
from storefront.utils.transaction import atomic


router = APIRouter()


def get_cart_owner(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_optional_user_id),
) -> OwnerKey:
    token = request.cookies.get(get_settings().ANON_CART_COOKIE)
    if user_id is not None and token:
        # Guest lines follow the shopper into their account; the cookie is spent
        cart_store.merge_anonymous_cart(db, token, user_id)
        clear_anonymous_cart_cookie(response)
    resolved = resolve_for_request(request.state, user_id, token)
    if resolved.minted_token:
        set_anonymous_cart_cookie(response, resolved.minted_token)
    return resolved.owner


def _serialize_cart(data: dict) -> CartOut:
    return CartOut(
        items=[
            CartItemOut(**{**line, "unitPrice": float(line["unitPrice"]), "lineTotal": float(line["lineTotal"])})
            for line in data["items"]
        ],
        subtotal=float(data["subtotal"]),
        count=data["count"],
    )


# 20. Get Cart
@router.get("/", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), owner: OwnerKey = Depends(get_cart_owner)):
    with atomic(db, "load cart"):
        cart = cart_store.get_or_create_cart(db, owner)
    return _serialize_cart(cart_store.list_with_totals(db, cart))


# 21. Add Cart Item
@router.post("/")
def add_cart_item(payload: CartItemIn, db: Session = Depends(get_db), owner: OwnerKey = Depends(get_cart_owner)):
    cart_store.add_item(db, owner, payload.productId, payload.colorId, payload.sizeId, payload.quantity)
    return {"success": True}


# 22. Update Cart Item Quantity
@router.put("/items/{item_id}")
def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    db: Session = Depends(get_db),
    owner: OwnerKey = Depends(get_cart_owner),
):
    cart_store.update_quantity(db, owner, item_id, payload.quantity)
    return {"success": True}


# 23. Remove Cart Item
@router.delete("/items/{item_id}")
def remove_cart_item(item_id: int, db: Session = Depends(get_db), owner: OwnerKey = Depends(get_cart_owner)):
    cart_store.remove_item(db, owner, item_id)
    return {"success": True}
