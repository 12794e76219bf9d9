from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import math

from storefront.models.user import get_db
from storefront.models.order import Order
from storefront.schemas.order import (
    CheckoutIn,
    OrderOut,
    OrderItemOut,
    OrderListOut,
    ReorderOut,
)
from storefront.services import checkout as checkout_service
from storefront.services.reorder import reorder
from storefront.utils.security import get_current_user_id


router = APIRouter()


def map_order_to_out(order: Order) -> OrderOut:
    shipping = {
        "name": order.shipping_name,
        "phone": order.shipping_phone,
        "address": order.shipping_address,
        "city": order.shipping_city,
        "district": order.shipping_district,
        "ward": order.shipping_ward,
    }
    items = [
        OrderItemOut(
            id=i.id,
            productId=i.product_id,
            name=i.product_name,
            colorName=i.color_name,
            sizeName=i.size_name,
            quantity=i.quantity,
            price=float(i.price),
        )
        for i in order.items
    ]
    return OrderOut(
        id=order.id,
        items=items,
        shippingAddress=shipping,  # type: ignore
        paymentType=order.payment_type,
        totalAmount=float(order.total_amount or 0),
        status=order.status,  # type: ignore
        createdAt=order.created_at.isoformat(),
        updatedAt=order.updated_at.isoformat(),
    )


# 14. Checkout (create order from cart)
@router.post("/", response_model=OrderOut)
def create_order(
    payload: Optional[CheckoutIn] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    payload = payload or CheckoutIn()
    order = checkout_service.checkout(db, user_id, address_id=payload.addressId, payment_id=payload.paymentId)
    return map_order_to_out(order)


# 15. Get User Orders
@router.get("/", response_model=OrderListOut)
def get_user_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    orders, total = checkout_service.list_orders(db, user_id, page=page, limit=limit, status=status)
    return {
        "orders": [map_order_to_out(o) for o in orders],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }


# 16. Get Order by ID
@router.get("/{id}", response_model=OrderOut)
def get_order_by_id(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return map_order_to_out(checkout_service.get_order(db, id, user_id))


# 17. Reorder
@router.post("/{id}/reorder", response_model=ReorderOut)
def reorder_order(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return reorder(db, id, user_id).to_dict()


# 18. Cancel Order
@router.post("/{id}/cancel", response_model=OrderOut)
def cancel_order(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return map_order_to_out(checkout_service.cancel_order(db, id, user_id))
