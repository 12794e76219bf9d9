from pydantic import BaseModel
from typing import List, Optional, Literal


OrderStatus = Literal["PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED"]


class CheckoutIn(BaseModel):
    addressId: Optional[int] = None
    paymentId: Optional[int] = None


class ShippingAddress(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    ward: Optional[str] = None


class OrderItemOut(BaseModel):
    id: int
    productId: Optional[int] = None
    name: Optional[str] = None
    colorName: Optional[str] = None
    sizeName: Optional[str] = None
    quantity: int
    price: float


class OrderOut(BaseModel):
    id: int
    items: List[OrderItemOut]
    shippingAddress: ShippingAddress
    paymentType: Optional[str] = None
    totalAmount: float
    status: OrderStatus
    createdAt: str
    updatedAt: str


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


class ReorderLine(BaseModel):
    productId: Optional[int] = None
    quantity: int


class SkippedLine(BaseModel):
    productId: Optional[int] = None
    name: Optional[str] = None
    reason: str


class ReorderOut(BaseModel):
    cartId: int
    added: List[ReorderLine]
    skipped: List[SkippedLine]
