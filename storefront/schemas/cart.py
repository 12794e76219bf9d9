from pydantic import BaseModel, Field
from typing import List, Optional


class CartItemIn(BaseModel):
    productId: int
    colorId: int
    sizeId: int
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    # zero or negative removes the line
    quantity: int


class CartItemOut(BaseModel):
    id: int
    productId: int
    name: str
    image: Optional[str] = None
    colorId: int
    colorName: Optional[str] = None
    sizeId: int
    sizeName: Optional[str] = None
    quantity: int
    unitPrice: float
    lineTotal: float


class CartOut(BaseModel):
    items: List[CartItemOut]
    subtotal: float
    count: int
