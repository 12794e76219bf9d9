from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from storefront.models.user import Base


ORDER_STATUSES = ("PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED")
CANCELLABLE_STATUSES = ("PENDING", "PROCESSING")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # shipping address snapshot
    shipping_name = Column(String(255))
    shipping_phone = Column(String(50))
    shipping_address = Column(String(255))
    shipping_city = Column(String(100))
    shipping_district = Column(String(100))
    shipping_ward = Column(String(100))

    payment_type = Column(String(30))
    total_amount = Column(Numeric(12, 2), default=0)
    status = Column(String(20), default="PENDING", nullable=False)  # see ORDER_STATUSES

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Orders outlive products; the reference is cleared when a product is deleted
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String(255))
    color_name = Column(String(100))
    size_name = Column(String(50))
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # unit price at time of order

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
