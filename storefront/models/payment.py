from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime
from datetime import datetime
from storefront.models.user import Base


class Payment(Base):
    """Stored payment method. Card and bank fields are kept as entered, never verified."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # credit_card, bank_transfer
    card_number = Column(String(30))
    card_holder = Column(String(255))
    expiry_date = Column(String(10))
    bank_name = Column(String(255))
    account_number = Column(String(50))
    account_holder = Column(String(255))
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
