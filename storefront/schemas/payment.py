from pydantic import BaseModel, Field, model_validator
from typing import Literal, Optional

PaymentType = Literal["credit_card", "bank_transfer"]

REQUIRED_FIELDS = {
    "credit_card": (("cardNumber", "cardHolder", "expiryDate"), "Card information is incomplete"),
    "bank_transfer": (("bankName", "accountNumber"), "Bank information is incomplete"),
}


class PaymentBase(BaseModel):
    type: PaymentType
    cardNumber: Optional[str] = None
    cardHolder: Optional[str] = None
    expiryDate: Optional[str] = None
    bankName: Optional[str] = None
    accountNumber: Optional[str] = None
    accountHolder: Optional[str] = None

    @model_validator(mode="after")
    def check_type_fields(self):
        fields, message = REQUIRED_FIELDS[self.type]
        if any(not (getattr(self, f) or "").strip() for f in fields):
            raise ValueError(message)
        return self


class PaymentCreate(PaymentBase):
    isDefault: bool = Field(default=False)


class PaymentUpdate(PaymentBase):
    isDefault: Optional[bool] = None


class PaymentOut(BaseModel):
    id: int
    type: PaymentType
    cardNumber: Optional[str] = None
    cardHolder: Optional[str] = None
    expiryDate: Optional[str] = None
    bankName: Optional[str] = None
    accountNumber: Optional[str] = None
    accountHolder: Optional[str] = None
    isDefault: bool
