from pydantic import BaseModel, Field, StringConstraints
from typing import Annotated, Optional

Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class AddressBase(BaseModel):
    fullName: Required
    phone: Required
    address: Required
    city: Required
    district: Required
    ward: Required


class AddressCreate(AddressBase):
    isDefault: bool = Field(default=False)


class AddressUpdate(AddressBase):
    isDefault: Optional[bool] = None


class AddressOut(AddressBase):
    id: int
    isDefault: bool
