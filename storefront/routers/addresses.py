from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from storefront.models.user import get_db
from storefront.models.address import Address
from storefront.schemas.address import AddressOut, AddressCreate, AddressUpdate
from storefront.services.default_flag import addresses
from storefront.utils.security import get_current_user_id


router = APIRouter()


def _to_out(a: Address) -> AddressOut:
    return AddressOut(
        id=a.id,
        fullName=a.full_name,
        phone=a.phone,
        address=a.address,
        city=a.city,
        district=a.district,
        ward=a.ward,
        isDefault=a.is_default,
    )


def _columns(payload) -> dict:
    return {
        "full_name": payload.fullName,
        "phone": payload.phone,
        "address": payload.address,
        "city": payload.city,
        "district": payload.district,
        "ward": payload.ward,
    }


# 27. Get User Addresses
@router.get("/", response_model=List[AddressOut])
def get_user_addresses(db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return [_to_out(a) for a in addresses.list(db, user_id)]


# 28. Create Address
@router.post("/", response_model=AddressOut)
def create_address(payload: AddressCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    address = addresses.create(db, user_id, _columns(payload), requested_default=payload.isDefault)
    return _to_out(address)


# 29. Get Address
@router.get("/{id}", response_model=AddressOut)
def get_address(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return _to_out(addresses.get(db, user_id, id))


# 30. Update Address
@router.put("/{id}", response_model=AddressOut)
def update_address(
    id: int,
    payload: AddressUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    address = addresses.update(db, user_id, id, _columns(payload), requested_default=payload.isDefault)
    return _to_out(address)


# 31. Set Default Address
@router.put("/{id}/default", response_model=AddressOut)
def set_default_address(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return _to_out(addresses.set_default(db, user_id, id))


# 32. Delete Address
@router.delete("/{id}")
def delete_address(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    addresses.delete(db, user_id, id)
    return {"success": True}
