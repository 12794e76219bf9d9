from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from storefront.models.user import get_db
from storefront.models.payment import Payment
from storefront.schemas.payment import PaymentOut, PaymentCreate, PaymentUpdate
from storefront.services.default_flag import payment_methods
from storefront.utils.security import get_current_user_id


router = APIRouter()


def _to_out(p: Payment) -> PaymentOut:
    return PaymentOut(
        id=p.id,
        type=p.type,
        cardNumber=p.card_number,
        cardHolder=p.card_holder,
        expiryDate=p.expiry_date,
        bankName=p.bank_name,
        accountNumber=p.account_number,
        accountHolder=p.account_holder,
        isDefault=p.is_default,
    )


def _columns(payload) -> dict:
    # Fields of the other payment type are cleared, not kept from a previous version
    if payload.type == "credit_card":
        return {
            "type": payload.type,
            "card_number": payload.cardNumber,
            "card_holder": payload.cardHolder,
            "expiry_date": payload.expiryDate,
            "bank_name": None,
            "account_number": None,
            "account_holder": None,
        }
    return {
        "type": payload.type,
        "card_number": None,
        "card_holder": None,
        "expiry_date": None,
        "bank_name": payload.bankName,
        "account_number": payload.accountNumber,
        "account_holder": payload.accountHolder,
    }


# 33. Get Payment Methods
@router.get("/", response_model=List[PaymentOut])
def get_payment_methods(db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return [_to_out(p) for p in payment_methods.list(db, user_id)]


# 34. Create Payment Method
@router.post("/", response_model=PaymentOut)
def create_payment_method(payload: PaymentCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    payment = payment_methods.create(db, user_id, _columns(payload), requested_default=payload.isDefault)
    return _to_out(payment)


# 35. Get Payment Method
@router.get("/{id}", response_model=PaymentOut)
def get_payment_method(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return _to_out(payment_methods.get(db, user_id, id))


# 36. Update Payment Method
@router.put("/{id}", response_model=PaymentOut)
def update_payment_method(
    id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    payment = payment_methods.update(db, user_id, id, _columns(payload), requested_default=payload.isDefault)
    return _to_out(payment)


# 37. Set Default Payment Method
@router.put("/{id}/default", response_model=PaymentOut)
def set_default_payment_method(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return _to_out(payment_methods.set_default(db, user_id, id))


# 38. Delete Payment Method
@router.delete("/{id}")
def delete_payment_method(id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    payment_methods.delete(db, user_id, id)
    return {"success": True}
