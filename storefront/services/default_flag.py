"""Exactly-one-default bookkeeping for per-user collections.

Addresses and payment methods share the same rule: an owner with at least one
item has exactly one default, an owner with none has zero. The first item an
owner creates is always the default, making another item the default clears
the previous one in the same transaction, and deleting the default promotes
the oldest remaining item.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from storefront.models.address import Address
from storefront.models.payment import Payment
from storefront.models.user import User
from storefront.utils.errors import NotFoundError
from storefront.utils.transaction import atomic

logger = logging.getLogger(__name__)


class DefaultFlagManager:
    def __init__(self, model, owner_attr: str = "user_id", label: Optional[str] = None):
        self.model = model
        self.owner_attr = owner_attr
        self.label = label or model.__name__

    @property
    def _owner_column(self):
        return getattr(self.model, self.owner_attr)

    def _owned(self, db: Session, owner_id: int):
        return db.query(self.model).filter(self._owner_column == owner_id)

    def _lock_owner(self, db: Session, owner_id: int) -> None:
        # Serializes default changes per owner on databases with row locks
        db.query(User.id).filter(User.id == owner_id).with_for_update().first()

    def _clear_default(self, db: Session, owner_id: int) -> None:
        self._owned(db, owner_id).filter(self.model.is_default.is_(True)).update(
            {self.model.is_default: False}, synchronize_session="fetch"
        )

    def list(self, db: Session, owner_id: int):
        return self._owned(db, owner_id).order_by(self.model.is_default.desc(), self.model.created_at.desc()).all()

    def get(self, db: Session, owner_id: int, item_id: int):
        item = self._owned(db, owner_id).filter(self.model.id == item_id).first()
        if not item:
            raise NotFoundError(f"{self.label} not found")
        return item

    def get_default(self, db: Session, owner_id: int):
        return self._owned(db, owner_id).filter(self.model.is_default.is_(True)).first()

    def count_defaults(self, db: Session, owner_id: int) -> int:
        return self._owned(db, owner_id).filter(self.model.is_default.is_(True)).count()

    def create(self, db: Session, owner_id: int, data: dict, requested_default: bool = False):
        with atomic(db, f"create {self.label.lower()}"):
            self._lock_owner(db, owner_id)
            existing = self._owned(db, owner_id).count()
            if existing == 0:
                make_default = True
            else:
                make_default = bool(requested_default)
                if make_default:
                    self._clear_default(db, owner_id)
            item = self.model(**data, is_default=make_default)
            setattr(item, self.owner_attr, owner_id)
            db.add(item)
            db.flush()
        db.refresh(item)
        logger.info("Created %s %s for user %s (default=%s)", self.label.lower(), item.id, owner_id, item.is_default)
        return item

    def update(self, db: Session, owner_id: int, item_id: int, data: dict, requested_default: Optional[bool] = None):
        """Apply ``data`` and, when asked, make the item the default.

        A false or missing ``requested_default`` never touches the flag: the
        only way to move the default is to set it on another item.
        """
        with atomic(db, f"update {self.label.lower()}"):
            self._lock_owner(db, owner_id)
            item = self.get(db, owner_id, item_id)
            for key, value in data.items():
                setattr(item, key, value)
            if requested_default and not item.is_default:
                self._clear_default(db, owner_id)
                item.is_default = True
            db.flush()
        db.refresh(item)
        return item

    def set_default(self, db: Session, owner_id: int, item_id: int):
        return self.update(db, owner_id, item_id, {}, requested_default=True)

    def delete(self, db: Session, owner_id: int, item_id: int) -> None:
        with atomic(db, f"delete {self.label.lower()}"):
            self._lock_owner(db, owner_id)
            item = self.get(db, owner_id, item_id)
            was_default = bool(item.is_default)
            db.delete(item)
            db.flush()
            if was_default:
                successor = (
                    self._owned(db, owner_id)
                    .order_by(self.model.created_at.asc(), self.model.id.asc())
                    .first()
                )
                if successor:
                    successor.is_default = True
                    db.flush()
                    logger.info("Promoted %s %s to default for user %s", self.label.lower(), successor.id, owner_id)


addresses = DefaultFlagManager(Address, label="Address")
payment_methods = DefaultFlagManager(Payment, label="Payment method")
