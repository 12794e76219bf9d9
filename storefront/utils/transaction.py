import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.utils.errors import StorefrontError, TransactionFailedError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, label: str = "transaction") -> Iterator[Session]:
    """Run a block of statements as one unit of work.

    Commits when the block finishes. Any exception rolls the whole block back;
    domain errors propagate unchanged, persistence errors are reported as
    ``TransactionFailedError`` so callers never see a half-applied write.
    """
    try:
        yield db
        db.commit()
    except StorefrontError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s rolled back: %s", label, e, exc_info=True)
        raise TransactionFailedError(f"{label} failed; no changes were applied") from e
    except Exception:
        db.rollback()
        raise
