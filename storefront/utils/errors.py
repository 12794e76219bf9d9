"""Domain errors raised by the storefront services.

Every error carries a stable ``kind`` and the HTTP status it maps to, so the
routers never translate errors themselves; ``storefront.main`` installs one
handler for the whole hierarchy.
"""


class StorefrontError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class ValidationError(StorefrontError):
    """Missing or malformed input. Safe to retry once the input is fixed."""

    kind = "validation"
    status_code = 400


class NotFoundError(StorefrontError):
    """The entity does not exist or is not visible to the caller."""

    kind = "not_found"
    status_code = 404


class AuthorizationError(StorefrontError):
    """The caller is identified (or must be) but does not own the entity."""

    kind = "authorization"
    status_code = 401


class ForbiddenError(StorefrontError):
    kind = "forbidden"
    status_code = 403


class ConflictError(StorefrontError):
    kind = "conflict"
    status_code = 409


class TransactionFailedError(StorefrontError):
    """A persistence error inside an atomic block; nothing was written."""

    kind = "transaction_failed"
    status_code = 500
