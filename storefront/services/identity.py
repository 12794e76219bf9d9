"""Cart owner resolution.

A request may carry an authenticated user id, an anonymous cart token, both,
or neither. Exactly one owner key comes out: the user id whenever there is
one, otherwise the anonymous token, minting a fresh token when the guest has
none yet. Persisting a minted token is the caller's job.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

USER_PREFIX = "user:"
ANON_PREFIX = "anon:"


@dataclass(frozen=True)
class OwnerKey:
    user_id: Optional[int] = None
    anonymous_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def value(self) -> str:
        if self.user_id is not None:
            return f"{USER_PREFIX}{self.user_id}"
        return f"{ANON_PREFIX}{self.anonymous_token}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ResolvedOwner:
    owner: OwnerKey
    # Set only when a new anonymous token was created during resolution
    minted_token: Optional[str] = None


def mint_anonymous_token() -> str:
    return secrets.token_urlsafe(32)


def resolve_owner(user_id: Optional[int], anonymous_token: Optional[str]) -> ResolvedOwner:
    if user_id is not None:
        return ResolvedOwner(owner=OwnerKey(user_id=user_id))

    token = (anonymous_token or "").strip()
    if token:
        return ResolvedOwner(owner=OwnerKey(anonymous_token=token))

    token = mint_anonymous_token()
    logger.info("Minted anonymous cart token")
    return ResolvedOwner(owner=OwnerKey(anonymous_token=token), minted_token=token)


def resolve_for_request(state, user_id: Optional[int], anonymous_token: Optional[str]) -> ResolvedOwner:
    """Resolve once per request; later calls reuse the first result.

    ``state`` is any attribute bag scoped to the request (``request.state``).
    """
    cached = getattr(state, "cart_owner", None)
    if cached is not None:
        return cached
    resolved = resolve_owner(user_id, anonymous_token)
    state.cart_owner = resolved
    return resolved
