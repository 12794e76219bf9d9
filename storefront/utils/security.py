from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import Depends, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from storefront.config import get_settings
from storefront.models.user import User, get_db
from storefront.utils.errors import AuthorizationError, ForbiddenError

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


# ===== JWT helpers =====
def create_access_token(subject, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    jti = uuid.uuid4().hex
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": str(subject), "exp": expire, "iat": now, "nbf": now, "jti": jti}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_user_id(token: str) -> int:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthorizationError("Invalid or expired token")
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise AuthorizationError("Invalid token payload")
    return int(sub)


def get_optional_user_id(
    token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    db: Session = Depends(get_db),
) -> Optional[int]:
    """Authenticated user id, or None for guests. A token that is present but bad is rejected."""
    if not token or not token.credentials:
        return None
    user_id = decode_user_id(token.credentials)
    if not db.query(User.id).filter(User.id == user_id).first():
        raise AuthorizationError("Invalid user")
    return user_id


def get_current_user_id(user_id: Optional[int] = Depends(get_optional_user_id)) -> int:
    if user_id is None:
        raise AuthorizationError("Not authenticated")
    return user_id


def require_admin(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user or (user.role or "").upper() != "ADMIN":
        raise ForbiddenError("Admin access required")
    return user


# ===== Anonymous cart cookie =====
def set_anonymous_cart_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.ANON_CART_COOKIE,
        value=token,
        max_age=settings.ANON_CART_TTL_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_anonymous_cart_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.ANON_CART_COOKIE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
