"""
Password hashing, JWT issuance and the authentication dependencies.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger
from eventhub.db.session import get_store
from eventhub.db.store import RegistrationStore
from eventhub.models.user import User
from eventhub.services.access_policy import is_organizer

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role.value,
        "iss": settings.JWT_ISSUER,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    """
    Decode and validate a token.
    Raises jwt.InvalidTokenError (or a subclass such as ExpiredSignatureError).
    """
    settings = get_settings()
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        issuer=settings.JWT_ISSUER,
        options={"verify_exp": verify_exp, "require": ["sub", "exp"]},
    )


def token_expires_in() -> str:
    minutes = get_settings().ACCESS_TOKEN_EXPIRE_MINUTES
    if minutes % 60 == 0:
        return f"{minutes // 60}h"
    return f"{minutes}m"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(token: str, store: RegistrationStore) -> User:
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user = store.get_user_by_id(payload["sub"])
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("User account is inactive")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: RegistrationStore = Depends(get_store),
) -> User:
    """Resolve the bearer token to a live, active user. Raises 401 otherwise."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    return _resolve_user(credentials.credentials, store)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: RegistrationStore = Depends(get_store),
) -> Optional[User]:
    """Like get_current_user, but anonymous or bad tokens yield None."""
    if credentials is None:
        return None
    try:
        return _resolve_user(credentials.credentials, store)
    except HTTPException:
        return None


async def require_organizer(user: User = Depends(get_current_user)) -> User:
    if not is_organizer(user):
        logger.warning("access_denied", user_id=user.id, reason="organizer_required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organizer privileges required",
        )
    return user
