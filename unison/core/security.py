"""Password hashing and JWT token utilities."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from unison.core.config import settings
from unison.core.constants import BCRYPT_ROUNDS

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS
)

# Verified against when a user has no hash, keeping failures uniform in cost
_DUMMY_HASH = pwd_context.hash("unison-dummy-password")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash.

    A missing or malformed hash is a failed match, checked against a dummy
    digest so the call costs the same as a real comparison.
    """
    if not hashed_password:
        pwd_context.verify(plain_password, _DUMMY_HASH)
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def _create_token(data: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update(
        {"exp": datetime.now(timezone.utc) + expires_delta, "type": token_type}
    )
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    return _create_token(
        data,
        "access",
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def create_refresh_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT refresh token."""
    return _create_token(
        data,
        "refresh",
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days),
    )


def create_session_payload_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Signed user payload handed to the frontend after an OAuth login."""
    return _create_token(
        data,
        "session",
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token of the given type."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != token_type:
        return None
    return payload


def get_token_expire_time() -> int:
    """Get access token expire time in seconds."""
    return settings.jwt_access_token_expire_minutes * 60
