"""Request dependencies: store, services and the authenticated user."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from unison.core.config import settings
from unison.db.store import InMemoryUserStore, UserStore
from unison.schemas.user import UserRecord
from unison.services import IdentityResolver, PasswordManager, SessionGateway

# Security scheme for Bearer token
security = HTTPBearer(auto_error=False)


@lru_cache
def get_user_store() -> UserStore:
    """Process-wide store chosen by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "sql":
        from unison.db.sql_store import SqlUserStore

        return SqlUserStore()
    if settings.storage_backend == "memory":
        return InMemoryUserStore()

    from unison.db.json_store import JsonFileUserStore

    return JsonFileUserStore(settings.users_file)


def get_password_manager(store: UserStore = Depends(get_user_store)) -> PasswordManager:
    return PasswordManager(store)


def get_identity_resolver(
    store: UserStore = Depends(get_user_store),
    passwords: PasswordManager = Depends(get_password_manager),
) -> IdentityResolver:
    return IdentityResolver(store, passwords)


def get_session_gateway(store: UserStore = Depends(get_user_store)) -> SessionGateway:
    return SessionGateway(store)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gateway: SessionGateway = Depends(get_session_gateway),
) -> UserRecord:
    """Get current authenticated user from a Bearer access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    user = gateway.user_for_token(credentials.credentials)
    if user is None:
        raise credentials_exception
    return user
