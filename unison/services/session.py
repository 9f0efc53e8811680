"""
Session gateway: turns a resolved identity into tokens or a login redirect.

Only ``id``, ``email`` and ``username`` ever leave the service in a token;
password hashes and reset codes are never embedded.
"""

from typing import Optional
from urllib.parse import urlencode

from unison.core.config import settings
from unison.core.security import (
    create_access_token,
    create_refresh_token,
    create_session_payload_token,
    get_token_expire_time,
    verify_token,
)
from unison.db.store import UserStore, find_by_id
from unison.schemas.auth import TokenResponse, UserSummary
from unison.schemas.user import UserRecord


class SessionGateway:
    """Mints and checks session tokens for resolved users."""

    def __init__(self, store: UserStore, frontend_url: Optional[str] = None) -> None:
        self.store = store
        self.frontend_url = frontend_url or settings.frontend_url

    def issue(self, user: UserRecord) -> TokenResponse:
        claims = {"sub": user.id}
        return TokenResponse(
            user=UserSummary(**user.summary()),
            access_token=create_access_token(claims),
            refresh_token=create_refresh_token(claims),
            expires_in=get_token_expire_time(),
        )

    def user_for_token(self, token: str, token_type: str = "access") -> Optional[UserRecord]:
        """User named by a valid token, or ``None``."""
        payload = verify_token(token, token_type=token_type)
        if not payload or not payload.get("sub"):
            return None
        return find_by_id(self.store.load(), payload["sub"])

    def refresh(self, refresh_token: str) -> Optional[TokenResponse]:
        user = self.user_for_token(refresh_token, token_type="refresh")
        if user is None:
            return None
        return self.issue(user)

    def redirect_url(self, user: UserRecord) -> str:
        """Frontend URL carrying the signed minimal user payload."""
        payload = {"sub": user.id, "email": user.email, "username": user.username}
        token = create_session_payload_token(payload)
        base = self.frontend_url.rstrip("/")
        return f"{base}/auth/callback?{urlencode({'session': token})}"
