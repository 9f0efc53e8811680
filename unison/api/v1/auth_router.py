"""
Authentication router: registration, email/phone login, password reset,
OAuth2 login and token refresh.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.responses import RedirectResponse

import unison.schemas.auth as auth_schemas
from unison.api.deps import (
    get_current_user,
    get_identity_resolver,
    get_password_manager,
    get_session_gateway,
)
from unison.core.config import settings
from unison.core.constants import PASSWORD_RESET_MESSAGE, SUPPORTED_PROVIDERS
from unison.core.errors import ProviderNotConfigured, ValidationError
from unison.core.oauth import fetch_provider_profile, oauth
from unison.core.unison_logger import UnisonLogger
from unison.schemas.user import UserRecord
from unison.services import IdentityResolver, PasswordManager, SessionGateway

router = APIRouter(prefix="/auth", tags=["authentication"])


def _require_provider(provider: str) -> str:
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider: {provider}",
        )
    if not settings.provider_configured(provider):
        raise ProviderNotConfigured(f"{provider} login is not configured")
    return provider


@router.post(
    "/register",
    response_model=auth_schemas.UserResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: auth_schemas.RegisterRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    """Register a new user with email and password."""
    user = resolver.register(body.email, body.password, body.username, body.phone)
    return auth_schemas.UserResponse(user=auth_schemas.UserSummary(**user.summary()))


@router.post(
    "/login",
    response_model=auth_schemas.TokenResponse,
    response_model_exclude_none=True,
)
def login(
    body: auth_schemas.EmailLoginRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    gateway: SessionGateway = Depends(get_session_gateway),
):
    """Login with email and password."""
    if not (body.email or "").strip() or not body.password:
        raise ValidationError("Email and password required")
    user = resolver.resolve_password(body.email, body.password)
    return gateway.issue(user)


@router.post(
    "/login/phone",
    response_model=auth_schemas.TokenResponse,
    response_model_exclude_none=True,
)
def login_phone(
    body: auth_schemas.PhoneLoginRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    gateway: SessionGateway = Depends(get_session_gateway),
):
    """Login with phone number and password."""
    if not (body.phone or "").strip() or not body.password:
        raise ValidationError("Phone and password required")
    user = resolver.resolve_phone(body.phone, body.password)
    return gateway.issue(user)


@router.post(
    "/forgot-password",
    response_model=auth_schemas.ForgotPasswordResponse,
    response_model_exclude_none=True,
)
def forgot_password(
    body: auth_schemas.ForgotPasswordRequest,
    passwords: PasswordManager = Depends(get_password_manager),
):
    """Request a reset code. The response is the same for unknown emails."""
    outcome = passwords.issue_reset_code(body.email)
    return auth_schemas.ForgotPasswordResponse(message=outcome.message, code=outcome.code)


@router.post("/reset-password", response_model=auth_schemas.AcknowledgeResponse)
def reset_password(
    body: auth_schemas.ResetPasswordRequest,
    passwords: PasswordManager = Depends(get_password_manager),
):
    """Set a new password with a reset code."""
    passwords.consume_reset_code(body.email, body.code, body.new_password)
    return auth_schemas.AcknowledgeResponse(message=PASSWORD_RESET_MESSAGE)


@router.post(
    "/refresh",
    response_model=auth_schemas.TokenResponse,
    response_model_exclude_none=True,
)
def refresh_token(
    refresh_request: auth_schemas.RefreshTokenRequest,
    gateway: SessionGateway = Depends(get_session_gateway),
):
    """Refresh access token using refresh token."""
    tokens = gateway.refresh(refresh_request.refresh_token)
    if tokens is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return tokens


@router.get(
    "/me",
    response_model=auth_schemas.UserResponse,
    response_model_exclude_none=True,
)
def me(current_user: UserRecord = Depends(get_current_user)):
    """Return the authenticated user."""
    return auth_schemas.UserResponse(user=auth_schemas.UserSummary(**current_user.summary()))


@router.get("/{provider}/login")
async def oauth_login(provider: str, request: Request):
    """Initiate an OAuth2 login with the provider."""
    _require_provider(provider)
    redirect_uri = request.url_for("oauth_callback", provider=provider)
    return await oauth.create_client(provider).authorize_redirect(request, str(redirect_uri))


@router.get("/{provider}/callback", name="oauth_callback")
async def oauth_callback(
    provider: str,
    request: Request,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    gateway: SessionGateway = Depends(get_session_gateway),
):
    """Handle the provider callback and hand the session to the frontend."""
    _require_provider(provider)
    profile = await fetch_provider_profile(provider, request)
    user = await run_in_threadpool(
        resolver.resolve_provider,
        profile.provider,
        profile.provider_id,
        profile.email,
        profile.display_name,
    )
    UnisonLogger.info(f"{provider} login resolved to user {user.id}")
    return RedirectResponse(gateway.redirect_url(user), status_code=status.HTTP_302_FOUND)
