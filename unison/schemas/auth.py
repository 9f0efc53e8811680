"""
Authentication schemas for request/response models.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Schema for password registration."""

    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None
    phone: Optional[str] = None


class EmailLoginRequest(BaseModel):
    """Schema for email + password login."""

    email: Optional[str] = None
    password: Optional[str] = None


class PhoneLoginRequest(BaseModel):
    """Schema for phone + password login."""

    phone: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Schema for consuming a reset code. Accepts ``newPassword`` or ``new_password``."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    code: Optional[str] = None
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class RefreshTokenRequest(BaseModel):
    """Schema for refresh token request."""

    refresh_token: str


class UserSummary(BaseModel):
    """Public view of a user record."""

    id: str
    email: str
    username: str = ""
    phone: Optional[str] = None


class UserResponse(BaseModel):
    ok: bool = True
    user: UserSummary


class TokenResponse(BaseModel):
    """Schema for token response."""

    ok: bool = True
    user: UserSummary
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class ForgotPasswordResponse(BaseModel):
    """Identical for known and unknown emails; ``code`` is set only in debug."""

    ok: bool = True
    message: str
    code: Optional[str] = None


class AcknowledgeResponse(BaseModel):
    ok: bool = True
    message: str


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    code: str


class ProviderProfile(BaseModel):
    """Verified profile handed back by an OAuth provider."""

    provider: str
    provider_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
