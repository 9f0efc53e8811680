"""
Error taxonomy for identity operations.

Every failure an operation can report is an ``IdentityError`` subclass carrying
a stable ``code`` and an HTTP status class. The application maps them to the
JSON error envelope in ``unison.main``.
"""

from typing import Optional

from unison.core.constants import PASSWORD_MIN_LENGTH


class IdentityError(Exception):
    """Base class for structured identity failures."""

    code = "IdentityError"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IdentityError):
    code = "ValidationError"
    default_message = "Invalid request"


class WeakPassword(IdentityError):
    code = "WeakPassword"
    default_message = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"


class InvalidCredentials(IdentityError):
    """Authentication failure. The message never says which part was wrong."""

    code = "InvalidCredentials"
    status_code = 401
    default_message = "Invalid credentials"

    def __init__(self):
        super().__init__(self.default_message)


class EmailTaken(IdentityError):
    code = "EmailTaken"
    status_code = 409
    default_message = "Email already registered"


class PhoneTaken(IdentityError):
    code = "PhoneTaken"
    status_code = 409
    default_message = "Phone already registered"


class InvalidOrExpiredCode(IdentityError):
    code = "InvalidOrExpiredCode"
    default_message = "Invalid or expired reset code"


class ExpiredCode(IdentityError):
    code = "ExpiredCode"
    default_message = "Reset code has expired"


class ProviderError(IdentityError):
    code = "ProviderError"
    default_message = "OAuth2 authentication failed"


class ProviderNotConfigured(IdentityError):
    code = "ProviderNotConfigured"
    status_code = 503
    default_message = "OAuth provider is not configured"


class StorageError(IdentityError):
    """Credential store I/O failure. The cause is logged, never returned."""

    code = "StorageError"
    status_code = 500
    default_message = "Internal server error"
