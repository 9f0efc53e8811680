"""
Services package for the identity backend.
"""

from .identity import IdentityResolver
from .passwords import PasswordManager, ResetCodeOutcome
from .reset_sender import LoggingResetCodeSender, ResetCodeSender
from .session import SessionGateway

__all__ = [
    "IdentityResolver",
    "PasswordManager",
    "ResetCodeOutcome",
    "ResetCodeSender",
    "LoggingResetCodeSender",
    "SessionGateway",
]
