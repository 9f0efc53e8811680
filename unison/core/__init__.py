"""
Core module exports.
"""

from .config import settings
from .constants import (
    BCRYPT_ROUNDS,
    PASSWORD_MIN_LENGTH,
    RESET_CODE_TTL_MINUTES,
    SUPPORTED_PROVIDERS,
)

__all__ = [
    "settings",
    "BCRYPT_ROUNDS",
    "PASSWORD_MIN_LENGTH",
    "RESET_CODE_TTL_MINUTES",
    "SUPPORTED_PROVIDERS",
]
