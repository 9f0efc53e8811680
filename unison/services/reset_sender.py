"""Delivery of password reset codes."""

from datetime import datetime
from typing import Protocol

from unison.core.config import settings
from unison.core.unison_logger import UnisonLogger
from unison.schemas.user import UserRecord


class ResetCodeSender(Protocol):
    """Anything that can hand a reset code to its owner (email, SMS...)."""

    def send(self, user: UserRecord, code: str, expires_at: datetime) -> None: ...


class LoggingResetCodeSender:
    """Default sender: records the issuance in the log.

    The code itself is only written out when ``debug`` is enabled.
    """

    def send(self, user: UserRecord, code: str, expires_at: datetime) -> None:
        UnisonLogger.info(
            f"Password reset code issued for user {user.id}, expires {expires_at.isoformat()}"
        )
        if settings.debug:
            UnisonLogger.debug(f"Reset code for {user.email}: {code}")
