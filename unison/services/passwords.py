"""
Password lifecycle: hashing, verification and the reset-code protocol.

Reset codes move through ``no code -> issued -> consumed | expired``. An
expired code is not swept in the background; the next attempt to use it
clears it and reports the expiry.
"""

import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from unison.core.config import settings
from unison.core.constants import (
    PASSWORD_MIN_LENGTH,
    RESET_CODE_MAX,
    RESET_CODE_MIN,
    RESET_CODE_TTL_MINUTES,
    RESET_REQUESTED_MESSAGE,
)
from unison.core.errors import ExpiredCode, InvalidOrExpiredCode, WeakPassword
from unison.core.security import get_password_hash, verify_password
from unison.core.unison_logger import UnisonLogger
from unison.db.store import UserStore, find_by_email
from unison.schemas.user import normalize_email
from unison.services.reset_sender import LoggingResetCodeSender, ResetCodeSender

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_reset_code() -> str:
    """Six digits drawn uniformly from 100000-999999."""
    return str(RESET_CODE_MIN + secrets.randbelow(RESET_CODE_MAX - RESET_CODE_MIN + 1))


@dataclass
class ResetCodeOutcome:
    """Result of a reset request. Same shape whether or not the email exists."""

    message: str = RESET_REQUESTED_MESSAGE
    # Populated only for non-production diagnostics
    code: Optional[str] = None


class PasswordManager:
    """Hashes passwords and runs the reset-code protocol against a store."""

    def __init__(
        self,
        store: UserStore,
        sender: Optional[ResetCodeSender] = None,
        clock: Clock = utc_now,
        expose_codes: Optional[bool] = None,
    ) -> None:
        self.store = store
        self.sender = sender or LoggingResetCodeSender()
        self.clock = clock
        self.expose_codes = settings.debug if expose_codes is None else expose_codes

    @staticmethod
    def hash(plaintext: str) -> str:
        return get_password_hash(plaintext)

    @staticmethod
    def verify(plaintext: str, digest: Optional[str]) -> bool:
        return verify_password(plaintext, digest)

    @staticmethod
    def validate_strength(password: Optional[str]) -> str:
        """Shared rule for registration and reset."""
        if password is None or len(str(password)) < PASSWORD_MIN_LENGTH:
            raise WeakPassword()
        return str(password)

    def issue_reset_code(self, email: Optional[str]) -> ResetCodeOutcome:
        """Issue a code if the account exists; the answer never says whether it does."""
        normalized = normalize_email(email)
        outcome = ResetCodeOutcome()
        if not normalized:
            return outcome

        issued = None
        with self.store.transaction() as users:
            user = find_by_email(users, normalized)
            if user is not None:
                code = generate_reset_code()
                user.set_reset_code(code, self.clock() + timedelta(minutes=RESET_CODE_TTL_MINUTES))
                issued = user.model_copy()

        if issued is None:
            UnisonLogger.debug("Password reset requested for unknown email")
            return outcome

        self.sender.send(issued, issued.reset_code, issued.reset_expiry)
        if self.expose_codes:
            outcome.code = issued.reset_code
        return outcome

    def consume_reset_code(
        self, email: Optional[str], code: Optional[str], new_password: Optional[str]
    ) -> None:
        """Set a new password using an active reset code.

        Raises:
            WeakPassword: new password is too short; the code stays active.
            InvalidOrExpiredCode: no active code, or the code does not match.
            ExpiredCode: the code's window has passed; the code is cleared.
        """
        new_password = self.validate_strength(new_password)
        normalized = normalize_email(email)
        supplied = str(code or "").strip()
        if not normalized or not supplied:
            raise InvalidOrExpiredCode()

        new_hash = self.hash(new_password)
        failure = None
        with self.store.transaction() as users:
            user = find_by_email(users, normalized)
            if user is None or not user.has_active_reset():
                failure = InvalidOrExpiredCode()
            elif self.clock() > user.reset_expiry:
                user.clear_reset_code()
                failure = ExpiredCode()
            elif not hmac.compare_digest(supplied.encode(), user.reset_code.encode()):
                failure = InvalidOrExpiredCode()
            else:
                user.password_hash = new_hash
                user.clear_reset_code()
                UnisonLogger.info(f"Password reset completed for user {user.id}")

        if failure is not None:
            raise failure
