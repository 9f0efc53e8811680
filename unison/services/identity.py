"""
Identity resolution across password, phone and OAuth providers.

Every inbound credential ends in exactly one user record. Registration and
provider linking do their find-or-create inside a single store transaction,
so concurrent requests for the same email cannot produce two accounts.
"""

from typing import Optional

from unison.core.config import settings
from unison.core.constants import SUPPORTED_PROVIDERS
from unison.core.errors import (
    EmailTaken,
    InvalidCredentials,
    PhoneTaken,
    ValidationError,
)
from unison.core.unison_logger import UnisonLogger
from unison.db.store import UserStore, find_by_email, find_by_phone, find_by_provider
from unison.schemas.user import UserRecord, normalize_email, normalize_phone
from unison.services.passwords import PasswordManager


def display_name_for(display_name: Optional[str], email: str) -> str:
    """Best-effort username for a new provider account."""
    if display_name and display_name.strip():
        return display_name.strip()
    if email:
        return email.split("@", 1)[0]
    return ""


class IdentityResolver:
    """Finds, creates and links user records.

    Args:
        store: Credential store all reads and writes go through.
        passwords: Password manager used for hashing and verification.
        enforce_unique_phone: Reject registrations whose phone is already on
            another record. Defaults to the ``ENFORCE_UNIQUE_PHONE`` setting.
    """

    def __init__(
        self,
        store: UserStore,
        passwords: Optional[PasswordManager] = None,
        enforce_unique_phone: Optional[bool] = None,
    ) -> None:
        self.store = store
        self.passwords = passwords or PasswordManager(store)
        self.enforce_unique_phone = (
            settings.enforce_unique_phone
            if enforce_unique_phone is None
            else enforce_unique_phone
        )

    def _check_password(self, user: Optional[UserRecord], password: Optional[str]) -> UserRecord:
        # Unknown user, OAuth-only user and wrong password all look the same
        digest = user.password_hash if user is not None else None
        if not self.passwords.verify(str(password or ""), digest) or user is None:
            raise InvalidCredentials()
        return user

    def resolve_password(self, email: Optional[str], password: Optional[str]) -> UserRecord:
        """Authenticate with email and password."""
        user = find_by_email(self.store.load(), email)
        return self._check_password(user, password)

    def resolve_phone(self, phone: Optional[str], password: Optional[str]) -> UserRecord:
        """Authenticate with phone and password."""
        user = find_by_phone(self.store.load(), phone)
        return self._check_password(user, password)

    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        username: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> UserRecord:
        """Create a password account.

        Raises:
            ValidationError: email missing.
            WeakPassword: password shorter than the minimum length.
            EmailTaken: normalized email already registered.
            PhoneTaken: phone already registered and uniqueness is enforced.
        """
        normalized = normalize_email(email)
        if not normalized:
            raise ValidationError("Email required")
        password = self.passwords.validate_strength(password)
        phone = normalize_phone(phone)

        user = UserRecord(
            email=normalized,
            phone=phone,
            username=str(username).strip() if username else "",
            password_hash=self.passwords.hash(password),
        )

        with self.store.transaction() as users:
            if find_by_email(users, normalized) is not None:
                raise EmailTaken()
            if phone and find_by_phone(users, phone) is not None:
                if self.enforce_unique_phone:
                    raise PhoneTaken()
                UnisonLogger.warning(f"Registering user {user.id} with a phone already in use")
            users.append(user)

        UnisonLogger.info(f"Registered user {user.id}")
        return user

    def resolve_provider(
        self,
        provider: str,
        provider_id: Optional[str],
        candidate_email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UserRecord:
        """Create-or-link for a verified OAuth profile. Never reports "not found".

        A record already holding this provider id wins; otherwise a record
        with the same normalized email gets the linkage; otherwise a new
        record is created. At most one write happens.
        """
        if provider not in SUPPORTED_PROVIDERS:
            raise ValidationError(f"Unsupported provider: {provider}")
        provider_id = str(provider_id or "").strip()
        if not provider_id:
            raise ValidationError("Provider profile has no id")
        normalized = normalize_email(candidate_email)

        with self.store.transaction() as users:
            user = find_by_provider(users, provider, provider_id)
            if user is None:
                user = find_by_email(users, normalized)
                if user is None:
                    user = UserRecord(
                        email=normalized,
                        username=display_name_for(display_name, normalized),
                    )
                    user.link_provider(provider, provider_id)
                    users.append(user)
                    UnisonLogger.info(f"Created user {user.id} from {provider} login")
                elif user.provider_id(provider) is None:
                    user.link_provider(provider, provider_id)
                    UnisonLogger.info(f"Linked {provider} identity to user {user.id}")
                else:
                    UnisonLogger.warning(
                        f"User {user.id} already has a different {provider} identity; not relinking"
                    )
            resolved = user.model_copy()

        return resolved
