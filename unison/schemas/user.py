"""
User record persisted by the credential store.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from unison.core.constants import SUPPORTED_PROVIDERS


def normalize_email(email: Optional[str]) -> str:
    """Trim and lower-case an email; ``None`` becomes ``""``."""
    return str(email or "").strip().lower()


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Trim a phone number; blank values become ``None``."""
    if phone is None:
        return None
    phone = str(phone).strip()
    return phone or None


def provider_field(provider: str) -> str:
    """Attribute name holding the linkage for ``provider``."""
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported provider: {provider}")
    return f"{provider}_id"


class UserRecord(BaseModel):
    """A single user identity.

    Serialized with camelCase keys (``passwordHash``, ``googleId``,
    ``resetExpiry``...) so existing ``users.json`` files load unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    email: str = ""
    phone: Optional[str] = None
    username: str = ""
    password_hash: Optional[str] = None

    google_id: Optional[str] = None
    facebook_id: Optional[str] = None
    github_id: Optional[str] = None

    reset_code: Optional[str] = None
    reset_expiry: Optional[datetime] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("created_at", "reset_expiry")
    @classmethod
    def assume_utc(cls, v):
        """Naive timestamps (e.g. from SQLite) are UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_reset_pair(self):
        if (self.reset_code is None) != (self.reset_expiry is None):
            raise ValueError("resetCode and resetExpiry must be set together")
        return self

    def provider_id(self, provider: str) -> Optional[str]:
        return getattr(self, provider_field(provider))

    def link_provider(self, provider: str, provider_id: str) -> None:
        setattr(self, provider_field(provider), provider_id)

    def has_active_reset(self) -> bool:
        return self.reset_code is not None

    def set_reset_code(self, code: str, expires_at: datetime) -> None:
        self.reset_code = code
        self.reset_expiry = expires_at

    def clear_reset_code(self) -> None:
        self.reset_code = None
        self.reset_expiry = None

    def to_storage(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def summary(self) -> Dict[str, Any]:
        """Public fields only; never includes the hash or reset code."""
        data = {"id": self.id, "email": self.email, "username": self.username}
        if self.phone:
            data["phone"] = self.phone
        return data
