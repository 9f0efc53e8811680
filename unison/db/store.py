"""
Credential store contract and the in-memory implementation.

A store holds the whole user collection. ``load`` returns every record and
``save`` replaces the collection. Mutations go through ``transaction()``,
which holds the store lock for the full load-modify-save cycle so two
requests can never interleave their writes.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from unison.schemas.user import (
    UserRecord,
    normalize_email,
    normalize_phone,
)


class UserStore(ABC):
    """Abstract credential store."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @abstractmethod
    def load(self) -> List[UserRecord]:
        """Return all records. Uninitialized storage is an empty list.

        Raises:
            StorageError: storage exists but could not be read.
        """

    @abstractmethod
    def save(self, users: Sequence[UserRecord]) -> None:
        """Replace the stored collection with ``users``.

        Raises:
            StorageError: the collection could not be written.
        """

    @contextmanager
    def transaction(self) -> Iterator[List[UserRecord]]:
        """Serialized load-modify-save.

        Yields the loaded list for in-place mutation. The collection is
        written back only if it changed; an exception discards the changes.
        """
        with self._lock:
            users = self.load()
            before = [user.model_dump() for user in users]
            yield users
            if [user.model_dump() for user in users] != before:
                self.save(users)


class InMemoryUserStore(UserStore):
    """Process-local store, used by tests and the ``memory`` backend."""

    def __init__(self, users: Optional[Sequence[UserRecord]] = None) -> None:
        super().__init__()
        self._users = [user.model_copy(deep=True) for user in users or []]
        self.save_count = 0

    def load(self) -> List[UserRecord]:
        return [user.model_copy(deep=True) for user in self._users]

    def save(self, users: Sequence[UserRecord]) -> None:
        self._users = [user.model_copy(deep=True) for user in users]
        self.save_count += 1


def find_by_id(users: Sequence[UserRecord], user_id: str) -> Optional[UserRecord]:
    return next((user for user in users if user.id == user_id), None)


def find_by_email(users: Sequence[UserRecord], email: Optional[str]) -> Optional[UserRecord]:
    """Exact match on the normalized email. Blank emails never match."""
    email = normalize_email(email)
    if not email:
        return None
    return next((user for user in users if user.email == email), None)


def find_by_phone(users: Sequence[UserRecord], phone: Optional[str]) -> Optional[UserRecord]:
    """First record with this phone, oldest first."""
    phone = normalize_phone(phone)
    if not phone:
        return None
    matches = [user for user in users if user.phone == phone]
    if not matches:
        return None
    return min(matches, key=lambda user: user.created_at)


def find_by_provider(
    users: Sequence[UserRecord], provider: str, provider_id: Optional[str]
) -> Optional[UserRecord]:
    if not provider_id:
        return None
    return next(
        (user for user in users if user.provider_id(provider) == provider_id),
        None,
    )
