"""
SQLAlchemy credential store.

Implements the whole-collection contract on top of the ``users`` table.
``save`` upserts every record; rows are never deleted. ``transaction`` runs
its load-modify-save inside a single database transaction that holds the
rows for update, so workers sharing one database take turns.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from unison.core.errors import StorageError
from unison.core.unison_logger import UnisonLogger
from unison.db.session import create_tables, default_engine, make_session_factory
from unison.db.store import UserStore
from unison.models import User
from unison.schemas.user import UserRecord


def _row_to_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email or "",
        phone=row.phone,
        username=row.username or "",
        password_hash=row.password_hash,
        google_id=row.google_id,
        facebook_id=row.facebook_id,
        github_id=row.github_id,
        reset_code=row.reset_code,
        reset_expiry=row.reset_expiry,
        created_at=row.created_at,
    )


def _record_to_row(record: UserRecord) -> User:
    return User(
        id=record.id,
        email=record.email or None,
        phone=record.phone,
        username=record.username,
        password_hash=record.password_hash,
        google_id=record.google_id,
        facebook_id=record.facebook_id,
        github_id=record.github_id,
        reset_code=record.reset_code,
        reset_expiry=record.reset_expiry,
        created_at=record.created_at,
    )


class SqlUserStore(UserStore):
    """Store backed by a relational database.

    Args:
        engine: SQLAlchemy engine. Defaults to one built from ``DATABASE_URL``.
                Tables are created on construction.
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        super().__init__()
        self.engine = engine or default_engine()
        try:
            create_tables(self.engine)
        except SQLAlchemyError as e:
            UnisonLogger.error(f"Failed to initialize users table: {e}")
            raise StorageError() from e
        self._session_factory = make_session_factory(self.engine)

    def load(self) -> List[UserRecord]:
        try:
            with self._session_factory() as db:
                rows = db.query(User).order_by(User.created_at).all()
                return [_row_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            UnisonLogger.error(f"Failed to load users: {e}")
            raise StorageError() from e

    def save(self, users: Sequence[UserRecord]) -> None:
        try:
            with self._session_factory() as db:
                for user in users:
                    db.merge(_record_to_row(user))
                db.commit()
        except SQLAlchemyError as e:
            UnisonLogger.error(f"Failed to save users: {e}")
            raise StorageError() from e

    @contextmanager
    def transaction(self) -> Iterator[List[UserRecord]]:
        """Load-modify-save in one database transaction.

        Rows are selected ``FOR UPDATE`` (SQLite engines begin ``IMMEDIATE``),
        so a second writer blocks until this one commits. Only added or
        changed records are written back.
        """
        with self._lock:
            try:
                with self._session_factory() as db:
                    rows = (
                        db.query(User)
                        .order_by(User.created_at)
                        .with_for_update()
                        .all()
                    )
                    users = [_row_to_record(row) for row in rows]
                    before = {user.id: user.model_dump() for user in users}
                    yield users
                    changed = [
                        user for user in users if before.get(user.id) != user.model_dump()
                    ]
                    for user in changed:
                        db.merge(_record_to_row(user))
                    db.commit()
            except SQLAlchemyError as e:
                UnisonLogger.error(f"Failed to update users: {e}")
                raise StorageError() from e
