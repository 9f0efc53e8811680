"""
User table backing the SQL credential store.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from unison.db.base import Base


class User(Base):
    """Row form of ``UserRecord``."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    # Empty emails are stored as NULL so the unique index ignores them
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, nullable=True, index=True)
    username = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=True)  # nullable for OAuth users

    # OAuth provider info
    google_id = Column(String, unique=True, nullable=True)
    facebook_id = Column(String, unique=True, nullable=True)
    github_id = Column(String, unique=True, nullable=True)

    # Active password reset
    reset_code = Column(String(6), nullable=True)
    reset_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
