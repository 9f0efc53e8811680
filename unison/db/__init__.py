"""Credential store backends.

Backends are imported from their modules (``unison.db.json_store``,
``unison.db.sql_store``) so that importing the ORM models stays cheap.
"""

from .base import Base
from .store import InMemoryUserStore, UserStore

__all__ = ["Base", "UserStore", "InMemoryUserStore"]
