"""Models for the database."""

from .user import User

__all__ = ["User"]
