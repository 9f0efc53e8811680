"""
Pytest configuration and shared fixtures for the identity service tests.
"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from unison.api.deps import get_user_store
from unison.db.sql_store import SqlUserStore
from unison.db.session import build_engine
from unison.db.store import InMemoryUserStore
from unison.main import app
from unison.services import IdentityResolver, PasswordManager, SessionGateway


class FakeClock:
    """Controllable UTC clock for expiry tests."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingSender:
    """Reset code sender that keeps what it was asked to deliver."""

    def __init__(self):
        self.sent = []

    def send(self, user, code, expires_at):
        self.sent.append((user.email, code, expires_at))


@pytest.fixture
def store() -> InMemoryUserStore:
    """Fresh in-memory credential store."""
    return InMemoryUserStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def passwords(store, clock, sender) -> PasswordManager:
    return PasswordManager(store, sender=sender, clock=clock, expose_codes=False)


@pytest.fixture
def resolver(store, passwords) -> IdentityResolver:
    return IdentityResolver(store, passwords, enforce_unique_phone=True)


@pytest.fixture
def gateway(store) -> SessionGateway:
    return SessionGateway(store, frontend_url="http://frontend.test")


@pytest.fixture
def tmp_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as path:
        yield Path(path)


@pytest.fixture
def sql_store(tmp_dir: Path) -> SqlUserStore:
    """SQL store on a temporary SQLite database."""
    engine = build_engine(f"sqlite:///{tmp_dir / 'users.db'}")
    yield SqlUserStore(engine)
    engine.dispose()


@pytest.fixture
def client(store: InMemoryUserStore) -> Generator[TestClient, None, None]:
    """Create a test client with the store dependency overridden."""
    app.dependency_overrides[get_user_store] = lambda: store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
