"""
Unit tests for the credential store backends.
"""

import json
import threading
import time
from pathlib import Path

import pytest
from sqlalchemy import text

from unison.core.errors import StorageError
from unison.db.json_store import JsonFileUserStore
from unison.db.session import build_engine
from unison.db.sql_store import SqlUserStore
from unison.db.store import (
    InMemoryUserStore,
    find_by_email,
    find_by_id,
    find_by_phone,
    find_by_provider,
)
from unison.schemas.user import UserRecord


class TestInMemoryStore:
    def test_empty_store_loads_empty_list(self, store):
        assert store.load() == []

    def test_save_replaces_collection(self, store):
        store.save([UserRecord(email="a@x.com"), UserRecord(email="b@x.com")])
        store.save([UserRecord(email="c@x.com")])

        assert [user.email for user in store.load()] == ["c@x.com"]

    def test_loaded_records_are_copies(self, store):
        store.save([UserRecord(email="a@x.com")])

        store.load()[0].username = "changed"

        assert store.load()[0].username == ""


class TestTransaction:
    """Serialized load-modify-save."""

    def test_changes_are_saved(self, store):
        with store.transaction() as users:
            users.append(UserRecord(email="a@x.com"))

        assert store.save_count == 1
        assert store.load()[0].email == "a@x.com"

    def test_no_change_no_write(self, store):
        store.save([UserRecord(email="a@x.com")])

        with store.transaction() as users:
            assert len(users) == 1

        assert store.save_count == 1

    def test_exception_discards_changes(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction() as users:
                users.append(UserRecord(email="a@x.com"))
                raise RuntimeError("boom")

        assert store.load() == []
        assert store.save_count == 0

    def test_concurrent_appends_are_not_lost(self, store):
        def add(i):
            with store.transaction() as users:
                users.append(UserRecord(email=f"user{i}@x.com"))

        threads = [threading.Thread(target=add, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.load()) == 20


class TestLookups:
    def setup_method(self):
        self.users = [
            UserRecord(id="1", email="a@x.com", phone="+1555", github_id="gh-1"),
            UserRecord(id="2", email="b@x.com"),
        ]

    def test_find_by_email_normalizes(self):
        assert find_by_email(self.users, " A@X.COM ").id == "1"
        assert find_by_email(self.users, "nobody@x.com") is None

    def test_blank_email_never_matches(self):
        users = [UserRecord(id="3", email="")]

        assert find_by_email(users, "") is None
        assert find_by_email(users, None) is None

    def test_find_by_phone(self):
        assert find_by_phone(self.users, " +1555 ").id == "1"
        assert find_by_phone(self.users, "") is None

    def test_find_by_phone_prefers_oldest(self):
        older = UserRecord(id="old", phone="+1999")
        newer = UserRecord(id="new", phone="+1999")
        newer.created_at = older.created_at.replace(year=older.created_at.year + 1)

        assert find_by_phone([newer, older], "+1999").id == "old"

    def test_find_by_provider(self):
        assert find_by_provider(self.users, "github", "gh-1").id == "1"
        assert find_by_provider(self.users, "google", "gh-1") is None
        assert find_by_provider(self.users, "github", None) is None

    def test_find_by_id(self):
        assert find_by_id(self.users, "2").email == "b@x.com"
        assert find_by_id(self.users, "9") is None


class TestJsonFileStore:
    """users.json backend."""

    def test_missing_file_is_empty(self, tmp_dir: Path):
        store = JsonFileUserStore(tmp_dir / "users.json")

        assert store.load() == []

    def test_round_trip_and_layout(self, tmp_dir: Path):
        path = tmp_dir / "nested" / "users.json"
        store = JsonFileUserStore(path)
        user = UserRecord(email="a@x.com", password_hash="$2b$12$hash")

        store.save([user])

        raw = json.loads(path.read_text())
        assert raw[0]["email"] == "a@x.com"
        assert raw[0]["passwordHash"] == "$2b$12$hash"
        assert store.load()[0].id == user.id

    def test_no_temp_files_left_behind(self, tmp_dir: Path):
        store = JsonFileUserStore(tmp_dir / "users.json")

        store.save([UserRecord(email="a@x.com")])

        assert [p.name for p in tmp_dir.iterdir()] == ["users.json"]

    def test_empty_file_is_empty(self, tmp_dir: Path):
        path = tmp_dir / "users.json"
        path.write_text("")

        assert JsonFileUserStore(path).load() == []

    def test_non_list_document_is_empty(self, tmp_dir: Path):
        path = tmp_dir / "users.json"
        path.write_text('{"users": []}')

        assert JsonFileUserStore(path).load() == []

    def test_corrupt_file_raises_storage_error(self, tmp_dir: Path):
        path = tmp_dir / "users.json"
        path.write_text("[{not json")

        with pytest.raises(StorageError):
            JsonFileUserStore(path).load()

    def test_invalid_record_raises_storage_error(self, tmp_dir: Path):
        path = tmp_dir / "users.json"
        path.write_text('[{"id": "1", "resetCode": "123456"}]')

        with pytest.raises(StorageError):
            JsonFileUserStore(path).load()

    def test_unreadable_path_raises_storage_error(self, tmp_dir: Path):
        # A directory where the file should be
        (tmp_dir / "users.json").mkdir()

        with pytest.raises(StorageError):
            JsonFileUserStore(tmp_dir / "users.json").load()

    def test_write_failure_raises_storage_error(self, tmp_dir: Path):
        blocker = tmp_dir / "blocker"
        blocker.write_text("")

        with pytest.raises(StorageError):
            JsonFileUserStore(blocker / "users.json").save([UserRecord()])


class TestSqlStore:
    """SQLAlchemy backend."""

    def test_creates_users_table(self, sql_store):
        with sql_store.engine.connect() as conn:
            result = conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            table_names = [row[0] for row in result]

        assert "users" in table_names

    def test_empty_table_loads_empty_list(self, sql_store):
        assert sql_store.load() == []

    def test_round_trip(self, sql_store):
        user = UserRecord(email="a@x.com", phone="+1555", github_id="gh-1")

        sql_store.save([user])
        loaded = sql_store.load()

        assert len(loaded) == 1
        assert loaded[0].id == user.id
        assert loaded[0].github_id == "gh-1"
        assert loaded[0].created_at.tzinfo is not None

    def test_save_upserts_without_deleting(self, sql_store):
        first = UserRecord(email="a@x.com")
        second = UserRecord(email="b@x.com")
        sql_store.save([first, second])

        first.username = "alice"
        sql_store.save([first])

        loaded = sql_store.load()
        assert [user.username for user in loaded] == ["alice", ""]

    def test_blank_emails_do_not_collide(self, sql_store):
        sql_store.save([UserRecord(email="", github_id="1"), UserRecord(email="", github_id="2")])

        assert [user.email for user in sql_store.load()] == ["", ""]

    def test_reset_fields_survive(self, sql_store):
        user = UserRecord(email="a@x.com")
        user.set_reset_code("123456", user.created_at)
        sql_store.save([user])

        loaded = sql_store.load()[0]

        assert loaded.reset_code == "123456"
        assert loaded.reset_expiry == user.created_at

    def test_duplicate_email_raises_storage_error(self, sql_store):
        with pytest.raises(StorageError):
            sql_store.save([UserRecord(email="a@x.com"), UserRecord(email="a@x.com")])

    def test_transaction(self, sql_store):
        with sql_store.transaction() as users:
            users.append(UserRecord(email="a@x.com"))

        assert sql_store.load()[0].email == "a@x.com"

    def test_transaction_rolls_back_on_error(self, sql_store):
        sql_store.save([UserRecord(email="a@x.com")])

        with pytest.raises(RuntimeError):
            with sql_store.transaction() as users:
                users[0].username = "changed"
                raise RuntimeError("abort")

        assert sql_store.load()[0].username == ""

    def test_workers_sharing_a_database_keep_each_others_records(self, tmp_dir):
        url = f"sqlite:///{tmp_dir / 'shared.db'}"
        engine_a, engine_b = build_engine(url), build_engine(url)
        worker_a, worker_b = SqlUserStore(engine_a), SqlUserStore(engine_b)
        worker_a.save([UserRecord(id="u1", email="a@x.com")])
        a_started = threading.Event()

        def run_worker_b():
            a_started.wait()
            with worker_b.transaction() as users:
                users.append(UserRecord(id="u2", email="b@x.com"))

        thread = threading.Thread(target=run_worker_b)
        thread.start()
        with worker_a.transaction() as users:
            a_started.set()
            time.sleep(0.2)
            users[0].github_id = "gh-1"
        thread.join()

        loaded = worker_a.load()
        engine_a.dispose()
        engine_b.dispose()
        assert [user.id for user in loaded] == ["u1", "u2"]
        assert loaded[0].github_id == "gh-1"


def test_in_memory_store_is_a_user_store():
    assert InMemoryUserStore().load() == []
