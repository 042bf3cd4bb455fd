try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
import sqlite3
from datetime import datetime, timezone

from resilient_client.clients.storage import SQLiteStorage
from resilient_client.services.token_store import TOKENS_KEY, USER_ID_KEY, TokenStore


class FailingStorage:
    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str):
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        raise sqlite3.OperationalError("disk I/O error")

    def remove_item(self, key: str) -> None:
        raise sqlite3.OperationalError("disk I/O error")


def test_set_is_visible_immediately_and_persisted(storage, make_tokens) -> None:
    store = TokenStore(storage)
    tokens = make_tokens("access-a")

    store.set(tokens, "user-1")

    assert store.get() == tokens
    assert store.access_token == "access-a"
    assert store.user_id == "user-1"
    assert json.loads(storage.items[TOKENS_KEY])["access"]["token"] == "access-a"
    assert storage.items[USER_ID_KEY] == "user-1"


def test_load_restores_session_after_restart(storage, make_tokens) -> None:
    TokenStore(storage).set(make_tokens("persisted"), "user-9")

    restarted = TokenStore(storage)
    assert restarted.get() is None

    session = restarted.load()

    assert session is not None
    assert session.user_id == "user-9"
    assert session.tokens.access_token == "persisted"


def test_clear_removes_memory_and_storage(storage, make_tokens) -> None:
    store = TokenStore(storage)
    store.set(make_tokens(), "user-1")

    store.clear()

    assert store.get() is None
    assert store.session is None
    assert storage.items == {}


def test_storage_failure_keeps_in_memory_session(make_tokens, caplog) -> None:
    store = TokenStore(FailingStorage())
    tokens = make_tokens("memory-only")

    store.set(tokens, "user-1")

    assert store.get() == tokens
    assert "Failed to persist tokens" in caplog.text


def test_corrupt_persisted_tokens_are_discarded(storage) -> None:
    storage.items[TOKENS_KEY] = "{not json"
    storage.items[USER_ID_KEY] = "user-1"

    store = TokenStore(storage)

    assert store.load() is None
    assert TOKENS_KEY not in storage.items


def test_access_expiry_helper(make_tokens) -> None:
    tokens = make_tokens()

    assert not tokens.is_access_expired(datetime(2029, 1, 1, tzinfo=timezone.utc))
    assert tokens.is_access_expired(datetime(2031, 1, 1, tzinfo=timezone.utc))


def test_multi_context_race_is_not_reconciled_automatically(storage, make_tokens) -> None:
    """Two client instances sharing storage overwrite each other's keys.

    This is a known limitation: nothing coordinates writers, so instance B
    logging out wipes the persisted session instance A still holds in memory.
    ``sync_from_storage`` is the manual reconciliation hook.
    """
    first = TokenStore(storage)
    second = TokenStore(storage)
    first.set(make_tokens("first"), "user-1")

    assert second.get() is None
    second.sync_from_storage()
    assert second.access_token == "first"

    second.clear()

    assert first.access_token == "first"
    assert TOKENS_KEY not in storage.items
    assert first.sync_from_storage() is None


def test_sqlite_storage_roundtrip(tmp_path) -> None:
    db_path = tmp_path / "nested" / "client.db"
    sqlite_storage = SQLiteStorage(str(db_path))

    sqlite_storage.set_item("userId", "u-1")
    sqlite_storage.set_item("userId", "u-2")
    sqlite_storage.set_item("tokens", "{}")

    assert sqlite_storage.get_item("userId") == "u-2"
    assert sqlite_storage.keys() == ["tokens", "userId"]

    sqlite_storage.remove_item("userId")
    assert sqlite_storage.get_item("userId") is None
    assert SQLiteStorage(str(db_path)).get_item("tokens") == "{}"
