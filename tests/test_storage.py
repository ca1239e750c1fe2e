import sqlite3
from unittest.mock import patch

import pytest

from EventLog.storage import MemoryKeyValueStorage, SqliteKeyValueStorage, StorageError


def test_sqlite_round_trip(tmp_path):
    storage = SqliteKeyValueStorage(tmp_path / "nested" / "kv.sqlite")
    assert storage.get_item("unlock:events") is None

    storage.set_item("unlock:events", "[]")
    storage.set_item("unlock:events", '[{"id": 1}]')
    assert storage.get_item("unlock:events") == '[{"id": 1}]'
    assert (tmp_path / "nested" / "kv.sqlite").exists()

    storage.remove_item("unlock:events")
    assert storage.get_item("unlock:events") is None

def test_sqlite_survives_new_instance(tmp_path):
    path = tmp_path / "kv.sqlite"
    SqliteKeyValueStorage(path).set_item("sleep:records", "[]")
    assert SqliteKeyValueStorage(path).get_item("sleep:records") == "[]"

def test_sqlite_errors_become_storage_errors(tmp_path):
    # A directory cannot be opened as a database file
    storage = SqliteKeyValueStorage(tmp_path)
    with pytest.raises(StorageError):
        storage.set_item("unlock:events", "[]")

def test_memory_storage():
    storage = MemoryKeyValueStorage({"a": "1"})
    storage.set_item("b", "2")
    storage.remove_item("a")
    storage.remove_item("missing")
    assert storage.get_item("a") is None
    assert storage.keys() == ["b"]

def test_sqlite_connections_are_closed(tmp_path):
    storage = SqliteKeyValueStorage(tmp_path / "kv.sqlite")
    opened = []
    original = storage.get_connection

    def tracking_connection():
        conn = original()
        opened.append(conn)
        return conn

    with patch.object(storage, "get_connection", side_effect=tracking_connection):
        storage.set_item("unlock:status", '{"state": "paused"}')
        assert storage.get_item("unlock:status") == '{"state": "paused"}'
        storage.remove_item("unlock:status")

    assert len(opened) == 4
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
