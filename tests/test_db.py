"""
Tests for key-value storage backends.
"""

import pytest

from hudreader.database.db import MemoryStore, SQLiteStore
from hudreader.errors import PersistenceFailure
from hudreader.models.session import SessionStore
from hudreader.models.shot import ShotRecord, from_epoch_ms


class TestMemoryStore:

    def test_get_set_remove(self):
        store = MemoryStore({"a": "1"})
        assert store.get("a") == "1"
        store.set("a", "2")
        assert store.get("a") == "2"
        store.remove("a")
        assert store.get("a") is None
        store.remove("a")  # Removing a missing key is a no-op


class TestSQLiteStore:

    def test_get_set_remove(self, tmp_path):
        store = SQLiteStore(tmp_path / "test.db")
        assert store.get("golf-shots") is None
        store.set("golf-shots", "[]")
        store.set("golf-shots", '[{"timestamp":1}]')
        assert store.get("golf-shots") == '[{"timestamp":1}]'
        store.remove("golf-shots")
        assert store.get("golf-shots") is None
        store.close()

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "test.db"
        store = SQLiteStore(path)
        store.set("k", "value")
        store.close()

        reopened = SQLiteStore(path)
        assert reopened.get("k") == "value"
        reopened.close()

    def test_closed_connection_raises_persistence_failure(self, tmp_path):
        store = SQLiteStore(tmp_path / "test.db")
        store.conn.close()
        with pytest.raises(PersistenceFailure):
            store.get("k")
        with pytest.raises(PersistenceFailure):
            store.set("k", "v")

    def test_use_after_close_raises_persistence_failure(self, tmp_path):
        store = SQLiteStore(tmp_path / "test.db")
        store.close()
        with pytest.raises(PersistenceFailure):
            store.get("k")
        with pytest.raises(PersistenceFailure):
            store.set("k", "v")
        with pytest.raises(PersistenceFailure):
            store.remove("k")

    def test_session_survives_closed_store(self, qtbot, tmp_path):
        backend = SQLiteStore(tmp_path / "test.db")
        store = SessionStore(backend)
        backend.close()

        record = ShotRecord(timestamp=from_epoch_ms(5), carry_distance=135)
        store.add_shot(record)
        assert store.history == (record,)
        store.clear()
        assert store.history == ()

    def test_unopenable_path(self, tmp_path):
        with pytest.raises(PersistenceFailure):
            SQLiteStore(tmp_path / "missing-dir" / "test.db")

    def test_session_history_round_trip(self, qtbot, tmp_path):
        path = tmp_path / "test.db"
        store = SessionStore(SQLiteStore(path))
        store.add_shot(ShotRecord(timestamp=from_epoch_ms(5), carry_distance=135))
        store.teardown()

        reloaded = SessionStore(SQLiteStore(path))
        assert reloaded.history == store.history
