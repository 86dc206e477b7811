import sqlite3

import pytest

from amberdb.adapters import (
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    SQLiteAdapter,
    adapter_for,
)
from amberdb.adapters.base import AdapterConfigurationError, row_to_dict
from amberdb.adapters.sqlite import normalize_path


@pytest.fixture
def adapter(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'test.db'}"))
    yield adapter
    adapter.close()


def test_connect_creates_database(tmp_path):
    adapter = SQLiteAdapter()
    connection = adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'connect.db'}"))
    assert isinstance(connection, sqlite3.Connection)
    assert (tmp_path / "connect.db").exists()
    assert adapter.connected
    adapter.close()
    assert not adapter.connected


def test_execute_and_last_insert_id(adapter):
    adapter.execute("CREATE TABLE example (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    cursor = adapter.execute("INSERT INTO example (name) VALUES (?)", ("Alice",))
    inserted_id = adapter.last_insert_id(cursor, "example", "id")
    assert inserted_id == 1
    cursor = adapter.execute("SELECT id, name FROM example WHERE id = ?", (inserted_id,))
    assert row_to_dict(cursor, cursor.fetchone()) == {"id": 1, "name": "Alice"}


def test_transaction_commit_and_rollback(adapter):
    adapter.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, value INTEGER)")

    adapter.begin()
    adapter.execute("INSERT INTO item (value) VALUES (?)", (10,))
    adapter.commit()
    assert adapter.execute("SELECT COUNT(*) FROM item").fetchone()[0] == 1

    adapter.begin()
    adapter.begin()
    adapter.execute("INSERT INTO item (value) VALUES (?)", (20,))
    adapter.rollback()
    assert adapter.execute("SELECT COUNT(*) FROM item").fetchone()[0] == 1


def test_errors_are_wrapped(adapter):
    with pytest.raises(AdapterExecutionError, match="OperationalError"):
        adapter.execute("SELECT * FROM missing_table")


def test_unconnected_adapter_raises():
    with pytest.raises(AdapterConnectionError):
        SQLiteAdapter().execute("SELECT 1")


def test_normalize_path_strips_scheme():
    assert normalize_path("sqlite:///:memory:") == ":memory:"
    assert normalize_path("sqlite:////var/db.sqlite") == "/var/db.sqlite"
    assert normalize_path("plain.db") == "plain.db"


def test_adapter_for_known_and_unknown_drivers():
    assert isinstance(adapter_for("sqlite3"), SQLiteAdapter)
    with pytest.raises(AdapterConfigurationError):
        adapter_for("cx_oracle")


def test_slow_query_threshold_from_environment(monkeypatch):
    monkeypatch.setenv("AMBERDB_SLOW_QUERY_MS", "7")
    assert SQLiteAdapter().slow_query_ms == 7
    assert SQLiteAdapter(slow_query_ms=3).slow_query_ms == 3
