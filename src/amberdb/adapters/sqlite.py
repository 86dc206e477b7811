"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from ..dialects.sqlite import SQLiteDialect
from .base import ConnectionConfig
from .dbapi import DBAPIAdapter

MEMORY_PATH = ":memory:"


class SQLiteAdapter(DBAPIAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.
    """

    label = "sqlite"
    dialect_class = SQLiteDialect
    driver_hint = "sqlite3"

    def load_driver(self) -> Any:
        return sqlite3

    def open_connection(self, driver: Any, config: ConnectionConfig) -> sqlite3.Connection:
        path = normalize_path(config.url)
        connection = driver.connect(
            path,
            isolation_level=None if config.autocommit else "",
            timeout=config.timeout if config.timeout is not None else 5.0,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def begin(self) -> None:
        connection = self._ensure_connection()
        if not connection.in_transaction:
            connection.execute("BEGIN")


def normalize_path(url: str) -> str:
    prefix = "sqlite:///"
    if url.startswith(prefix):
        return url[len(prefix) :]
    return url
