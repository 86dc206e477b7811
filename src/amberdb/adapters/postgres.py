"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

from typing import Any

from ..dialects.postgres import PostgresDialect
from .base import AdapterExecutionError, ConnectionConfig
from .dbapi import DBAPIAdapter


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


class PostgresAdapter(DBAPIAdapter):
    """
    Adapter wrapping the psycopg PostgreSQL driver. psycopg opens a transaction
    on the first statement, so :meth:`begin` only checks the connection.
    """

    label = "postgres"
    dialect_class = PostgresDialect
    driver_hint = "psycopg"
    reconnect_when_closed = True

    def load_driver(self) -> Any:
        return _load_driver()

    def open_connection(self, driver: Any, config: ConnectionConfig) -> Any:
        options = dict(config.options or {})
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)
        self.logger.info(
            "Connecting to PostgreSQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )
        connection = driver.connect(config.url, **options)
        connection.autocommit = bool(config.autocommit)
        return connection

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any:
        row = cursor.fetchone()
        if not row:
            raise AdapterExecutionError(f"No RETURNING {pk_column} row after insert into {table}.")
        return row[0]
