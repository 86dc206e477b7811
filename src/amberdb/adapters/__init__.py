"""
Database adapter interfaces and implementations.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    ConnectionConfig,
    DatabaseAdapter,
)
from .dbapi import DBAPIAdapter
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

ADAPTERS: dict[str, type] = {
    "sqlite3": SQLiteAdapter,
    "psycopg": PostgresAdapter,
    "pymysql": MySQLAdapter,
}


def adapter_for(driver: str) -> DatabaseAdapter:
    """
    Instantiate the adapter registered for a DB-API driver identifier.
    """
    try:
        return ADAPTERS[driver]()
    except KeyError as exc:
        raise AdapterConfigurationError(f"No adapter registered for driver {driver!r}") from exc


__all__ = [
    "ADAPTERS",
    "ConnectionConfig",
    "DBAPIAdapter",
    "DatabaseAdapter",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "MySQLAdapter",
    "PostgresAdapter",
    "SQLiteAdapter",
    "adapter_for",
]
