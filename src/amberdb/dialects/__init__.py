"""
Dialect strategy registry.
"""

from .base import BaseDialect, Dialect, DialectCapabilities
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect

DIALECTS = {
    SQLiteDialect.name: SQLiteDialect,
    PostgresDialect.name: PostgresDialect,
    MySQLDialect.name: MySQLDialect,
}


def get_dialect(name: str) -> Dialect:
    try:
        return DIALECTS[name]()
    except KeyError as exc:
        raise ValueError(f"Unknown dialect '{name}'") from exc


__all__ = [
    "DIALECTS",
    "BaseDialect",
    "Dialect",
    "DialectCapabilities",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "get_dialect",
]
