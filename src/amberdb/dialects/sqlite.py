"""
SQLite dialect implementation.
"""

from __future__ import annotations

from .base import BaseDialect, DialectCapabilities


class SQLiteDialect(BaseDialect):
    """
    SQLite uses qmark placeholders and has no schema namespaces, so a dotted
    table name is quoted as a single identifier.
    """

    name = "sqlite"
    param_style = "qmark"
    capabilities = DialectCapabilities(supports_returning=False, supports_schema_namespaces=False)
    placeholder = "?"
    auto_column_type = "INTEGER PRIMARY KEY AUTOINCREMENT"
