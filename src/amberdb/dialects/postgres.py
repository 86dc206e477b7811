"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from .base import BaseDialect, DialectCapabilities


class PostgresDialect(BaseDialect):
    """
    PostgreSQL dialect for psycopg's ``%s`` placeholders. Generated identities
    come back through ``RETURNING``.
    """

    name = "postgresql"
    param_style = "pyformat"
    capabilities = DialectCapabilities(supports_returning=True, supports_schema_namespaces=True)
    auto_column_type = "SERIAL PRIMARY KEY"
