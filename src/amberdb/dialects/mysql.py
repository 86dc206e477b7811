"""
MySQL dialect implementation.
"""

from __future__ import annotations

from .base import BaseDialect, DialectCapabilities


class MySQLDialect(BaseDialect):
    """
    MySQL dialect with backtick quoting and ``%s`` placeholders.
    """

    name = "mysql"
    param_style = "pyformat"
    capabilities = DialectCapabilities(supports_returning=False, supports_schema_namespaces=True)
    quote_char = "`"
    auto_column_type = "INTEGER AUTO_INCREMENT PRIMARY KEY"
