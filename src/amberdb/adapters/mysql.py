"""
MySQL database adapter implementation.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..dialects.mysql import MySQLDialect
from .base import AdapterConfigurationError, ConnectionConfig
from .dbapi import DBAPIAdapter


def _load_driver():
    try:
        import pymysql  # type: ignore[import-untyped]

        return pymysql
    except ImportError:
        try:
            import MySQLdb

            return MySQLdb
        except ImportError:
            return None


class MySQLAdapter(DBAPIAdapter):
    """
    Adapter wrapping a MySQL DB-API driver (PyMySQL or mysqlclient).
    """

    label = "mysql"
    dialect_class = MySQLDialect
    driver_hint = "PyMySQL or mysqlclient"

    def load_driver(self) -> Any:
        return _load_driver()

    def connect(self, config: ConnectionConfig) -> Any:
        if not config.dsn:
            raise AdapterConfigurationError(
                "ConnectionConfig must be built from a DSN for MySQL connections."
            )
        return super().connect(config)

    def open_connection(self, driver: Any, config: ConnectionConfig) -> Any:
        dsn = config.dsn
        assert dsn is not None
        options = dict(config.options or {})
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)
        self.logger.info(
            "Connecting to MySQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )
        connect_kwargs = {
            "host": dsn.host or "localhost",
            "user": dsn.username,
            "password": dsn.password,
            "database": dsn.database,
            **options,
        }
        if dsn.port:
            connect_kwargs["port"] = dsn.port
        connection = driver.connect(**connect_kwargs)
        connection.autocommit(config.autocommit)
        return connection

    def driver_params(self, params: Sequence[Any]) -> Any:
        # PyMySQL formats the statement with ``%`` when params are given.
        return params or None

    def begin(self) -> None:
        self._ensure_connection().begin()
