"""
Shared plumbing for adapters built on DB-API 2.0 driver modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Sequence

from ..dialects.base import Dialect
from ..utils import get_logger, redact_params, resolve_slow_query_ms, time_call
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    ConnectionConfig,
)


@dataclass(slots=True)
class ConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any


class DBAPIAdapter:
    """
    Connection, execution and transaction handling common to every bundled adapter.

    Subclasses provide the driver module (:meth:`load_driver`), open the
    connection (:meth:`open_connection`) and override :meth:`begin` or
    :meth:`last_insert_id` where the driver differs. Driver exceptions are
    re-raised as :class:`AdapterConnectionError` or
    :class:`AdapterExecutionError`, so callers only deal with AmberDB errors.
    """

    label: ClassVar[str]
    dialect_class: ClassVar[type]
    driver_hint: ClassVar[str]
    reconnect_when_closed: ClassVar[bool] = False

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect: Dialect = self.dialect_class()
        self._state: ConnectionState | None = None
        self.logger = get_logger(f"adapters.{self.label}")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    # ------------------------------------------------------------------ #
    # Driver hooks
    # ------------------------------------------------------------------ #
    def load_driver(self) -> Any:
        raise NotImplementedError

    def open_connection(self, driver: Any, config: ConnectionConfig) -> Any:
        raise NotImplementedError

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> Any:
        driver = self.load_driver()
        if driver is None:
            raise AdapterConfigurationError(f"{self.driver_hint} is required to use {type(self).__name__}.")
        try:
            connection = self.open_connection(driver, config)
        except AdapterError:
            raise
        except Exception as exc:
            raise AdapterConnectionError(
                f"Failed to connect to {self.label} at {config.redacted_dsn()}: {exc}"
            ) from exc
        self._state = ConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    @property
    def connected(self) -> bool:
        return self._state is not None

    def _ensure_state(self) -> ConnectionState:
        if not self._state:
            raise AdapterConnectionError(f"{type(self).__name__} is not connected.")
        if self.reconnect_when_closed and getattr(self._state.connection, "closed", False):
            self.logger.warning("%s connection closed; reconnecting.", self.label)
            self.connect(self._state.config)
        return self._state

    def _ensure_connection(self) -> Any:
        return self._ensure_state().connection

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        state = self._ensure_state()
        cursor = state.connection.cursor()
        params = params or ()
        with time_call(
            f"{self.label}.execute",
            self.logger,
            sql=sql,
            params=redact_params(params),
            threshold_ms=self.slow_query_ms,
        ):
            try:
                cursor.execute(sql, self.driver_params(params))
            except state.driver.Error as exc:
                raise AdapterExecutionError(f"{type(exc).__name__}: {exc}") from exc
        return cursor

    def driver_params(self, params: Sequence[Any]) -> Any:
        return params

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        # Drivers that open a transaction on the first statement need no BEGIN.
        self._ensure_connection()

    def commit(self) -> None:
        self._ensure_connection().commit()

    def rollback(self) -> None:
        self._ensure_connection().rollback()

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any:
        return cursor.lastrowid
