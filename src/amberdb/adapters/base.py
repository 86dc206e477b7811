"""
Adapter errors, connection settings and the adapter protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence

from ..dialects.base import Dialect
from ..exceptions import OperationFailure
from ..security.dsns import DSNConfig, parse_dsn


class AdapterError(OperationFailure):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when a statement is rejected by the driver."""


def _as_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(raw)


# DSN query-string keys with a known type; everything else is passed to the
# driver as a string.
_TYPED_OPTIONS: dict[str, Callable[[str], Any]] = {
    "autocommit": _as_bool,
    "timeout": float,
    "connect_timeout": int,
    "port": int,
}


def _typed(key: str, raw: str) -> Any:
    convert = _TYPED_OPTIONS.get(key)
    if convert is None:
        return raw
    try:
        return convert(raw)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid value for '{key}' in DSN: {raw!r}") from exc


@dataclass
class ConnectionConfig:
    """
    Everything an adapter needs to open a connection.

    ``url`` is the full DSN. ``dsn`` holds its parsed form when the config
    was built with :meth:`from_dsn`; SQLite configs built directly from a
    path leave it unset.
    """

    url: str
    autocommit: bool = False
    timeout: float | None = None
    options: dict[str, Any] | None = None
    dsn: DSNConfig | None = None
    source: str | None = field(default=None, compare=False)

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Parse ``dsn``; ``autocommit`` and ``timeout`` query keys become
        attributes, other keys become driver options. Explicit keyword
        arguments take precedence over the query string.
        """
        parsed = parse_dsn(dsn)
        query = {key: _typed(key, raw) for key, raw in parsed.query.items()}

        autocommit = query.pop("autocommit", False)
        timeout = query.pop("timeout", None)
        options = {**query, **(kwargs.pop("options", None) or {})}

        if kwargs.get("timeout") is None:
            kwargs["timeout"] = timeout
        kwargs.setdefault("autocommit", autocommit)
        return cls(url=dsn, dsn=parsed, options=options or None, **kwargs)

    def redacted_dsn(self) -> str:
        return self.dsn.redacted() if self.dsn else self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        return f"{self.source} ({redacted})" if self.source else redacted


class DatabaseAdapter(Protocol):
    """
    The DB-API surface the engine relies on.

    ``execute`` returns a cursor-like object exposing ``fetchone``,
    ``fetchall``, ``rowcount`` and ``description``. ``begin``, ``commit``
    and ``rollback`` bracket a transaction. ``last_insert_id`` reads the
    identity generated by the preceding insert, from ``RETURNING`` or from
    the cursor. ``close`` is idempotent.
    """

    dialect: Dialect
    slow_query_ms: int

    def connect(self, config: ConnectionConfig) -> Any: ...

    def close(self) -> None: ...

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any: ...

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any: ...


def row_to_dict(cursor: Any, row: Any) -> dict[str, Any]:
    """
    Key a fetched row by column name, for drivers with and without mapping rows.
    """
    if hasattr(row, "keys"):
        return {key: row[key] for key in row.keys()}
    if getattr(cursor, "description", None):
        return {column[0]: value for column, value in zip(cursor.description, row)}
    raise AdapterExecutionError("Unable to map database row to dictionary.")
