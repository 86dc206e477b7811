"""
Execution engine: connection handling, scoped sessions, transactions and queries.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, Mapping

from ..adapters import adapter_for
from ..adapters.base import ConnectionConfig, DatabaseAdapter, row_to_dict
from ..adapters.sqlite import MEMORY_PATH, normalize_path
from ..config import DriverSpec
from ..core.model import Entity, is_persistable
from ..dialects import get_dialect
from ..dialects.base import Dialect
from ..exceptions import ConfigurationError, NotPersistableError, OperationFailure, QueryTranslationError
from ..utils import get_logger
from .translator import SELECT, TranslatedQuery, translate


class Engine:
    """
    Owns connection settings, the registered entity set and the dialect.

    Every :class:`EngineSession` gets its own adapter connection, except for
    in-memory SQLite where all sessions share one connection so the data
    outlives each session. Such a session holds the engine's memory lock
    until it is closed, so threads take turns on the shared connection and
    its transaction. The lock is reentrant: nested sessions on one thread
    share a single transaction.
    """

    def __init__(self, connection_config: ConnectionConfig, spec: DriverSpec) -> None:
        if not spec.resolved:
            raise ConfigurationError(
                f"Cannot build an engine without dialect and driver identifiers ({spec})."
            )
        self.connection_config = connection_config
        self.spec = spec
        self.dialect: Dialect = get_dialect(spec.dialect)
        self.logger = get_logger("engine")
        self._entities: dict[str, type[Entity]] = {}
        self._lock = threading.Lock()
        self._memory_lock = threading.RLock()
        self._shared_adapter: DatabaseAdapter | None = None
        self._disposed = False

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def register(self, models: Iterable[type[Entity]]) -> None:
        for model in models:
            if not is_persistable(model):
                raise NotPersistableError(model)
            name = model._meta.name
            existing = self._entities.get(name)
            if existing is not None and existing is not model:
                raise ConfigurationError(
                    f"Entity name {name!r} is registered twice "
                    f"({existing.__module__} and {model.__module__})."
                )
            self._entities[name] = model
        self.logger.debug("Registered entities: %s", ", ".join(sorted(self._entities)))

    @property
    def entities(self) -> Mapping[str, type[Entity]]:
        return dict(self._entities)

    def check_registered(self, model: type[Entity]) -> None:
        if self._entities.get(model._meta.name) is not model:
            raise OperationFailure(f"Entity {model._meta.name!r} is not registered with this engine.")

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #
    def open_session(self) -> "EngineSession":
        if self._disposed:
            raise OperationFailure("Engine has been disposed.")
        if self._is_shared_memory():
            self._memory_lock.acquire()
            try:
                with self._lock:
                    if self._shared_adapter is None:
                        self._shared_adapter = self._connect()
                    adapter = self._shared_adapter
            except BaseException:
                self._memory_lock.release()
                raise
            return EngineSession(self, adapter, owns_adapter=False, release=self._memory_lock.release)
        return EngineSession(self, self._connect(), owns_adapter=True)

    def dispose(self) -> None:
        with self._lock:
            if self._shared_adapter is not None:
                self._shared_adapter.close()
                self._shared_adapter = None
            self._disposed = True

    def _connect(self) -> DatabaseAdapter:
        adapter = adapter_for(self.spec.driver)
        adapter.connect(self.connection_config)
        return adapter

    def _is_shared_memory(self) -> bool:
        return self.spec.dialect == "sqlite" and normalize_path(self.connection_config.url) == MEMORY_PATH


class Transaction:
    """
    Handle returned by :meth:`EngineSession.begin_transaction`.
    """

    def __init__(self, session: "EngineSession") -> None:
        self.session = session
        self.active = True

    def commit(self) -> None:
        self._require_active()
        self.session.adapter.commit()
        self.active = False

    def rollback(self) -> None:
        if not self.active:
            return
        self.active = False
        self.session.adapter.rollback()

    def _require_active(self) -> None:
        if not self.active:
            raise OperationFailure("Transaction is no longer active.")


class EngineSession:
    """
    Short-lived handle bounding one unit of work. Use as a context manager to
    guarantee release.
    """

    def __init__(
        self,
        engine: Engine,
        adapter: DatabaseAdapter,
        *,
        owns_adapter: bool,
        release: Callable[[], None] | None = None,
    ) -> None:
        self.engine = engine
        self.adapter = adapter
        self.dialect = engine.dialect
        self._owns_adapter = owns_adapter
        self._closed = False
        self._transaction: Transaction | None = None
        self._release = release

    def __enter__(self) -> "EngineSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._transaction is not None and self._transaction.active:
                self._transaction.rollback()
            if self._owns_adapter:
                self.adapter.close()
        finally:
            if self._release is not None:
                self._release()

    def begin_transaction(self) -> Transaction:
        self._require_open()
        self.adapter.begin()
        self._transaction = Transaction(self)
        return self._transaction

    # ------------------------------------------------------------------ #
    # Entity lifecycle
    # ------------------------------------------------------------------ #
    def persist(self, entity: Entity) -> None:
        """
        Insert a transient entity and assign its generated identity.
        """
        self._require_open()
        model = self._registered_model(entity)
        pk_field = model._meta.primary_key
        if pk_field is not None and pk_field.is_generated and entity.pk is not None:
            raise OperationFailure(
                f"Detached {model._meta.name} with id {entity.pk!r} passed to persist; use merge."
            )
        self._insert(entity)

    def merge(self, entity: Entity) -> Entity:
        """
        Upsert by identity: update the row carrying the entity's primary key,
        or insert when no such row exists.
        """
        self._require_open()
        model = self._registered_model(entity)
        pk_field = model._meta.primary_key
        if pk_field is None or entity.pk is None:
            self._insert(entity)
            return entity

        table = self.dialect.format_table(model._meta.table_name)
        pk_clause = f"{self.dialect.quote_identifier(pk_field.column_name())} = {self.dialect.parameter_placeholder()}"
        cursor = self.adapter.execute(f"SELECT 1 FROM {table} WHERE {pk_clause}", [entity.pk])
        if cursor.fetchone() is None:
            self._insert(entity)
            return entity

        assignments: list[str] = []
        params: list[Any] = []
        for field in model._meta.get_fields():
            if field.primary_key:
                continue
            assignments.append(
                f"{self.dialect.quote_identifier(field.column_name())} = {self.dialect.parameter_placeholder()}"
            )
            params.append(getattr(entity, field.require_name()))
        if assignments:
            params.append(entity.pk)
            self.adapter.execute(f"UPDATE {table} SET {', '.join(assignments)} WHERE {pk_clause}", params)
        return entity

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def create_query(self, text: str, model: type[Entity] | None = None) -> "Query":
        self._require_open()
        translated = translate(text, self.engine.entities, self.dialect)
        if model is not None and translated.model is not model:
            raise QueryTranslationError(
                f"Query selects {translated.model._meta.name!r} but {model._meta.name!r} was expected."
            )
        return Query(self, translated)

    # ------------------------------------------------------------------ #
    def _insert(self, entity: Entity) -> None:
        model = type(entity)
        columns: list[str] = []
        params: list[Any] = []
        for field in model._meta.get_fields():
            value = getattr(entity, field.require_name())
            if value is None and (field.is_generated or field.db_default is not None):
                continue
            columns.append(self.dialect.quote_identifier(field.column_name()))
            params.append(value)

        table = self.dialect.format_table(model._meta.table_name)
        pk_field = model._meta.primary_key
        if columns:
            placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in columns)
            sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"
        needs_identity = pk_field is not None and entity.pk is None
        if needs_identity and self.dialect.capabilities.supports_returning:
            sql += f" RETURNING {self.dialect.quote_identifier(pk_field.column_name())}"

        cursor = self.adapter.execute(sql, params)
        if needs_identity:
            pk_value = self.adapter.last_insert_id(cursor, model._meta.table_name, pk_field.column_name())
            setattr(entity, pk_field.require_name(), pk_value)

    def _registered_model(self, entity: Entity) -> type[Entity]:
        model = type(entity)
        if not is_persistable(model):
            raise NotPersistableError(entity)
        self.engine.check_registered(model)
        return model

    def _require_open(self) -> None:
        if self._closed:
            raise OperationFailure("Session is closed.")


class Query:
    """
    A translated statement awaiting parameter values.
    """

    def __init__(self, session: EngineSession, translated: TranslatedQuery) -> None:
        self.session = session
        self.translated = translated
        self._values: dict[str, Any] = {}

    def set_parameter(self, name: str, value: Any) -> "Query":
        """
        Bind ``value`` to ``:name``. Parameters named after a field of the
        queried entity are converted to that field's type.
        """
        if name not in self.translated.param_names:
            raise QueryTranslationError(f"Query has no parameter named {name!r}: {self.translated.sql}")
        fields = self.translated.model._meta.fields
        if name in fields and value is not None:
            try:
                value = fields[name].to_python(value)
            except ValueError as exc:
                raise QueryTranslationError(f"Invalid value for parameter {name!r}: {exc}") from exc
        self._values[name] = value
        return self

    def get_result_list(self) -> list[Entity]:
        if self.translated.kind != SELECT:
            raise OperationFailure(f"Not a select statement: {self.translated.sql}")
        self.session._require_open()
        cursor = self.session.adapter.execute(self.translated.sql, self.translated.bind(self._values))
        model = self.translated.model
        return [model.from_row(row_to_dict(cursor, row)) for row in cursor.fetchall()]

    def execute_update(self) -> int:
        if self.translated.kind == SELECT:
            raise OperationFailure(f"Not an update or delete statement: {self.translated.sql}")
        self.session._require_open()
        cursor = self.session.adapter.execute(self.translated.sql, self.translated.bind(self._values))
        return max(cursor.rowcount, 0)


__all__ = ["Engine", "EngineSession", "Query", "Transaction"]
