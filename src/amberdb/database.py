"""
Database facade: configuration-driven engine setup and transaction-scoped CRUD.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from .config import DatabaseConfig, load_config
from .core.model import Entity, is_persistable
from .engine import Engine, EngineSession, SchemaManager, Transaction
from .exceptions import ConfigurationError, NotPersistableError
from .query import Command
from .registry import discover, entity_registry
from .utils import get_logger

TEntity = TypeVar("TEntity", bound=Entity)


class Database:
    """
    Single point of contact with the execution engine.

    Every operation opens its own engine session and, for writes, its own
    transaction. Write and read failures are rolled back and logged rather
    than raised: ``save``/``update`` return ``False``, ``get_all`` and
    ``execute_select`` return ``None``, ``execute_delete`` returns ``0``.
    Passing an object that is not a persistable entity, or misusing a
    :class:`~amberdb.query.Command`, raises immediately.
    """

    def __init__(
        self,
        config: DatabaseConfig | str | os.PathLike[str] | None = None,
        *,
        models: Optional[Iterable[type[Entity]]] = None,
    ) -> None:
        self.logger = get_logger("database")
        self.config = config if isinstance(config, DatabaseConfig) else load_config(config)

        spec = self.config.driver_spec
        if not spec.resolved:
            raise ConfigurationError(
                f"Unsupported driver {self.config.driver!r}; no dialect or driver is known for it."
            )

        self.engine = Engine(self.config.connection_config(), spec)
        try:
            self.engine.register(self._resolve_models(models))
            self.schema = SchemaManager(self.engine, self.config.ddl)
            self.schema.on_startup()
        except BaseException:
            self.engine.dispose()
            raise
        self.logger.info(
            "Database ready on %s with %d entity type(s)",
            self.config.redacted_dsn(),
            len(self.engine.entities),
        )

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        try:
            self.schema.on_shutdown()
        finally:
            self.engine.dispose()

    @property
    def models(self) -> set[type[Entity]]:
        return set(self.engine.entities.values())

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def save(self, entity: Entity) -> bool:
        """
        Insert a new entity. Returns ``False`` when the insert failed and was rolled back.
        """
        self._require_persistable(entity)
        return self._write(entity, "saving", lambda session: session.persist(entity))

    def update(self, entity: Entity) -> bool:
        """
        Upsert an entity by identity. Returns ``False`` when the merge failed and was rolled back.
        """
        self._require_persistable(entity)
        return self._write(entity, "updating", lambda session: session.merge(entity))

    def _write(self, entity: Entity, verb: str, action: Callable[[EngineSession], Any]) -> bool:
        try:
            with self.engine.open_session() as session:
                transaction = session.begin_transaction()
                try:
                    action(session)
                    transaction.commit()
                except Exception:
                    self._rollback(transaction)
                    raise
        except Exception as exc:
            self.logger.error("Error %s(%s): %s", verb, type(entity).__name__, exc)
            return False
        return True

    # ------------------------------------------------------------------ #
    # Reads and bulk statements
    # ------------------------------------------------------------------ #
    def query(self, model: type[TEntity]) -> Command[TEntity]:
        if not is_persistable(model):
            raise NotPersistableError(model)
        return Command(self, model)

    def get_all(self, model: type[TEntity]) -> list[TEntity] | None:
        name = model._meta.name if is_persistable(model) else model.__name__
        try:
            with self.engine.open_session() as session:
                return session.create_query(f"FROM {name}", model).get_result_list()
        except Exception as exc:
            self.logger.error("Error retrieving info for(%s): %s", name, exc)
            return None

    def execute_select(
        self, model: type[TEntity], query_text: str, params: Mapping[str, Any]
    ) -> list[TEntity] | None:
        session: EngineSession | None = None
        transaction: Transaction | None = None
        try:
            session = self.engine.open_session()
            transaction = session.begin_transaction()
            query = session.create_query(query_text, model)
            for name, value in params.items():
                query.set_parameter(name, value)
            results = query.get_result_list()
            transaction.commit()
            return results
        except Exception:
            self._rollback(transaction)
            self.logger.exception("Select failed: %s", query_text)
            return None
        finally:
            if session is not None:
                session.close()

    def execute_delete(self, query_text: str, params: Mapping[str, Any]) -> int:
        session: EngineSession | None = None
        transaction: Transaction | None = None
        try:
            session = self.engine.open_session()
            transaction = session.begin_transaction()
            query = session.create_query(query_text)
            for name, value in params.items():
                query.set_parameter(name, value)
            row_count = query.execute_update()
            transaction.commit()
            return row_count
        except Exception:
            self._rollback(transaction)
            self.logger.exception("Bulk statement failed: %s", query_text)
            return 0
        finally:
            if session is not None:
                session.close()

    # ------------------------------------------------------------------ #
    def _resolve_models(self, models: Optional[Iterable[type[Entity]]]) -> set[type[Entity]]:
        if models is not None:
            return set(models)
        if self.config.entities:
            try:
                return entity_registry.load_manifest(self.config.entities)
            except ImportError as exc:
                raise ConfigurationError(f"Cannot import entity module: {exc}") from exc
        if self.config.scan_paths:
            return discover(self.config.scan_paths)
        return entity_registry.models()

    def _rollback(self, transaction: Transaction | None) -> None:
        if transaction is None:
            return
        try:
            transaction.rollback()
        except Exception as exc:
            self.logger.warning("Rollback failed: %s", exc)

    @staticmethod
    def _require_persistable(entity: object) -> None:
        if not is_persistable(type(entity)):
            raise NotPersistableError(entity)

    def __repr__(self) -> str:
        return f"<Database {self.config.redacted_dsn()}>"
