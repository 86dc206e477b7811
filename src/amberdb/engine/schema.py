"""
Schema builder converting entity descriptors into DDL statements, and the
startup schema-management modes that drive it.
"""

from __future__ import annotations

from typing import Iterable, List

from ..core.fields import Field
from ..core.model import Entity
from ..dialects.base import Dialect
from ..exceptions import ConfigurationError, OperationFailure
from ..utils import get_logger
from .engine import Engine

NONE = "none"
CREATE = "create"
CREATE_DROP = "create-drop"
UPDATE = "update"
VALIDATE = "validate"


class SchemaBuilder:
    """
    Produces dialect-specific SQL for schema manipulation.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.logger = get_logger("schema.builder")

    def create_table_sql(self, model: type[Entity]) -> str:
        table_name = self.dialect.format_table(model._meta.table_name)
        column_list = ", ".join(self._render_columns(model))
        return f"CREATE TABLE IF NOT EXISTS {table_name} ({column_list})"

    def drop_table_sql(self, model: type[Entity]) -> str:
        table_name = self.dialect.format_table(model._meta.table_name)
        self.logger.warning("DROP TABLE generated for %s", table_name)
        return f"DROP TABLE IF EXISTS {table_name}"

    def probe_table_sql(self, model: type[Entity]) -> str:
        table_name = self.dialect.format_table(model._meta.table_name)
        return f"SELECT 1 FROM {table_name} WHERE 1 = 0"

    def _render_columns(self, model: type[Entity]) -> List[str]:
        pieces: List[str] = []
        for field in model._meta.get_fields():
            if field.is_generated:
                pieces.append(self.dialect.render_auto_column(field.column_name()))
                continue
            if not field.db_type:
                raise ValueError(f"Field '{field.name}' missing db_type for schema generation.")
            column_def = self.dialect.render_column_definition(
                field.column_name(),
                field.db_type,
                nullable=field.nullable if not field.primary_key else False,
            )
            extras: List[str] = []
            if field.primary_key:
                extras.append("PRIMARY KEY")
            if field.unique and not field.primary_key:
                extras.append("UNIQUE")
            default_sql = self._default_clause(field)
            if default_sql:
                extras.append(default_sql)

            if extras:
                column_def = f"{column_def} {' '.join(extras)}"
            pieces.append(column_def)
        return pieces

    def _default_clause(self, field: Field) -> str | None:
        if field.db_default is None:
            return None
        value = field.db_default
        if isinstance(value, bool):
            return f"DEFAULT {1 if value else 0}"
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"DEFAULT '{escaped}'"
        return f"DEFAULT {value}"


class SchemaManager:
    """
    Applies a schema-management mode to every entity registered with an engine.
    """

    def __init__(self, engine: Engine, mode: str | None = None) -> None:
        self.engine = engine
        self.mode = mode or NONE
        if self.mode not in {NONE, CREATE, CREATE_DROP, UPDATE, VALIDATE}:
            raise ConfigurationError(f"Unknown schema management mode {self.mode!r}")
        self.builder = SchemaBuilder(engine.dialect)
        self.logger = get_logger("schema.manager")

    def on_startup(self) -> None:
        models = self._models()
        if self.mode == NONE or not models:
            return
        self.logger.info("Applying schema mode %r to %d entity type(s)", self.mode, len(models))
        if self.mode == VALIDATE:
            self._validate(models)
            return
        statements: list[str] = []
        if self.mode == CREATE:
            statements.extend(self.builder.drop_table_sql(model) for model in models)
        statements.extend(self.builder.create_table_sql(model) for model in models)
        self._run(statements)

    def on_shutdown(self) -> None:
        if self.mode != CREATE_DROP:
            return
        self._run([self.builder.drop_table_sql(model) for model in self._models()])

    def _validate(self, models: Iterable[type[Entity]]) -> None:
        missing: list[str] = []
        for model in models:
            with self.engine.open_session() as session:
                try:
                    session.adapter.execute(self.builder.probe_table_sql(model))
                except OperationFailure:
                    missing.append(model._meta.table_name)
        if missing:
            raise ConfigurationError(f"Schema validation failed; missing table(s): {', '.join(missing)}")

    def _run(self, statements: list[str]) -> None:
        with self.engine.open_session() as session:
            transaction = session.begin_transaction()
            for sql in statements:
                session.adapter.execute(sql)
            transaction.commit()

    def _models(self) -> list[type[Entity]]:
        return sorted(self.engine.entities.values(), key=lambda model: model._meta.table_name)
