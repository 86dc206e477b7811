"""
Fluent query builder bound to a :class:`~amberdb.database.Database`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..core.model import Entity
from ..exceptions import QueryStateError
from .expressions import Comparison, eq, lt

if TYPE_CHECKING:
    from ..database import Database


TEntity = TypeVar("TEntity", bound=Entity)


class Command(Generic[TEntity]):
    """
    Accumulates query text and bound values for one entity type.

    A command is single-use and not thread-safe: each chained call mutates it
    in place, and exactly one terminal action (:meth:`collect` for reads,
    :meth:`execute` after :meth:`delete`) consumes it.

    Example::

        db.query(Employee).from_().where(eq("age", 30)).collect()
    """

    eq = staticmethod(eq)
    lt = staticmethod(lt)

    def __init__(self, database: "Database", model: type[TEntity]) -> None:
        self.database = database
        self.model = model
        self._parts: list[str] = []
        self._params: dict[str, Any] = {}
        self._is_delete = False
        self._consumed = False

    # Clauses -------------------------------------------------------------
    def from_(self) -> "Command[TEntity]":
        fragment = f"FROM {self.model._meta.name}"
        self._parts.append(f" {fragment}" if self._parts else fragment)
        return self

    def delete(self) -> "Command[TEntity]":
        self._parts.append(" DELETE")
        self._is_delete = True
        return self

    def where(self, condition: Comparison | str) -> "Command[TEntity]":
        """
        Append a `` WHERE`` fragment.

        Repeated calls append independent fragments; they are not joined with
        ``AND``.
        """
        if isinstance(condition, Comparison):
            self._params[condition.parameter] = condition.value
            self._parts.append(f" WHERE {condition.render()}")
            return self

        tokens = condition.split(" ")
        field = tokens[0]
        # Drops the first character of the last token whether or not it is the sigil.
        value = tokens[-1][1:]
        self._params[field] = value
        self._parts.append(f" WHERE {condition.replace(value, field)}")
        return self

    # Terminal actions ----------------------------------------------------
    def collect(self) -> list[TEntity] | None:
        if self._is_delete:
            raise QueryStateError("Delete query cannot collect results.")
        self._consume()
        return self.database.execute_select(self.model, self.query, self._params)

    def execute(self) -> int:
        if not self._is_delete:
            raise QueryStateError("Execute can only be called for delete queries.")
        self._consume()
        return self.database.execute_delete(self.query, self._params)

    # Introspection -------------------------------------------------------
    @property
    def query(self) -> str:
        return "".join(self._parts)

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    @property
    def is_delete(self) -> bool:
        return self._is_delete

    def __repr__(self) -> str:
        return f"<Command {self.model._meta.name} {self.query!r} {self._params!r}>"

    def _consume(self) -> None:
        if self._consumed:
            raise QueryStateError("Command has already been executed.")
        self._consumed = True
