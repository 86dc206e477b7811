"""
Translation of entity query-language text into dialect SQL.

The query language names entities and fields rather than tables and columns,
and binds values through named parameters::

    FROM Employee WHERE age < :age ORDER BY name
    DELETE FROM Employee WHERE role = :role
    UPDATE Employee SET role = :role WHERE id = :id

Entity names become quoted tables, field names become quoted columns, and
``:name`` parameters become the dialect's positional placeholders. The
translator records parameter names in placeholder order so values bound by
name can be laid out positionally at execution time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from ..core.model import Entity
from ..dialects.base import Dialect
from ..exceptions import QueryTranslationError

SELECT = "select"
DELETE = "delete"
UPDATE = "update"

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<param>:[A-Za-z_][A-Za-z0-9_]*)
  | (?P<string>'(?:[^']|'')*')
  | (?P<number>\d+(?:\.\d+)?(?![A-Za-z_]))
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)
  | (?P<op><=|>=|<>|!=|=|<|>)
  | (?P<punct>[(),])
    """,
    re.VERBOSE,
)

# Words allowed inside predicates and passed through verbatim.
_PREDICATE_KEYWORDS = frozenset(
    {"AND", "OR", "NOT", "IS", "NULL", "LIKE", "IN", "BETWEEN", "TRUE", "FALSE"}
)
_CLAUSE_KEYWORDS = frozenset({"SELECT", "FROM", "WHERE", "DELETE", "UPDATE", "SET", "ORDER", "BY"})


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int

    @property
    def upper(self) -> str:
        return self.text.upper()


@dataclass(frozen=True)
class TranslatedQuery:
    """
    SQL ready for a DB-API cursor plus the parameter names in placeholder order.
    """

    kind: str
    model: type[Entity]
    sql: str
    param_names: tuple[str, ...]

    def bind(self, values: Mapping[str, object]) -> list[object]:
        missing = [name for name in dict.fromkeys(self.param_names) if name not in values]
        if missing:
            raise QueryTranslationError(f"Unbound parameter(s): {', '.join(missing)}")
        return [values[name] for name in self.param_names]


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise QueryTranslationError(
                f"Unexpected character {text[position]!r} at position {position} in {text!r}"
            )
        kind = match.lastgroup
        if kind != "ws":
            tokens.append(Token(kind, match.group(), position))
        position = match.end()
    return tokens


class QueryTranslator:
    """
    Single-use translator for one query-language statement.
    """

    def __init__(self, text: str, entities: Mapping[str, type[Entity]], dialect: Dialect) -> None:
        self.text = text
        self.entities = entities
        self.dialect = dialect
        self._tokens = tokenize(text)
        self._index = 0
        self._params: list[str] = []
        self._model: type[Entity] | None = None
        self._alias: str | None = None

    def translate(self) -> TranslatedQuery:
        if not self._tokens:
            raise QueryTranslationError("Empty query.")
        head = self._peek_keyword()
        if head == "DELETE":
            return self._translate_delete()
        if head == "UPDATE":
            return self._translate_update()
        if head in {"SELECT", "FROM"}:
            return self._translate_select()
        raise QueryTranslationError(f"Unsupported statement {self.text!r}")

    # Statements ----------------------------------------------------------
    def _translate_select(self) -> TranslatedQuery:
        if self._peek_keyword() == "SELECT":
            self._advance()
            # ``SELECT e FROM Entity e`` selects the whole entity.
            self._expect_kind("ident")
        model = self._parse_from()
        table = self.dialect.format_table(model._meta.table_name)
        columns = ", ".join(
            self.dialect.quote_identifier(field.column_name()) for field in model._meta.get_fields()
        )
        parts = [f"SELECT {columns} FROM {table}"]
        where = self._parse_where()
        if where:
            parts.append(where)
        order = self._parse_order_by()
        if order:
            parts.append(order)
        self._expect_end()
        return self._result(SELECT, " ".join(parts))

    def _translate_delete(self) -> TranslatedQuery:
        self._advance()
        model = self._parse_from()
        parts = [f"DELETE FROM {self.dialect.format_table(model._meta.table_name)}"]
        where = self._parse_where()
        if where:
            parts.append(where)
        self._expect_end()
        return self._result(DELETE, " ".join(parts))

    def _translate_update(self) -> TranslatedQuery:
        self._advance()
        model = self._parse_entity()
        self._expect_keyword("SET")
        assignments: list[str] = []
        while True:
            column = self._field_column(self._expect_kind("ident"))
            self._expect_op("=")
            value = self._render_value(self._advance())
            assignments.append(f"{column} = {value}")
            if self._peek_text() != ",":
                break
            self._advance()
        table = self.dialect.format_table(model._meta.table_name)
        parts = [f"UPDATE {table} SET {', '.join(assignments)}"]
        where = self._parse_where()
        if where:
            parts.append(where)
        self._expect_end()
        return self._result(UPDATE, " ".join(parts))

    # Clauses -------------------------------------------------------------
    def _parse_from(self) -> type[Entity]:
        self._expect_keyword("FROM")
        return self._parse_entity()

    def _parse_entity(self) -> type[Entity]:
        token = self._expect_kind("ident")
        model = self.entities.get(token.text)
        if model is None:
            raise QueryTranslationError(f"Unknown entity {token.text!r} in {self.text!r}")
        self._model = model
        alias = self._peek()
        if alias is not None and alias.kind == "ident" and alias.upper not in _CLAUSE_KEYWORDS:
            self._alias = alias.text
            self._advance()
        return model

    def _parse_where(self) -> str:
        if self._peek_keyword() != "WHERE":
            return ""
        self._advance()
        rendered: list[str] = []
        while self._peek() is not None and self._peek_keyword() not in _CLAUSE_KEYWORDS:
            rendered.append(self._render_predicate_token(self._advance()))
        if not rendered:
            raise QueryTranslationError(f"Empty WHERE clause in {self.text!r}")
        return "WHERE " + _join(rendered)

    def _parse_order_by(self) -> str:
        if self._peek_keyword() != "ORDER":
            return ""
        self._advance()
        self._expect_keyword("BY")
        terms: list[str] = []
        while True:
            term = self._field_column(self._expect_kind("ident"))
            if self._peek_keyword() in {"ASC", "DESC"}:
                term += f" {self._advance().upper}"
            terms.append(term)
            if self._peek_text() != ",":
                break
            self._advance()
        return "ORDER BY " + ", ".join(terms)

    # Token rendering -----------------------------------------------------
    def _render_predicate_token(self, token: Token) -> str:
        if token.kind == "ident":
            if token.upper in _PREDICATE_KEYWORDS:
                return token.upper
            return self._field_column(token)
        return self._render_value(token)

    def _render_value(self, token: Token) -> str:
        if token.kind == "param":
            self._params.append(token.text[1:])
            return self.dialect.parameter_placeholder(len(self._params))
        if token.kind in {"string", "number", "op", "punct"}:
            return token.text
        if token.kind == "ident" and token.upper in {"NULL", "TRUE", "FALSE"}:
            return token.upper
        if token.kind == "ident":
            return self._field_column(token)
        raise QueryTranslationError(f"Unexpected token {token.text!r} in {self.text!r}")

    def _field_column(self, token: Token) -> str:
        assert self._model is not None
        name = token.text
        if "." in name:
            qualifier, name = name.split(".", 1)
            if qualifier != self._alias:
                raise QueryTranslationError(f"Unknown alias {qualifier!r} in {self.text!r}")
        if name not in self._model._meta.fields:
            raise QueryTranslationError(
                f"Unknown field {name!r} on entity {self._model._meta.name!r} in {self.text!r}"
            )
        column = self._model._meta.get_field(name).column_name()
        return self.dialect.quote_identifier(column)

    # Cursor helpers --------------------------------------------------------
    def _peek(self) -> Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _peek_keyword(self) -> str | None:
        token = self._peek()
        if token is None or token.kind != "ident":
            return None
        return token.upper

    def _peek_text(self) -> str | None:
        token = self._peek()
        return token.text if token is not None else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise QueryTranslationError(f"Unexpected end of query {self.text!r}")
        self._index += 1
        return token

    def _expect_kind(self, kind: str) -> Token:
        token = self._advance()
        if token.kind != kind:
            raise QueryTranslationError(
                f"Expected {kind} at position {token.position}, found {token.text!r} in {self.text!r}"
            )
        return token

    def _expect_keyword(self, keyword: str) -> Token:
        token = self._advance()
        if token.kind != "ident" or token.upper != keyword:
            raise QueryTranslationError(
                f"Expected {keyword} at position {token.position}, found {token.text!r} in {self.text!r}"
            )
        return token

    def _expect_op(self, op: str) -> Token:
        token = self._advance()
        if token.kind != "op" or token.text != op:
            raise QueryTranslationError(f"Expected {op!r}, found {token.text!r} in {self.text!r}")
        return token

    def _expect_end(self) -> None:
        token = self._peek()
        if token is not None:
            raise QueryTranslationError(
                f"Unexpected {token.text!r} at position {token.position} in {self.text!r}"
            )

    def _result(self, kind: str, sql: str) -> TranslatedQuery:
        assert self._model is not None
        return TranslatedQuery(kind=kind, model=self._model, sql=sql, param_names=tuple(self._params))


def translate(text: str, entities: Mapping[str, type[Entity]], dialect: Dialect) -> TranslatedQuery:
    return QueryTranslator(text, entities, dialect).translate()


def _join(parts: list[str]) -> str:
    out = ""
    for part in parts:
        if out and not out.endswith("(") and part not in {")", ","}:
            out += " "
        out += part
    return out
