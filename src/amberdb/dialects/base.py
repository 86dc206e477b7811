"""
Dialect strategy interfaces describing SQL rendering behaviors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_returning: bool = False
    supports_schema_namespaces: bool = False


class Dialect(Protocol):
    """
    Strategy interface consumed by the engine, translator, and schema layers.
    """

    @property
    def name(self) -> str: ...

    @property
    def param_style(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def format_table(self, table_name: str) -> str: ...

    def parameter_placeholder(self, position: int | None = None) -> str: ...

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str: ...

    def render_auto_column(self, column: str) -> str: ...


class BaseDialect:
    """
    Shared rendering for the bundled dialects.

    Subclasses pick the identifier quote character, the placeholder token and
    the column type used for database-generated identities.
    """

    name: ClassVar[str]
    param_style: ClassVar[str]
    capabilities: ClassVar[DialectCapabilities] = DialectCapabilities()
    quote_char: ClassVar[str] = '"'
    placeholder: ClassVar[str] = "%s"
    auto_column_type: ClassVar[str]

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace(self.quote_char, self.quote_char * 2)
        return f"{self.quote_char}{escaped}{self.quote_char}"

    def format_table(self, table_name: str) -> str:
        if self.capabilities.supports_schema_namespaces and "." in table_name:
            schema, table = table_name.split(".", 1)
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table_name)

    def parameter_placeholder(self, position: int | None = None) -> str:
        return self.placeholder

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        null_clause = "" if nullable else " NOT NULL"
        return f"{self.quote_identifier(column)} {column_type}{null_clause}"

    def render_auto_column(self, column: str) -> str:
        return f"{self.quote_identifier(column)} {self.auto_column_type}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
