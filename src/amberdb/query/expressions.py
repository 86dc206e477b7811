"""
Comparison expressions accepted by :meth:`Command.where`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

PARAMETER_SIGIL = ":"


@dataclass(frozen=True)
class Comparison:
    """
    A single ``field <operator> value`` predicate.

    The value is always bound as a named parameter called after the field,
    so it never appears in query text. ``str()`` gives the legacy
    ``"field = :value"`` form for callers that splice conditions by hand.
    """

    field: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if not self.field or not self.field.isidentifier():
            raise ValueError(f"Invalid field name {self.field!r}")

    @property
    def parameter(self) -> str:
        return self.field

    def render(self) -> str:
        return f"{self.field} {self.operator} {PARAMETER_SIGIL}{self.parameter}"

    def __str__(self) -> str:
        return f"{self.field} {self.operator} {PARAMETER_SIGIL}{self.value}"


def eq(field: str, value: Any) -> Comparison:
    return Comparison(field, "=", value)


def lt(field: str, value: Any) -> Comparison:
    return Comparison(field, "<", value)
