"""
Field descriptors for AmberDB entities.

A field is the per-attribute half of an entity descriptor: it names the
storage column, the Python-side default, the column default rendered into
DDL (``db_default``) and whether the database generates the value.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Optional, cast

if TYPE_CHECKING:
    from .model import Entity


class FieldError(Exception):
    """Internal exception for field configuration issues."""


GENERATION_AUTO = "auto"


class Field:
    """
    Base class for entity field descriptors.

    Values live in the instance's ``_field_values`` mapping and pass through
    :meth:`to_python` on assignment, so an entity only ever holds coerced
    values. ``None`` bypasses coercion and is rejected for non-nullable
    fields unless the field is the primary key.
    """

    default_db_type: ClassVar[Optional[str]] = None
    _creation_counter = 0

    def __init__(
        self,
        *,
        primary_key: bool = False,
        unique: bool = False,
        nullable: bool = True,
        default: Any = None,
        db_type: Optional[str] = None,
        db_column: Optional[str] = None,
        db_default: Any = None,
        generation: Optional[str] = None,
    ) -> None:
        self.primary_key = primary_key
        self.unique = unique
        self.nullable = nullable
        self.default = default
        self.db_type = db_type or self.default_db_type
        self.db_column = db_column
        self.db_default = db_default
        self.generation = generation

        self.model: type["Entity"] | None = None
        self.name: str | None = None
        self.creation_counter = Field._creation_counter
        Field._creation_counter += 1

    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return cast("Entity", instance)._field_values.get(self.require_name())

    def __set__(self, instance: object, value: Any) -> None:
        name = self.require_name()
        if value is None and not (self.nullable or self.primary_key):
            raise ValueError(f"Field '{name}' cannot be None")
        cast("Entity", instance)._field_values[name] = None if value is None else self.to_python(value)

    def contribute_to_class(self, model: type["Entity"], name: str) -> None:
        """
        Bind the field to ``model`` under attribute ``name``.
        """
        self.model = model
        self.name = name
        if self.db_column is None:
            self.db_column = name
        setattr(model, name, self)

    def copy_for(self, model: type["Entity"], name: str) -> "Field":
        """
        Return an unbound copy attached to ``model``; used when a concrete
        entity inherits fields from an abstract base.
        """
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.db_column = None if self.db_column == self.name else self.db_column
        clone.contribute_to_class(model, name)
        return clone

    def require_name(self) -> str:
        if self.name is None:
            raise FieldError("Field name is not set.")
        return self.name

    def column_name(self) -> str:
        return self.db_column or self.require_name()

    @property
    def is_generated(self) -> bool:
        return self.generation == GENERATION_AUTO

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def get_default(self) -> Any:
        return self.default() if callable(self.default) else self.default

    def to_python(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class _ConvertingField(Field):
    """Field whose values are converted with a single callable such as ``int``."""

    converter: ClassVar[Any]
    label: ClassVar[str]

    def to_python(self, value: Any) -> Any:
        try:
            return self.converter(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid {self.label} value '{value}' for field '{self.name}'") from exc


class IntegerField(_ConvertingField):
    default_db_type = "INTEGER"
    converter = int
    label = "integer"


class FloatField(_ConvertingField):
    default_db_type = "REAL"
    converter = float
    label = "float"


class AutoField(IntegerField):
    """
    Integer identity assigned by the database on insert.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(primary_key=True, nullable=False, generation=GENERATION_AUTO, **kwargs)


_TRUE_STRINGS = frozenset({"true", "t", "1"})
_FALSE_STRINGS = frozenset({"false", "f", "0"})


class BooleanField(Field):
    default_db_type = "BOOLEAN"

    def __init__(self, *, default: Any = False, nullable: bool = False, **kwargs: Any) -> None:
        super().__init__(default=default, nullable=nullable, **kwargs)

    def to_python(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise ValueError(f"Invalid boolean value '{value}' for field '{self.name}'")


class StringField(Field):
    def __init__(self, *, max_length: int = 255, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", f"VARCHAR({max_length})")
        super().__init__(**kwargs)
        self.max_length = max_length

    def to_python(self, value: Any) -> str:
        result = str(value)
        if self.max_length and len(result) > self.max_length:
            raise ValueError(
                f"Value for field '{self.require_name()}' exceeds max_length {self.max_length}"
            )
        return result
