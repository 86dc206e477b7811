"""
Entity base class and descriptor metadata for AmberDB.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Type

from ..utils import camel_to_snake
from .fields import AutoField, Field


class EntityConfigurationError(Exception):
    """Raised when an entity class is misconfigured."""


@dataclass
class EntityDescriptor:
    """
    Structural description of a persistable type, built once by :class:`EntityMeta`.
    """

    model: Type["Entity"]
    name: str
    table_name: str = ""
    abstract: bool = False
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None

    def add_field(self, field_obj: Field) -> None:
        if field_obj.name in self.fields:
            raise EntityConfigurationError(
                f"Duplicate field name '{field_obj.name}' on entity '{self.name}'"
            )
        self.fields[field_obj.require_name()] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key is not field_obj:
                raise EntityConfigurationError(
                    f"Multiple primary keys defined on entity '{self.name}'"
                )
            self.primary_key = field_obj

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on entity '{self.name}'") from exc

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def field_for_column(self, column: str) -> Optional[Field]:
        for field_obj in self.fields.values():
            if field_obj.column_name() == column:
                return field_obj
        return None


class EntityMeta(type):
    """
    Metaclass collecting declared fields into an :class:`EntityDescriptor`.

    Concrete entity classes register themselves with the module-level entity
    registry as soon as their class body has executed.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "EntityMeta":
        # The Entity root carries no descriptor and is never registered.
        if name == "Entity" and not bases:
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = attrs.get("Meta")
        table_name = camel_to_snake(name)
        abstract = False
        if meta:
            table_name = getattr(meta, "table", table_name)
            abstract = getattr(meta, "abstract", False)

        cls._meta = EntityDescriptor(model=cls, name=name, table_name=table_name, abstract=abstract)

        inherited: list[tuple[str, Field]] = []
        for base in reversed(cls.__mro__[1:]):
            base_meta = base.__dict__.get("_meta")
            if isinstance(base_meta, EntityDescriptor) and base_meta.abstract:
                inherited.extend(
                    (field_name, field_obj)
                    for field_name, field_obj in base_meta.fields.items()
                    if field_name not in declared_fields
                )

        for attr_name, field_obj in inherited:
            cls._meta.add_field(field_obj.copy_for(cls, attr_name))

        sorted_fields = sorted(declared_fields.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in sorted_fields:
            field_obj.contribute_to_class(cls, attr_name)
            cls._meta.add_field(field_obj)

        if not cls._meta.primary_key and not cls._meta.abstract:
            if "id" in cls._meta.fields:
                raise EntityConfigurationError(
                    f"Entity '{name}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            cls._meta.add_field(auto_field)
            cls._meta.fields = OrderedDict(
                sorted(
                    cls._meta.fields.items(),
                    key=lambda item: (0 if item[0] == "id" else 1, item[1].creation_counter),
                )
            )

        if not cls._meta.abstract:
            from ..registry import entity_registry

            entity_registry.register(cls)

        return cls


class Entity(metaclass=EntityMeta):
    """
    Base class for persistable types.

    Instances are plain data containers; the database assigns the identity
    of a generated primary key on insert.
    """

    _meta: EntityDescriptor

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}

        unknown = set(kwargs) - set(self._meta.fields)
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__} got unexpected field(s): {', '.join(sorted(unknown))}"
            )

        for field_obj in self._meta.get_fields():
            name = field_obj.require_name()
            if name in kwargs:
                setattr(self, name, kwargs[name])
            elif field_obj.has_default:
                setattr(self, name, field_obj.get_default())
            else:
                self._field_values[name] = None

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{name}={value!r}" for name, value in self._field_values.items()
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        if self.pk is None:
            return self is other
        return self.pk == other.pk

    def __hash__(self) -> int:
        if self.pk is None:
            return id(self)
        return hash((self.__class__, self.pk))

    @property
    def pk(self) -> Any:
        pk_field = self._meta.primary_key
        if pk_field is None:
            raise EntityConfigurationError(
                f"Entity '{self.__class__.__name__}' does not define a primary key."
            )
        return getattr(self, pk_field.require_name())

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self._meta.fields}

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Entity":
        """
        Build an instance from a column-keyed database row.
        """
        instance = cls.__new__(cls)
        instance._field_values = {}
        for column, value in row.items():
            field_obj = cls._meta.field_for_column(column)
            if field_obj is None:
                continue
            setattr(instance, field_obj.require_name(), value)
        return instance


def is_persistable(obj: Any) -> bool:
    """
    Return ``True`` when ``obj`` is a concrete :class:`Entity` subclass.
    """
    return (
        isinstance(obj, type)
        and issubclass(obj, Entity)
        and obj is not Entity
        and not obj._meta.abstract
    )
