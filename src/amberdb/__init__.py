"""
AmberDB public package initialization.

A small persistence layer: TOML-configured connections, entity discovery,
transaction-scoped CRUD and a fluent query builder.
"""

from .config import DatabaseConfig, DriverSpec, load_config, resolve_driver  # noqa: F401
from .core import (  # noqa: F401
    AutoField,
    BooleanField,
    Entity,
    EntityConfigurationError,
    FloatField,
    IntegerField,
    StringField,
    is_persistable,
)
from .database import Database  # noqa: F401
from .exceptions import (  # noqa: F401
    AmberDBError,
    CallerContractError,
    ConfigurationError,
    NotPersistableError,
    OperationFailure,
    QueryStateError,
    QueryTranslationError,
)
from .query import Command, Comparison, eq, lt  # noqa: F401
from .registry import discover, entity_registry  # noqa: F401

__all__ = [
    "AmberDBError",
    "AutoField",
    "BooleanField",
    "CallerContractError",
    "Command",
    "Comparison",
    "ConfigurationError",
    "Database",
    "DatabaseConfig",
    "DriverSpec",
    "Entity",
    "EntityConfigurationError",
    "FloatField",
    "IntegerField",
    "NotPersistableError",
    "OperationFailure",
    "QueryStateError",
    "QueryTranslationError",
    "StringField",
    "discover",
    "entity_registry",
    "eq",
    "is_persistable",
    "load_config",
    "lt",
    "resolve_driver",
]
