"""
Core building blocks for AmberDB entities and their metadata.
"""

from .fields import (
    AutoField,
    BooleanField,
    Field,
    FloatField,
    IntegerField,
    StringField,
)
from .model import Entity, EntityConfigurationError, EntityDescriptor, EntityMeta, is_persistable

__all__ = [
    "AutoField",
    "BooleanField",
    "Entity",
    "EntityConfigurationError",
    "EntityDescriptor",
    "EntityMeta",
    "Field",
    "FloatField",
    "IntegerField",
    "StringField",
    "is_persistable",
]
