"""
Exception hierarchy shared by every AmberDB layer.
"""

from __future__ import annotations


class AmberDBError(Exception):
    """Base class for all AmberDB errors."""


class ConfigurationError(AmberDBError):
    """Raised when database settings are missing, unreadable, or invalid."""


class CallerContractError(AmberDBError):
    """Raised when the caller breaks the contract of an operation."""


class NotPersistableError(CallerContractError, TypeError):
    """Raised when an object whose type is not a persistable entity is handed to the database."""

    def __init__(self, obj: object) -> None:
        self.obj = obj
        name = obj.__name__ if isinstance(obj, type) else type(obj).__name__
        super().__init__(f"{name} is not a persistable entity type")


class QueryStateError(CallerContractError):
    """Raised when a query builder terminal action does not match its state."""


class OperationFailure(AmberDBError):
    """Raised by the execution engine when a statement or transaction fails."""


class QueryTranslationError(OperationFailure):
    """Raised when query-language text cannot be translated into SQL."""
