"""
Execution engine: scoped sessions, transactions, query translation and schema management.
"""

from .engine import Engine, EngineSession, Query, Transaction
from .schema import SchemaBuilder, SchemaManager
from .translator import TranslatedQuery, translate

__all__ = [
    "Engine",
    "EngineSession",
    "Query",
    "SchemaBuilder",
    "SchemaManager",
    "Transaction",
    "TranslatedQuery",
    "translate",
]
