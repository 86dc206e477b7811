"""
Query construction APIs for AmberDB.
"""

from .command import Command
from .expressions import Comparison, eq, lt

__all__ = ["Command", "Comparison", "eq", "lt"]
