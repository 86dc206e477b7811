"""
Utility helpers shared across AmberDB packages.
"""

from .logging import configure_logging, get_logger, redact_params, resolve_slow_query_ms, time_call
from .naming import camel_to_snake, module_name_for

__all__ = [
    "camel_to_snake",
    "configure_logging",
    "get_logger",
    "module_name_for",
    "redact_params",
    "resolve_slow_query_ms",
    "time_call",
]
