"""Security helpers for AmberDB."""

from .dsns import DSNConfig, build_dsn, parse_dsn

__all__ = ["DSNConfig", "build_dsn", "parse_dsn"]
