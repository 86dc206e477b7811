"""
Database configuration loading.

Settings live in the ``[database]`` table of a TOML document::

    [database]
    driver = "postgresql"
    url = "localhost:5432/app"
    username = "app"
    password = "secret"
    ddl = "update"

``url`` is the driver-specific location; the scheme is added internally.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, NamedTuple

from .adapters.base import ConnectionConfig
from .exceptions import ConfigurationError
from .security.dsns import build_dsn
from .utils import get_logger

CONFIG_ENV_VAR = "AMBERDB_CONFIG"
DEFAULT_CONFIG_PATH = "config.toml"

EMBEDDED_DRIVER = "sqlite"

DDL_MODES = frozenset({"none", "create", "create-drop", "update", "validate"})

logger = get_logger("config")


class DriverSpec(NamedTuple):
    """
    Identifiers the engine needs for a driver kind: dialect name and DB-API module name.
    """

    dialect: str | None
    driver: str | None

    @property
    def resolved(self) -> bool:
        return self.dialect is not None and self.driver is not None


_DRIVERS: dict[str, DriverSpec] = {
    "sqlite": DriverSpec("sqlite", "sqlite3"),
    "mysql": DriverSpec("mysql", "pymysql"),
    "postgresql": DriverSpec("postgresql", "psycopg"),
}


def resolve_driver(kind: str | None) -> DriverSpec:
    """
    Map a driver kind to its identifiers. Unknown kinds resolve to ``(None, None)``.
    """
    if kind is None:
        return DriverSpec(None, None)
    return _DRIVERS.get(kind, DriverSpec(None, None))


@dataclass(frozen=True)
class DatabaseConfig:
    driver: str
    url: str
    username: str | None = None
    password: str | None = None
    ddl: str | None = None
    entities: tuple[str, ...] = ()
    scan_paths: tuple[str, ...] = ()
    timeout: float | None = None
    source: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: str | None = None) -> "DatabaseConfig":
        """
        Validate the contents of a ``[database]`` table.
        """

        for key in ("driver", "url"):
            if not isinstance(data.get(key), str) or not data[key]:
                raise ConfigurationError(f"[database] {key} must be a non-empty string ({source})")

        driver = data["driver"]
        username = data.get("username")
        password = data.get("password")
        if driver == EMBEDDED_DRIVER:
            if username is not None or password is not None:
                logger.warning("Ignoring credentials configured for embedded driver %r", driver)
            username = password = None
        elif resolve_driver(driver).resolved and (username is None or password is None):
            raise ConfigurationError(
                f"[database] username and password are required for driver {driver!r} ({source})"
            )

        ddl = data.get("ddl")
        if ddl is not None and ddl not in DDL_MODES:
            raise ConfigurationError(
                f"[database] ddl must be one of {', '.join(sorted(DDL_MODES))}, got {ddl!r}"
            )

        timeout = data.get("timeout")
        if timeout is not None and not isinstance(timeout, (int, float)):
            raise ConfigurationError(f"[database] timeout must be a number, got {timeout!r}")

        known = {"driver", "url", "username", "password", "ddl", "entities", "scan_paths", "timeout"}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown [database] key(s): %s", ", ".join(unknown))
        return cls(
            driver=driver,
            url=data["url"],
            username=username,
            password=password,
            ddl=ddl,
            entities=_string_tuple(data, "entities"),
            scan_paths=_string_tuple(data, "scan_paths"),
            timeout=float(timeout) if timeout is not None else None,
            source=source,
        )

    @property
    def driver_spec(self) -> DriverSpec:
        return resolve_driver(self.driver)

    @property
    def dsn(self) -> str:
        if self.driver == EMBEDDED_DRIVER:
            return f"sqlite:///{self.url}"
        return build_dsn(self.driver, self.url, self.username, self.password)

    def connection_config(self) -> ConnectionConfig:
        if self.driver == EMBEDDED_DRIVER:
            return ConnectionConfig(url=self.dsn, timeout=self.timeout, source=self.source)
        return ConnectionConfig.from_dsn(self.dsn, timeout=self.timeout, source=self.source)

    def redacted_dsn(self) -> str:
        return self.connection_config().redacted_dsn()


def load_config(path: str | os.PathLike[str] | None = None) -> DatabaseConfig:
    """
    Read the ``[database]`` table from a TOML file.

    ``path`` defaults to ``$AMBERDB_CONFIG`` and then ``config.toml`` in the
    working directory.
    """

    if path is None:
        path = os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    config_path = Path(path)

    try:
        with config_path.open("rb") as fh:
            document = tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"{config_path} does not exist.") from exc
    except OSError as exc:
        raise ConfigurationError(f"{config_path} could not be read: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"{config_path} is not valid TOML: {exc}") from exc

    section = document.get("database")
    if not isinstance(section, dict):
        raise ConfigurationError(f"{config_path} has no [database] table.")

    config = DatabaseConfig.from_mapping(section, source=str(config_path))
    logger.debug("Loaded database configuration from %s", config_path)
    return config


def _string_tuple(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key, ())
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"[database] {key} must be a list of strings")
    return tuple(value)
