import os

import pytest

from amberdb import Database, DatabaseConfig
from amberdb.security import parse_dsn


def database_for(driver, env_var, models):
    """
    Build a Database from a DSN in ``env_var``, skipping when the server is unavailable.
    """
    dsn = os.getenv(env_var)
    if not dsn:
        pytest.skip(f"{env_var} not set; skipping {driver} integration test")
    parsed = parse_dsn(dsn)
    location = parsed.host or "localhost"
    if parsed.port:
        location += f":{parsed.port}"
    config = DatabaseConfig.from_mapping(
        {
            "driver": driver,
            "url": f"{location}/{parsed.database}",
            "username": parsed.username or "",
            "password": parsed.password or "",
            "ddl": "create-drop",
        },
        source=env_var,
    )
    try:
        return Database(config, models=models)
    except Exception as exc:  # pragma: no cover - environment dependent
        pytest.skip(f"Cannot connect to {driver} for integration test: {exc}")


@pytest.fixture
def integration_database():
    return database_for
