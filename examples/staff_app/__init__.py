from .demo import (  # noqa: F401
    bootstrap_database,
    fetch_by_role,
    promote,
    retire_younger_than,
    run_demo,
    seed_sample_data,
)

__all__ = [
    "bootstrap_database",
    "fetch_by_role",
    "promote",
    "retire_younger_than",
    "run_demo",
    "seed_sample_data",
]
