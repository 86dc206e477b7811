"""
Staff example: configure from TOML, save, update, query and bulk-delete employees.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from amberdb import Database, DatabaseConfig, eq, lt

from .models import Employee

CONFIG_PATH = Path(__file__).with_name("config.toml")


def bootstrap_database(url: str = ":memory:") -> Database:
    config = DatabaseConfig.from_mapping(
        {"driver": "sqlite", "url": url, "ddl": "update"}, source="staff_example"
    )
    return Database(config, models=[Employee])


def seed_sample_data(db: Database) -> List[Employee]:
    staff = [
        Employee(name="Ada", role="engineer", age=36),
        Employee(name="Grace", role="admiral", age=79),
        Employee(name="Linus", role="intern", age=21),
        Employee(name="Mary", role="intern", age=19),
    ]
    for employee in staff:
        db.save(employee)
    return staff


def promote(db: Database, employee: Employee, role: str) -> bool:
    employee.role = role
    return db.update(employee)


def fetch_by_role(db: Database, role: str) -> List[Dict[str, Any]]:
    rows = db.query(Employee).from_().where(eq("role", role)).collect() or []
    return [row.to_dict() for row in rows]


def retire_younger_than(db: Database, age: int) -> int:
    return db.query(Employee).delete().from_().where(lt("age", age)).execute()


def run_demo(url: str = ":memory:") -> Dict[str, Any]:
    db = bootstrap_database(url)
    try:
        staff = seed_sample_data(db)
        promote(db, staff[2], "engineer")
        engineers = fetch_by_role(db, "engineer")
        removed = retire_younger_than(db, 20)
        remaining = [employee.name for employee in db.get_all(Employee) or []]
        return {"engineers": engineers, "removed": removed, "remaining": remaining}
    finally:
        db.close()


if __name__ == "__main__":
    summary = run_demo("staff_demo.db")
    for engineer in summary["engineers"]:
        print(f"{engineer['name']} ({engineer['age']})")
    print(f"removed {summary['removed']}, remaining: {', '.join(summary['remaining'])}")
