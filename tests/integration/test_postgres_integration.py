import pytest

from amberdb import Entity, IntegerField, StringField, eq, lt

pytestmark = pytest.mark.integration


class PgEmployee(Entity):
    name = StringField(nullable=False)
    age = IntegerField()


def test_postgres_roundtrip(integration_database):
    pytest.importorskip("psycopg")
    db = integration_database("postgresql", "AMBERDB_POSTGRES_DSN", [PgEmployee])
    try:
        ada = PgEmployee(name="Ada", age=36)
        assert db.save(ada)
        assert ada.id is not None
        assert db.save(PgEmployee(name="Kim", age=16))

        ada.age = 37
        assert db.update(ada)
        [found] = db.query(PgEmployee).from_().where(eq("name", "Ada")).collect()
        assert found.age == 37

        assert db.query(PgEmployee).delete().from_().where(lt("age", 18)).execute() == 1
        assert [e.name for e in db.get_all(PgEmployee)] == ["Ada"]
    finally:
        db.close()
