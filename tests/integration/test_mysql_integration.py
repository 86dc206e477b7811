import importlib.util

import pytest

from amberdb import Entity, IntegerField, StringField, eq, lt

pytestmark = pytest.mark.integration


class MyEmployee(Entity):
    name = StringField(nullable=False)
    age = IntegerField()


def test_mysql_roundtrip(integration_database):
    if importlib.util.find_spec("pymysql") is None and importlib.util.find_spec("MySQLdb") is None:
        pytest.skip("No MySQL driver installed")
    db = integration_database("mysql", "AMBERDB_MYSQL_DSN", [MyEmployee])
    try:
        grace = MyEmployee(name="Grace", age=79)
        assert db.save(grace)
        assert grace.id is not None
        assert db.save(MyEmployee(name="Lin", age=17))

        grace.age = 80
        assert db.update(grace)
        [found] = db.query(MyEmployee).from_().where(eq("name", "Grace")).collect()
        assert found.age == 80

        assert db.query(MyEmployee).delete().from_().where(lt("age", 18)).execute() == 1
        assert [e.name for e in db.get_all(MyEmployee)] == ["Grace"]
    finally:
        db.close()
