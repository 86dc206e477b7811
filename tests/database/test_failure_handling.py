import logging

import pytest

from amberdb import Database, DatabaseConfig, Entity, OperationFailure, StringField


class Ticket(Entity):
    subject = StringField()


class Recorder:
    def __init__(self, fail_at=None):
        self.fail_at = fail_at
        self.events = []

    def step(self, name):
        self.events.append(name)
        if self.fail_at == name:
            raise OperationFailure(f"{name} failed")

    def count(self, name):
        return self.events.count(name)


class FakeTransaction:
    def __init__(self, recorder):
        self.recorder = recorder

    def commit(self):
        self.recorder.step("commit")

    def rollback(self):
        self.recorder.step("rollback")


class FakeQuery:
    def __init__(self, recorder):
        self.recorder = recorder

    def set_parameter(self, name, value):
        self.recorder.step("bind")
        return self

    def get_result_list(self):
        self.recorder.step("execute")
        return []

    def execute_update(self):
        self.recorder.step("execute")
        return 3


class FakeSession:
    def __init__(self, recorder):
        self.recorder = recorder

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def begin_transaction(self):
        self.recorder.step("begin")
        return FakeTransaction(self.recorder)

    def create_query(self, text, model=None):
        self.recorder.step("build")
        return FakeQuery(self.recorder)

    def persist(self, entity):
        self.recorder.step("write")

    def merge(self, entity):
        self.recorder.step("write")
        return entity

    def close(self):
        self.recorder.step("close")


class FakeEngine:
    def __init__(self, recorder):
        self.recorder = recorder
        self.entities = {"Ticket": Ticket}

    def open_session(self):
        self.recorder.step("open")
        return FakeSession(self.recorder)

    def dispose(self):
        pass


@pytest.fixture
def make_db():
    databases = []

    def factory(fail_at=None):
        config = DatabaseConfig.from_mapping({"driver": "sqlite", "url": ":memory:"})
        database = Database(config, models=[Ticket])
        database.engine.dispose()
        recorder = Recorder(fail_at)
        database.engine = FakeEngine(recorder)
        databases.append(database)
        return database, recorder

    yield factory
    for database in databases:
        database.close()


def test_select_runs_steps_in_order(make_db):
    db, recorder = make_db()
    assert db.execute_select(Ticket, "FROM Ticket WHERE subject = :subject", {"subject": "x"}) == []
    assert recorder.events == ["open", "begin", "build", "bind", "execute", "commit", "close"]


def test_delete_runs_steps_in_order(make_db):
    db, recorder = make_db()
    assert db.execute_delete("DELETE FROM Ticket", {}) == 3
    assert recorder.events == ["open", "begin", "build", "execute", "commit", "close"]


@pytest.mark.parametrize("fail_at", ["build", "bind", "execute", "commit"])
def test_select_failure_rolls_back_and_closes_once(make_db, fail_at, caplog):
    caplog.set_level(logging.ERROR, logger="amberdb.database")
    db, recorder = make_db(fail_at)
    assert db.execute_select(Ticket, "FROM Ticket WHERE subject = :subject", {"subject": "x"}) is None
    assert recorder.count("rollback") == 1
    assert recorder.count("close") == 1
    assert recorder.events[-1] == "close"
    assert "Select failed" in caplog.text


@pytest.mark.parametrize("fail_at", ["build", "execute", "commit"])
def test_delete_failure_rolls_back_and_closes_once(make_db, fail_at):
    db, recorder = make_db(fail_at)
    assert db.execute_delete("DELETE FROM Ticket", {}) == 0
    assert recorder.count("rollback") == 1
    assert recorder.count("close") == 1


def test_failure_opening_session_has_nothing_to_release(make_db):
    db, recorder = make_db("open")
    assert db.execute_select(Ticket, "FROM Ticket", {}) is None
    assert recorder.events == ["open"]


@pytest.mark.parametrize("method", ["save", "update"])
@pytest.mark.parametrize("fail_at", ["write", "commit"])
def test_write_failure_rolls_back_and_returns_false(make_db, method, fail_at):
    db, recorder = make_db(fail_at)
    assert getattr(db, method)(Ticket(subject="printer")) is False
    assert recorder.count("rollback") == 1
    assert recorder.count("close") == 1
    assert recorder.events[-2:] == ["rollback", "close"]


def test_non_persistable_write_never_touches_engine(make_db):
    db, recorder = make_db()
    with pytest.raises(TypeError):
        db.save(42)
    with pytest.raises(TypeError):
        db.update("ticket")
    with pytest.raises(TypeError):
        db.query(int)
    assert recorder.events == []
