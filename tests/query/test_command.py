import pytest

from amberdb import Entity, IntegerField, QueryStateError, StringField
from amberdb.query import Command, Comparison, eq, lt


class Person(Entity):
    name = StringField()
    age = IntegerField()


class RecordingDatabase:
    def __init__(self):
        self.calls = []

    def execute_select(self, model, query_text, params):
        self.calls.append(("select", model, query_text, dict(params)))
        return []

    def execute_delete(self, query_text, params):
        self.calls.append(("delete", query_text, dict(params)))
        return 2


def make_command():
    db = RecordingDatabase()
    return db, Command(db, Person)


def test_comparison_helpers_format_legacy_text():
    assert str(eq("age", "30")) == "age = :30"
    assert str(lt("age", "30")) == "age < :30"
    assert eq("age", "30") == Comparison("age", "=", "30")
    assert Command.eq is eq and Command.lt is lt


def test_comparison_rejects_bad_field_names():
    with pytest.raises(ValueError):
        eq("first name", "x")


def test_from_first_starts_query_text():
    _, command = make_command()
    assert command.from_().query == "FROM Person"


def test_from_after_other_fragment_adds_single_space():
    _, command = make_command()
    text = command.delete().from_().query
    assert text == " DELETE FROM Person"
    assert "  " not in text


def test_where_with_comparison_binds_by_field():
    _, command = make_command()
    command.from_().where(eq("age", "30"))
    assert command.params == {"age": "30"}
    assert command.query == "FROM Person WHERE age = :age"


def test_where_with_legacy_text_strips_sigil_and_substitutes_field():
    _, command = make_command()
    command.from_().where("age = :30")
    assert command.params == {"age": "30"}
    assert "age = :age" in command.query


def test_legacy_text_without_sigil_drops_first_character():
    _, command = make_command()
    command.from_().where("age = 30")
    assert command.params == {"age": "0"}


def test_repeated_where_appends_independent_fragments():
    _, command = make_command()
    command.from_().where(eq("age", 30)).where(eq("name", "Ada"))
    assert command.query == "FROM Person WHERE age = :age WHERE name = :name"
    assert command.params == {"age": 30, "name": "Ada"}


def test_collect_delegates_to_select_path():
    db, command = make_command()
    assert command.from_().where(lt("age", 18)).collect() == []
    assert db.calls == [("select", Person, "FROM Person WHERE age < :age", {"age": 18})]


def test_delete_builder_rejects_collect_and_accepts_execute():
    db, command = make_command()
    command.delete().from_().where(lt("age", 18))
    assert command.is_delete
    with pytest.raises(QueryStateError):
        command.collect()
    assert command.execute() == 2
    assert db.calls == [("delete", " DELETE FROM Person WHERE age < :age", {"age": 18})]


def test_plain_builder_rejects_execute_and_accepts_collect():
    db, command = make_command()
    command.from_()
    with pytest.raises(QueryStateError):
        command.execute()
    assert db.calls == []
    command.collect()
    assert len(db.calls) == 1


def test_command_is_consumed_by_its_terminal_action():
    _, command = make_command()
    command.from_().collect()
    with pytest.raises(QueryStateError):
        command.collect()
