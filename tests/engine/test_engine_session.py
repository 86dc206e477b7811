import threading

import pytest

from amberdb import ConfigurationError, Entity, IntegerField, OperationFailure, StringField
from amberdb.adapters import ConnectionConfig
from amberdb.config import DriverSpec, resolve_driver
from amberdb.engine import Engine, SchemaManager
from amberdb.exceptions import NotPersistableError, QueryTranslationError


class Book(Entity):
    title = StringField(nullable=False)
    pages = IntegerField(db_default=100)


class Shelf(Entity):
    label = StringField()


@pytest.fixture
def engine():
    engine = Engine(ConnectionConfig(url="sqlite:///:memory:"), resolve_driver("sqlite"))
    engine.register([Book, Shelf])
    SchemaManager(engine, "update").on_startup()
    yield engine
    engine.dispose()


def count(engine, model):
    with engine.open_session() as session:
        return len(session.create_query(f"FROM {model._meta.name}").get_result_list())


def test_engine_requires_resolved_spec():
    with pytest.raises(ConfigurationError):
        Engine(ConnectionConfig(url="sqlite:///:memory:"), DriverSpec(None, None))


def test_register_rejects_name_clash_and_non_entities(engine):
    clash = type("Book", (Entity,), {"__module__": "elsewhere"})
    with pytest.raises(ConfigurationError, match="registered twice"):
        engine.register([clash])
    with pytest.raises(NotPersistableError):
        engine.register([dict])


def test_persist_assigns_generated_identity_and_column_default(engine):
    with engine.open_session() as session:
        tx = session.begin_transaction()
        book = Book(title="Dune")
        session.persist(book)
        tx.commit()
    assert book.id == 1

    with engine.open_session() as session:
        query = session.create_query("FROM Book WHERE id = :id").set_parameter("id", 1)
        [loaded] = query.get_result_list()
    assert loaded.title == "Dune"
    assert loaded.pages == 100


def test_persist_refuses_detached_entity(engine):
    with engine.open_session() as session:
        with pytest.raises(OperationFailure, match="use merge"):
            session.persist(Book(id=7, title="Emma"))


def test_merge_updates_existing_and_inserts_missing(engine):
    with engine.open_session() as session:
        tx = session.begin_transaction()
        book = Book(title="Dune", pages=412)
        session.persist(book)
        tx.commit()

    book.pages = 500
    with engine.open_session() as session:
        tx = session.begin_transaction()
        session.merge(book)
        session.merge(Book(id=42, title="Ulysses", pages=730))
        tx.commit()

    with engine.open_session() as session:
        books = session.create_query("FROM Book ORDER BY id").get_result_list()
    assert [(b.id, b.title, b.pages) for b in books] == [(1, "Dune", 500), (42, "Ulysses", 730)]


def test_closing_session_rolls_back_open_transaction(engine):
    with engine.open_session() as session:
        session.begin_transaction()
        session.persist(Shelf(label="A"))
    assert count(engine, Shelf) == 0


def test_committed_transaction_cannot_commit_again(engine):
    with engine.open_session() as session:
        tx = session.begin_transaction()
        tx.commit()
        with pytest.raises(OperationFailure, match="no longer active"):
            tx.commit()
        tx.rollback()


def test_closed_session_rejects_work(engine):
    session = engine.open_session()
    session.close()
    session.close()
    assert session.closed
    with pytest.raises(OperationFailure, match="closed"):
        session.create_query("FROM Book")


def test_disposed_engine_rejects_sessions(engine):
    engine.dispose()
    with pytest.raises(OperationFailure, match="disposed"):
        engine.open_session()


def test_query_parameter_coercion_and_validation(engine):
    with engine.open_session() as session:
        query = session.create_query("FROM Book WHERE pages < :pages")
        query.set_parameter("pages", "300")
        assert query._values == {"pages": 300}
        with pytest.raises(QueryTranslationError, match="no parameter"):
            query.set_parameter("title", "x")
        with pytest.raises(QueryTranslationError, match="Invalid value"):
            query.set_parameter("pages", "many")


def test_create_query_checks_expected_model(engine):
    with engine.open_session() as session:
        with pytest.raises(QueryTranslationError, match="was expected"):
            session.create_query("FROM Shelf", Book)


def test_execute_update_reports_affected_rows(engine):
    with engine.open_session() as session:
        tx = session.begin_transaction()
        for title, pages in [("A", 10), ("B", 20), ("C", 300)]:
            session.persist(Book(title=title, pages=pages))
        tx.commit()

    with engine.open_session() as session:
        tx = session.begin_transaction()
        updated = (
            session.create_query("UPDATE Book SET pages = :pages WHERE title = :title")
            .set_parameter("pages", 11)
            .set_parameter("title", "A")
            .execute_update()
        )
        deleted = (
            session.create_query("DELETE FROM Book WHERE pages < :pages")
            .set_parameter("pages", 50)
            .execute_update()
        )
        tx.commit()
    assert (updated, deleted) == (1, 2)
    assert count(engine, Book) == 1


def test_select_and_update_queries_are_not_interchangeable(engine):
    with engine.open_session() as session:
        with pytest.raises(OperationFailure):
            session.create_query("FROM Book").execute_update()
        with pytest.raises(OperationFailure):
            session.create_query("DELETE FROM Book").get_result_list()


def test_file_databases_use_one_connection_per_session(tmp_path):
    engine = Engine(ConnectionConfig(url=f"sqlite:///{tmp_path / 'books.db'}"), resolve_driver("sqlite"))
    engine.register([Book])
    first = engine.open_session()
    second = engine.open_session()
    assert first.adapter is not second.adapter
    first.close()
    assert not first.adapter.connected
    second.close()
    engine.dispose()


def test_memory_sessions_are_serialised_across_threads(engine):
    opened = threading.Event()

    def worker():
        with engine.open_session():
            opened.set()

    holder = engine.open_session()
    thread = threading.Thread(target=worker)
    thread.start()
    assert not opened.wait(timeout=0.2)

    nested = engine.open_session()
    assert nested.adapter is holder.adapter
    nested.close()
    assert not opened.is_set()

    holder.close()
    thread.join(timeout=5)
    assert opened.is_set()
