"""Integration tests: build → compile → execute against in-memory SQLite.

Every statement goes through ``EngineConnection`` on a SQLAlchemy engine, so
placeholder handling, row mapping and last-insert-id tracking are exercised
together with the SQLite compiler.
"""
from __future__ import annotations

import io

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError

from mortar.engine import EngineConnection
from mortar.errors import CompilationError
from mortar.query.argument import Argument
from mortar.query.factory import QueryFactory
from mortar.query.query import Query
from tests.fixtures import load_ddl

USERS = [
    {"name": "Ann", "email": "ann@example.com", "status": "Active"},
    {"name": "Bo", "email": "bo@example.com", "status": "Banned"},
    {"name": "Cy", "email": "cy@example.com", "status": "Active"},
]


@pytest.fixture()
def db() -> EngineConnection:
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        for statement in load_ddl("sqlite"):
            conn.exec_driver_sql(statement)
    connection = EngineConnection(engine)
    Query(connection).table("user").insert(USERS)
    Query(connection).table("user_meta").insert(
        [
            {"id_user": 1, "name": "comment", "value": "hello"},
            {"id_user": 1, "name": "theme", "value": None},
            {"id_user": 3, "name": "comment", "value": "hi"},
        ]
    )
    Query(connection).table("order").insert(
        [
            {"id": key, "id_user": 1 + key % 3, "total": key * 10.0, "items": key % 4 + 1}
            for key in range(1, 56)
        ]
    )
    yield connection
    engine.dispose()


def _q(db: EngineConnection) -> Query:
    return Query(db)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def test_first_by_key(db):
    row = _q(db).table("user").where("id", 2).first()
    assert row.name == "Bo"
    assert row["email"] == "bo@example.com"


def test_first_without_match(db):
    assert _q(db).table("user").where("id", 99).first() is None


def test_select_columns_order_and_page(db):
    rows = (
        _q(db)
        .table("user")
        .column("id")
        .column("name", "label")
        .order("id", "DESC")
        .page(1, 2)
        .all()
    )
    assert rows == [{"id": 3, "label": "Cy"}, {"id": 2, "label": "Bo"}]
    second = _q(db).table("user").column("id").order("id").page(2, 2).all()
    assert [row.id for row in second] == [3]


def test_grouped_or_conditions(db):
    rows = (
        _q(db)
        .table("user")
        .where("status", "Active")
        .where(lambda q: q.where("name", "Ann").or_where("name", "Bo"))
        .all()
    )
    assert [row.name for row in rows] == ["Ann"]


def test_where_in_and_not_in(db):
    assert [r.id for r in _q(db).table("user").where_in("id", [1, 3]).order("id").all()] == [1, 3]
    rows = _q(db).table("user", "u").where_not_in("u.status", ["Banned"]).all()
    assert {row.name for row in rows} == {"Ann", "Cy"}


def test_where_null(db):
    rows = _q(db).table("user_meta").where_null("value").all()
    assert [(row.id_user, row.name) for row in rows] == [(1, "theme")]
    assert len(_q(db).table("user_meta").where_not_null("value").all()) == 2


def test_where_column(db):
    rows = _q(db).table("user", "u").join("user_meta", "user_meta.id_user", "u.id").where_column(
        "user_meta.id_user", "u.id"
    ).column("u.name").all()
    assert sorted(row.name for row in rows) == ["Ann", "Ann", "Cy"]


def test_join_with_callback(db):
    rows = (
        _q(db)
        .table("user", "u")
        .column("u.name")
        .column("um.value")
        .join(
            Argument.table("user_meta", "um"),
            lambda q: q.where_column("um.id_user", "u.id").where("um.name", "comment"),
        )
        .order("u.id")
        .all()
    )
    assert [(row.name, row.value) for row in rows] == [("Ann", "hello"), ("Cy", "hi")]


def test_left_join_keeps_unmatched_rows(db):
    rows = (
        _q(db)
        .table("user", "u")
        .column("u.id")
        .column("um.name", "meta")
        .left_join(
            Argument.table("user_meta", "um"),
            lambda q: q.where_column("um.id_user", "u.id").where("um.name", "comment"),
        )
        .order("u.id")
        .all()
    )
    assert [(row.id, row.meta) for row in rows] == [(1, "comment"), (2, None), (3, "comment")]


def test_group_and_having(db):
    rows = (
        _q(db)
        .table("order")
        .column("id_user")
        .column(Argument.method("COUNT", "*"), "orders")
        .column(Argument.method("SUM", "total"), "total")
        .group("id_user")
        .having("orders", 18, ">")
        .order("id_user")
        .all()
    )
    assert [row.id_user for row in rows] == [2]
    assert rows[0].orders == 19


def test_union(db):
    users = _q(db).table("user").column("name").where("id", 1)
    rows = _q(db).table("user_meta").column("name").where("value", "hi").union(users).all()
    assert sorted(row.name for row in rows) == ["Ann", "comment"]


def test_aggregates(db):
    orders = _q(db).table("order")
    assert orders.count() == 55
    assert orders.count("id") == 55
    assert orders.sum("items") == sum(key % 4 + 1 for key in range(1, 56))
    assert orders.min("total") == 10.0
    assert orders.max("total") == 550.0
    assert orders.avg("total") == pytest.approx(280.0)
    assert _q(db).table("order").where("id", 999).sum("total") == 0


def test_chunk_visits_each_row_once(db):
    seen: list[int] = []
    pages: list[int] = []

    def collect(rows, count, number):
        pages.append(number)
        seen.extend(row.id for row in rows)

    _q(db).table("order").order("total", "DESC").chunk(10, collect)
    assert pages == [1, 2, 3, 4, 5, 6]
    assert seen == list(range(1, 56))


def test_chunk_survives_deletes_between_pages(db):
    seen: list[int] = []

    def collect(rows, count, number):
        seen.extend(row.id for row in rows)
        if number == 1:
            _q(db).table("order").where_in("id", [11, 12]).delete()

    _q(db).table("order").chunk(10, collect)
    assert len(seen) == 53
    assert 11 not in seen


def test_chunk_with_or_conditions(db):
    pages: list[list[int]] = []

    def collect(rows, count, number):
        pages.append([row.id for row in rows])
        assert number <= 4

    (
        _q(db)
        .table("order")
        .where("id_user", 1)
        .or_where("id_user", 2)
        .chunk(10, collect)
    )
    expected = [key for key in range(1, 56) if 1 + key % 3 in (1, 2)]
    assert [key for page in pages for key in page] == expected
    assert [len(page) for page in pages] == [10, 10, 10, 7]


def test_model_hydration(db):
    class User:
        def __init__(self, query, row):
            self.query = query
            self.id = row["id"]
            self.name = row["name"]

        def rename(self, name):
            self.query.clone().where("id", self.id).update({"name": name})

    user = _q(db).table("user").set_model(User).where("id", 1).first()
    assert isinstance(user, User)
    user.rename("Anna")
    assert _q(db).table("user").where("id", 1).first().name == "Anna"


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_insert_returns_new_key(db):
    key = _q(db).table("user").insert({"name": "Di", "email": "di@example.com"})
    assert key == 4
    assert db.last_insert_id() == 4
    assert _q(db).table("user").where("id", key).first().status == "Active"


def test_update_with_expression(db):
    _q(db).table("user").where("status", "Active").update(
        {"visits": Argument.raw("`visits` + 1"), "status": "Seen"}
    )
    rows = _q(db).table("user").where("status", "Seen").order("id").all()
    assert [(row.id, row.visits) for row in rows] == [(1, 1), (3, 1)]


def test_delete(db):
    _q(db).table("user_meta").where("id_user", 1).delete()
    assert _q(db).table("user_meta").count() == 1


def test_truncate(db):
    _q(db).table("order").truncate()
    assert _q(db).table("order").count() == 0


def test_upsert_updates_on_conflict(db):
    _q(db).table("user").upsert(
        {"name": "Ann B", "email": "ann@example.com"},
        {"name": "Ann B", "visits": Argument.raw("`visits` + 5")},
        ["email"],
    )
    row = _q(db).table("user").where("email", "ann@example.com").first()
    assert (row.id, row.name, row.visits) == (1, "Ann B", 5)
    assert _q(db).table("user").count() == 3


def test_upsert_inserts_new_rows(db):
    _q(db).table("user").upsert(
        {"name": "Ed", "email": "ed@example.com"}, {"name": "Ed"}, ["email"]
    )
    assert _q(db).table("user").count() == 4


def test_upsert_do_nothing(db):
    _q(db).table("user").upsert({"name": "X", "email": "bo@example.com"}, {}, ["email"])
    assert _q(db).table("user").where("id", 2).first().name == "Bo"


def test_upsert_without_index_fails_before_execution(db):
    with pytest.raises(CompilationError):
        _q(db).table("user").upsert({"name": "X", "email": "x@example.com"}, {"name": "X"})
    assert _q(db).table("user").count() == 3


def test_driver_errors_propagate(db):
    with pytest.raises(IntegrityError):
        _q(db).table("user").insert({"name": "Dup", "email": "ann@example.com"})


def test_literal_question_mark_is_not_a_placeholder(db):
    _q(db).table("user").where("id", 1).update({"name": Argument.raw("'Who?'")})
    assert _q(db).table("user").where("name", "Who?").first().id == 1


# ---------------------------------------------------------------------------
# Factory and dump
# ---------------------------------------------------------------------------


def test_factory_builds_on_default_connection(db):
    QueryFactory.set_connection(db)
    assert QueryFactory.build("user").where("status", "Active").count() == 2


def test_dump(db):
    stream = io.StringIO()
    _q(db).table("user").where("id", 1).dump(stream)
    assert stream.getvalue() == "SELECT * FROM `user` WHERE `id` = ?\n[1]\n"
