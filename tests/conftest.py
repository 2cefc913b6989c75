"""Shared pytest fixtures for mortar unit and integration tests."""
from __future__ import annotations

import pytest

from mortar.connection import Dialect
from mortar.query.factory import QueryFactory
from mortar.query.query import Query
from tests.fixtures import RecordingConnection


@pytest.fixture()
def mysql() -> RecordingConnection:
    """Recording connection reporting the MySQL dialect."""
    return RecordingConnection(Dialect.MYSQL)


@pytest.fixture()
def sqlite() -> RecordingConnection:
    """Recording connection reporting the SQLite dialect."""
    return RecordingConnection(Dialect.SQLITE)


@pytest.fixture()
def query(mysql: RecordingConnection) -> Query:
    return Query(mysql)


@pytest.fixture(autouse=True)
def _reset_factory():
    yield
    QueryFactory.set_connection(None)
