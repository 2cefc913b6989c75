"""The connection collaborator contract.

mortar never talks to a database driver itself.  A ``Query`` hands compiled
SQL to any object satisfying :class:`Connection`:

- ``dialect`` – a :class:`Dialect` tag, read once to pick the compiler;
- ``query(sql, parameters, mapper=None)`` – run a statement; when a
  :class:`RowMapper` is given, fetch rows and return ``mapper.map(rows)``;
- ``last_insert_id()`` – the key generated by the latest insert.

:class:`~mortar.engine.EngineConnection` implements it on top of a
SQLAlchemy engine; tests use a recording fake.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Dialect(str, Enum):
    """SQL dialects with a registered compiler."""

    MYSQL = "mysql"
    SQLITE = "sqlite"


class Row(dict):
    """A result row: a plain dict that also allows attribute access."""

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None


@dataclass(frozen=True)
class RowMapper:
    """How a select's rows should be shaped.

    Attributes:
        single: Return only the first row (or ``None``) instead of a list.
        model: Optional type each row is materialised as.  It is called as
            ``model(owner, row)`` so the instance can keep the originating
            query for later writes.
        owner: The query that issued the select.
    """

    single: bool = False
    model: Any = None
    owner: Any = None

    def map_row(self, row: Mapping[str, Any]) -> Any:
        if self.model is None:
            return Row(row)
        return self.model(self.owner, dict(row))

    def map(self, rows: Iterable[Mapping[str, Any]]) -> Any:
        """Shape fetched driver rows according to this mapper."""
        if self.single:
            for row in rows:
                return self.map_row(row)
            return None
        return [self.map_row(row) for row in rows]


@runtime_checkable
class Connection(Protocol):
    """Anything that can execute compiled mortar SQL."""

    dialect: Dialect

    def query(
        self, sql: str, parameters: list[Any], mapper: RowMapper | None = None
    ) -> Any: ...

    def last_insert_id(self) -> int: ...
