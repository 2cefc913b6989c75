"""SQLAlchemy-backed connection collaborator.

:class:`EngineConnection` lets a :class:`~mortar.query.query.Query` run
against any SQLAlchemy :class:`~sqlalchemy.engine.Engine`::

    from sqlalchemy import create_engine
    from mortar import EngineConnection, Query

    connection = EngineConnection(create_engine("sqlite://"))
    Query(connection).table("user").where("id", 1).first()

Compiled SQL is handed to the DB-API driver as-is through
``exec_driver_sql``.  mortar always emits ``?`` placeholders, so they are
rewritten into the driver's declared paramstyle first.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy.engine import Engine

from mortar.connection import Dialect, RowMapper
from mortar.errors import ConfigurationError
from mortar.logger import get_logger

_log = get_logger(__name__)

#: SQLAlchemy dialect names mapped to mortar dialect tags.
_ENGINE_DIALECTS: dict[str, Dialect] = {
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "sqlite": Dialect.SQLITE,
}

_QUOTES = "'\"`"


def adapt_placeholders(sql: str, paramstyle: str) -> str:
    """Rewrite ``?`` placeholders into ``paramstyle``.

    Question marks inside quoted literals or quoted identifiers are left
    alone.  For the ``format`` styles literal ``%`` signs are doubled.

    Args:
        sql: SQL text using ``?`` placeholders.
        paramstyle: A DB-API 2.0 paramstyle name.

    Returns:
        SQL text in the driver's paramstyle.

    Raises:
        ConfigurationError: If ``paramstyle`` is unknown.
    """
    if paramstyle == "qmark":
        return sql
    if paramstyle not in ("format", "pyformat", "numeric", "named"):
        raise ConfigurationError(f"Unsupported driver paramstyle: {paramstyle!r}")

    out: list[str] = []
    quote: str | None = None
    position = 0
    for char in sql:
        if quote is not None:
            if char == quote:
                quote = None
            out.append("%%" if char == "%" and paramstyle in ("format", "pyformat") else char)
        elif char in _QUOTES:
            quote = char
            out.append(char)
        elif char == "?":
            position += 1
            if paramstyle == "numeric":
                out.append(f":{position}")
            elif paramstyle == "named":
                out.append(f":p{position}")
            else:
                out.append("%s")
        elif char == "%" and paramstyle in ("format", "pyformat"):
            out.append("%%")
        else:
            out.append(char)
    return "".join(out)


def adapt_parameters(parameters: Sequence[Any], paramstyle: str) -> Any:
    """Shape positional parameters the way ``paramstyle`` expects."""
    if paramstyle == "named":
        return {f"p{position}": value for position, value in enumerate(parameters, start=1)}
    return tuple(parameters)


class EngineConnection:
    """Runs mortar SQL through a SQLAlchemy engine.

    Every statement runs in its own ``engine.begin()`` transaction.

    Args:
        engine: The SQLAlchemy engine to execute on.
        dialect: Explicit dialect tag; inferred from ``engine.dialect.name``
            when omitted.

    Raises:
        ConfigurationError: If the dialect cannot be inferred.
    """

    def __init__(self, engine: Engine, dialect: Dialect | str | None = None) -> None:
        if dialect is None:
            name = engine.dialect.name
            if name not in _ENGINE_DIALECTS:
                raise ConfigurationError(
                    f"Cannot infer a mortar dialect from engine dialect {name!r}.",
                    dialect=name,
                )
            dialect = _ENGINE_DIALECTS[name]
        self.dialect = Dialect(dialect)
        self._engine = engine
        self._last_insert_id: Any = None

    @property
    def engine(self) -> Engine:
        return self._engine

    def query(self, sql: str, parameters: Sequence[Any], mapper: RowMapper | None = None) -> Any:
        """Execute ``sql``.

        Returns:
            ``mapper.map(rows)`` when a mapper is given, otherwise the number
            of affected rows.
        """
        paramstyle = self._engine.dialect.paramstyle
        statement = adapt_placeholders(sql, paramstyle)
        _log.debug("engine.execute", sql=statement, parameters=len(parameters))
        with self._engine.begin() as conn:
            result = conn.exec_driver_sql(statement, adapt_parameters(parameters, paramstyle))
            if mapper is not None:
                return mapper.map(result.mappings().all())
            if result.lastrowid:
                self._last_insert_id = result.lastrowid
            return result.rowcount

    def last_insert_id(self) -> Any:
        """Return the key generated by the latest insert, or ``None``."""
        return self._last_insert_id
