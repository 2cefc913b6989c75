"""mortar – a fluent SQL query builder with pluggable dialect compilers.

Public API
----------
``Query``
    Fluent builder: record tables, columns, joins, conditions, grouping,
    ordering, paging and unions, then compile or execute them through a
    connection.

``QueryFactory``
    Builds ``Query`` objects bound to a process-wide default connection.

``EngineConnection``
    Connection collaborator running compiled SQL on a SQLAlchemy engine.

Re-exported types
-----------------
``Argument``, ``Fragment``, ``PredicateGroup``, ``Blueprint``,
``CompiledQuery``, ``Dialect``, ``RowMapper``, ``QueryOptions``, and all
error classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from mortar.compile.registry import CompilerFactory

    @CompilerFactory.register("mysql")
    class TunedMySQLCompiler(MySQLCompiler):
        ...

After registration every ``Query`` on a connection whose ``dialect`` is
``Dialect.MYSQL`` compiles with it.
"""

from __future__ import annotations

from mortar.compile import CompilerFactory, MySQLCompiler, SQLCompiler, SQLiteCompiler
from mortar.connection import Connection, Dialect, Row, RowMapper
from mortar.engine import EngineConnection
from mortar.errors import CompilationError, ConfigurationError, MortarError
from mortar.logger import configure_logging, get_logger
from mortar.options import QueryOptions
from mortar.query import (
    WILDCARD,
    Argument,
    ArgumentKind,
    Blueprint,
    Clause,
    CompiledQuery,
    Fragment,
    PredicateGroup,
    StatementType,
)
from mortar.query.factory import QueryFactory
from mortar.query.query import Query

__all__ = [
    # Builder
    "Query",
    "QueryFactory",
    "QueryOptions",
    # Statement model
    "WILDCARD",
    "Argument",
    "ArgumentKind",
    "Blueprint",
    "Clause",
    "CompiledQuery",
    "Fragment",
    "PredicateGroup",
    "StatementType",
    # Compilers
    "SQLCompiler",
    "CompilerFactory",
    "MySQLCompiler",
    "SQLiteCompiler",
    # Connections
    "Connection",
    "Dialect",
    "EngineConnection",
    "Row",
    "RowMapper",
    # Logging
    "configure_logging",
    "get_logger",
    # Errors
    "MortarError",
    "ConfigurationError",
    "CompilationError",
]
