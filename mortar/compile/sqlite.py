"""SQLite dialect compiler."""
from __future__ import annotations

from mortar.compile.base import SQLCompiler
from mortar.connection import Dialect
from mortar.errors import CompilationError
from mortar.query.blueprint import Blueprint, Clause
from mortar.query.compiled import CompiledQuery
from mortar.query.fragment import Fragment


class SQLiteCompiler(SQLCompiler):
    """Compiles blueprints to SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    positional-parameter execution (``cursor.execute(sql, params)``).

    Note: SQLite has no ``TRUNCATE``; it is mapped to an unqualified
    ``DELETE FROM``, which SQLite optimises the same way.  SQLite accepts
    backtick-quoted identifiers, so quoting is shared with MySQL.

    Upserts use ``ON CONFLICT (<index>) DO UPDATE SET`` (SQLite 3.24+) and
    need an explicit conflict target.
    """

    dialect = Dialect.SQLITE

    def compile_truncate(self, blueprint: Blueprint, compiled: CompiledQuery) -> str:
        return self.compile_tables(blueprint, compiled, "DELETE FROM")

    def compile_upsert(self, fragment: Fragment, compiled: CompiledQuery) -> str:
        index = list(fragment.index or [])
        if not index:
            raise CompilationError(
                "SQLite upsert requires the conflict target columns.",
                clause=Clause.INSERT.value,
            )
        target = ", ".join(self._identifier(column) for column in index)
        update = fragment.update or {}
        if not update:
            return f"ON CONFLICT ({target}) DO NOTHING"
        assignments = ", ".join(self._compile_assignments(update, compiled))
        return f"ON CONFLICT ({target}) DO UPDATE SET {assignments}"
