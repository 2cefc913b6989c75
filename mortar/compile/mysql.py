"""MySQL dialect compiler."""

from __future__ import annotations

from mortar.compile.base import SQLCompiler
from mortar.connection import Dialect
from mortar.query.argument import Argument
from mortar.query.blueprint import Blueprint
from mortar.query.compiled import CompiledQuery
from mortar.query.fragment import Fragment

#: Alias given to the incoming row so update values can reference it.
ROW_ALIAS = "row"


class MySQLCompiler(SQLCompiler):
    """Compiles blueprints to MySQL-flavoured parameterized SQL.

    Parameter style: ``?`` – compatible with drivers that accept qmark
    placeholders; :class:`~mortar.engine.EngineConnection` rewrites them for
    ``PyMySQL``'s ``%s`` style.

    Identifiers are quoted with backticks (`` ` ``).

    Upserts use ``ON DUPLICATE KEY UPDATE``.  When any update value is an
    :class:`~mortar.query.argument.Argument` the inserted row is aliased as
    ``row`` (MySQL 8.0.19+) so values such as ``Argument.column("row.total")``
    can refer to it.  The conflict target is implied by the table's unique
    keys, so ``index`` is ignored.
    """

    dialect = Dialect.MYSQL

    def compile_truncate(self, blueprint: Blueprint, compiled: CompiledQuery) -> str:
        return self.compile_tables(blueprint, compiled, "TRUNCATE")

    def compile_upsert(self, fragment: Fragment, compiled: CompiledQuery) -> str:
        update = fragment.update or {}
        if not update:
            return ""
        assignments = ", ".join(self._compile_assignments(update, compiled))
        tail = f"ON DUPLICATE KEY UPDATE {assignments}"
        if any(isinstance(value, Argument) for value in update.values()):
            tail = f"AS {self.quote_identifier(ROW_ALIAS)} {tail}"
        return tail
