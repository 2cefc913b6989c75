"""Compiler abstraction: the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler.build`` fixes the clause order for every statement type and
  implements every clause compiler shared by all dialects.
- ``MySQLCompiler`` and ``SQLiteCompiler`` override the dialect-specific
  steps (upsert tail, truncate) and may override any shared step.

Every clause compiler takes the blueprint and the ``CompiledQuery`` being
filled, appends bound parameters in the order their ``?`` placeholders
appear, and returns its SQL text (empty when the clause has no fragments).
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from mortar.connection import Dialect
from mortar.errors import CompilationError
from mortar.query.argument import Argument, quote_identifier
from mortar.query.blueprint import Blueprint, Clause, StatementType
from mortar.query.compiled import CompiledQuery
from mortar.query.fragment import Fragment, PredicateGroup

_LEADING_BOOLEAN = re.compile(r"^(AND|OR)\s?")


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL compilers.

    ``Query`` holds one instance for its whole life and calls :meth:`build`
    each time it needs SQL.  Compilers keep no per-build state, so one
    instance can serve any number of queries.
    """

    #: The dialect tag this compiler is registered under.
    dialect: Dialect

    @property
    def dialect_name(self) -> str:
        """Return the canonical dialect name (``'mysql'`` or ``'sqlite'``)."""
        return self.dialect.value

    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier.

        Args:
            name: Unquoted identifier segment (no dots).

        Returns:
            Quoted identifier; ``*`` is returned unchanged.
        """
        return quote_identifier(name)

    # ------------------------------------------------------------------
    # Dialect-specific steps
    # ------------------------------------------------------------------

    @abstractmethod
    def compile_truncate(self, blueprint: Blueprint, compiled: CompiledQuery) -> str:
        """Return the statement that empties the blueprint's table."""

    @abstractmethod
    def compile_upsert(self, fragment: Fragment, compiled: CompiledQuery) -> str:
        """Return the conflict-handling tail appended after ``VALUES (...)``.

        Args:
            fragment: The insert fragment carrying ``update`` and ``index``.
            compiled: Output accumulating bound parameters.

        Returns:
            SQL text, or ``""`` when no tail is needed.
        """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, blueprint: Blueprint) -> CompiledQuery:
        """Compile ``blueprint`` to SQL text plus positional parameters.

        Args:
            blueprint: The statement to compile; it is never modified.

        Returns:
            A fresh :class:`~mortar.query.compiled.CompiledQuery`.

        Raises:
            CompilationError: If the blueprint is missing a required clause.
        """
        compiled = CompiledQuery(dialect=self.dialect_name)
        statement = blueprint.type

        if statement is StatementType.SELECT:
            parts = [
                self.compile_columns(blueprint, compiled, "SELECT"),
                self.compile_tables(blueprint, compiled, "FROM"),
                self.compile_join(blueprint, compiled),
                self.compile_where(blueprint, compiled, "WHERE"),
                self.compile_group(blueprint, compiled, "GROUP BY"),
                self.compile_having(blueprint, compiled, "HAVING"),
                self.compile_order(blueprint, compiled, "ORDER BY"),
                self.compile_limit(blueprint, compiled, "LIMIT"),
                self.compile_union(blueprint, compiled, "UNION"),
            ]
        elif statement in (StatementType.INSERT, StatementType.UPSERT):
            self._require_table(blueprint, statement)
            parts = [
                self.compile_tables(blueprint, compiled, "INSERT INTO"),
                self.compile_insert(
                    blueprint, compiled, upsert=statement is StatementType.UPSERT
                ),
            ]
        elif statement is StatementType.UPDATE:
            self._require_table(blueprint, statement)
            parts = [
                self.compile_tables(blueprint, compiled, "UPDATE"),
                self.compile_update(blueprint, compiled, "SET"),
                self.compile_where(blueprint, compiled, "WHERE"),
                self.compile_order(blueprint, compiled, "ORDER BY"),
                self.compile_limit(blueprint, compiled, "LIMIT"),
            ]
        elif statement is StatementType.DELETE:
            self._require_table(blueprint, statement)
            parts = [
                self.compile_tables(blueprint, compiled, "DELETE FROM"),
                self.compile_where(blueprint, compiled, "WHERE"),
                self.compile_order(blueprint, compiled, "ORDER BY"),
                self.compile_limit(blueprint, compiled, "LIMIT"),
            ]
        elif statement is StatementType.TRUNCATE:
            self._require_table(blueprint, statement)
            parts = [self.compile_truncate(blueprint, compiled)]
        else:
            raise CompilationError(f"Unsupported statement type: {statement!r}")

        compiled.code = " ".join(part for part in parts if part).strip()
        return compiled

    # ------------------------------------------------------------------
    # Clause compilers
    # ------------------------------------------------------------------

    def compile_columns(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        columns = [
            self._aliased(fragment.column, fragment.alias)
            for fragment in blueprint.get_fragments(Clause.COLUMNS)
        ]
        return self._clause(prefix, ", ".join(columns))

    def compile_tables(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        tables = [
            self._aliased(fragment.table, fragment.alias)
            for fragment in blueprint.get_fragments(Clause.TABLES)
        ]
        return self._clause(prefix, ", ".join(tables))

    def compile_join(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        joins: list[str] = []
        for fragment in blueprint.get_fragments(Clause.JOIN):
            table = self._identifier(fragment.table)
            if isinstance(fragment.first, PredicateGroup):
                # Join groups are not parenthesised, unlike where/having groups.
                condition = self._compile_conditions(
                    fragment.first.fragments, compiled, Clause.JOIN
                )
            else:
                condition = (
                    f"{self._identifier(fragment.first)} {fragment.operator} "
                    f"{self._identifier(fragment.second)}"
                )
            joins.append(f"{str(fragment.type).upper()} JOIN {table} ON {condition}")
        return self._clause(prefix, " ".join(joins))

    def compile_where(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        fragments = blueprint.get_fragments(Clause.WHERE)
        return self._clause(prefix, self._compile_conditions(fragments, compiled, Clause.WHERE))

    def compile_having(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        fragments = blueprint.get_fragments(Clause.HAVING)
        return self._clause(prefix, self._compile_conditions(fragments, compiled, Clause.HAVING))

    def compile_group(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        columns = [
            self._identifier(fragment.column) for fragment in blueprint.get_fragments(Clause.GROUP)
        ]
        return self._clause(prefix, ", ".join(columns))

    def compile_order(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        order = [
            f"{self._identifier(fragment.column)} {str(fragment.sort).upper()}"
            for fragment in blueprint.get_fragments(Clause.ORDER)
        ]
        return self._clause(prefix, ", ".join(order))

    def compile_limit(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        fragment = blueprint.get_fragment(Clause.LIMIT)
        if fragment is None:
            return ""
        if fragment.offset is None:
            return self._clause(prefix, f"{int(fragment.limit)}")
        return self._clause(prefix, f"{int(fragment.offset)}, {int(fragment.limit)}")

    def compile_union(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        unions: list[str] = []
        for fragment in blueprint.get_fragments(Clause.UNION):
            source = getattr(fragment.query, "blueprint", fragment.query)
            subquery = self.build(source)
            unions.append(subquery.code)
            compiled.add_parameters(subquery.parameters)
        return self._clause(prefix, ", ".join(unions))

    def compile_insert(
        self,
        blueprint: Blueprint,
        compiled: CompiledQuery,
        prefix: str | None = None,
        upsert: bool = False,
    ) -> str:
        fragment = blueprint.get_fragment(Clause.INSERT)
        if fragment is None:
            raise CompilationError("INSERT requires values.", clause=Clause.INSERT.value)
        rows = _as_rows(fragment.insert)
        if not rows or not rows[0]:
            raise CompilationError("INSERT requires values.", clause=Clause.INSERT.value)

        columns = list(rows[0])
        values: list[str] = []
        for number, row in enumerate(rows, start=1):
            if set(row) != set(columns):
                raise CompilationError(
                    f"INSERT row {number} columns {sorted(row)} do not match "
                    f"the first row's {sorted(columns)}.",
                    clause=Clause.INSERT.value,
                )
            rendered = [self._compile_assigned(row[column], compiled) for column in columns]
            values.append(f"({', '.join(rendered)})")

        quoted = ", ".join(self._identifier(column) for column in columns)
        sql = f"({quoted}) VALUES {', '.join(values)}"
        if upsert:
            tail = self.compile_upsert(fragment, compiled)
            if tail:
                sql = f"{sql} {tail}"
        return self._clause(prefix, sql)

    def compile_update(
        self, blueprint: Blueprint, compiled: CompiledQuery, prefix: str | None = None
    ) -> str:
        fragment = blueprint.get_fragment(Clause.UPDATE)
        if fragment is None or not fragment.update:
            raise CompilationError("UPDATE requires at least one column.", clause=Clause.UPDATE.value)
        return self._clause(prefix, ", ".join(self._compile_assignments(fragment.update, compiled)))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _compile_conditions(
        self, fragments: Sequence[Fragment], compiled: CompiledQuery, clause: Clause
    ) -> str:
        conditions: list[str] = []
        for fragment in fragments:
            if isinstance(fragment.column, PredicateGroup):
                if not fragment.column:
                    continue
                inner = self._compile_conditions(fragment.column.fragments, compiled, clause)
                conditions.append(f"{fragment.boolean} ({inner})")
            else:
                value = self._compile_bound(fragment.value, compiled, clause)
                conditions.append(
                    f"{fragment.boolean} {self._identifier(fragment.column)} "
                    f"{fragment.operator} {value}"
                )
        # The first condition never carries its boolean keyword.
        return _LEADING_BOOLEAN.sub("", " ".join(conditions), count=1)

    def _compile_bound(self, value: Any, compiled: CompiledQuery, clause: Clause) -> str:
        if isinstance(value, Argument):
            return value.compile(self.quote_identifier)
        if isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                raise CompilationError("Cannot bind an empty value list.", clause=clause.value)
            compiled.add_parameters(values)
            return f"({', '.join('?' for _ in values)})"
        compiled.add_parameter(value)
        return "?"

    def _compile_assigned(self, value: Any, compiled: CompiledQuery) -> str:
        if isinstance(value, Argument):
            return value.compile(self.quote_identifier)
        compiled.add_parameter(value)
        return "?"

    def _compile_assignments(
        self, values: Mapping[str, Any], compiled: CompiledQuery
    ) -> list[str]:
        return [
            f"{self._identifier(column)} = {self._compile_assigned(value, compiled)}"
            for column, value in values.items()
        ]

    def _identifier(self, expr: Any) -> str:
        if isinstance(expr, Argument):
            return expr.compile(self.quote_identifier)
        if not expr:
            return ""
        return self.quote_identifier(str(expr))

    def _aliased(self, expr: Any, alias: Any) -> str:
        if alias:
            return f"{self._identifier(expr)} AS {self._identifier(alias)}"
        return self._identifier(expr)

    @staticmethod
    def _clause(prefix: str | None, body: str) -> str:
        if not body:
            return ""
        return f"{prefix} {body}" if prefix else body

    @staticmethod
    def _require_table(blueprint: Blueprint, statement: StatementType) -> None:
        if not blueprint.has_fragments(Clause.TABLES):
            raise CompilationError(
                f"{statement.value.upper()} requires a table.", clause=Clause.TABLES.value
            )


def _as_rows(insert: Any) -> list[Mapping[str, Any]]:
    """Normalise insert data: a mapping is one row, a sequence is a batch."""
    if insert is None:
        return []
    if isinstance(insert, Mapping):
        return [insert]
    return list(insert)
