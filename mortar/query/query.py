"""The fluent query builder.

:class:`Query` records a statement fragment by fragment into a
:class:`~mortar.query.blueprint.Blueprint`, hands it to the compiler chosen
from the connection's dialect and runs the result through the connection::

    query = Query(connection)
    rows = (
        query.table("user", "u")
        .where("u.status", "Active")
        .where(lambda q: q.where("u.id", 1).where("u.id", 2, "!=", "OR"))
        .order("u.id", "DESC")
        .page(1, 15)
        .all()
    )

Builder methods mutate the receiver and return it.  Use :meth:`Query.clone`
to branch a half-built query.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from mortar.compile.base import SQLCompiler
from mortar.compile.registry import CompilerFactory
from mortar.connection import RowMapper
from mortar.errors import ConfigurationError
from mortar.logger import get_logger
from mortar.options import QueryOptions
from mortar.query.argument import WILDCARD, Argument
from mortar.query.blueprint import Blueprint, Clause, StatementType
from mortar.query.compiled import CompiledQuery
from mortar.query.fragment import Fragment, PredicateGroup

_log = get_logger(__name__)

#: A callback filling a nested builder, e.g. ``lambda q: q.where("id", 1)``.
Builder = Callable[["Query"], Any]


class Query:
    """Fluent builder bound to one connection.

    Args:
        connection: Object satisfying :class:`~mortar.connection.Connection`.
        options: Builder defaults; ``QueryOptions()`` when omitted.

    Raises:
        ConfigurationError: If no compiler is registered for the
            connection's dialect.
    """

    def __init__(self, connection: Any, options: QueryOptions | None = None) -> None:
        dialect = getattr(connection, "dialect", None)
        try:
            compiler = CompilerFactory.create(dialect)
        except ConfigurationError as exc:
            _log.error(
                "query.unsupported_connection",
                connection=type(connection).__name__,
                dialect=str(dialect),
            )
            raise ConfigurationError(
                f"Unsupported connection {type(connection).__name__!r} "
                f"(dialect: {dialect!r}): {exc}",
                dialect=dialect,
            ) from exc

        self._connection = connection
        self._compiler: SQLCompiler = compiler
        self._options = options or QueryOptions()
        self._blueprint = Blueprint()
        self._model: Any = None
        self._blank = True

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def blueprint(self) -> Blueprint:
        return self._blueprint

    @property
    def compiler(self) -> SQLCompiler:
        return self._compiler

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def options(self) -> QueryOptions:
        return self._options

    @property
    def model(self) -> Any:
        return self._model

    def set_model(self, model: Any) -> Query:
        """Materialise selected rows as ``model(query, row)`` instead of dicts."""
        self._model = model
        return self

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def table(self, table: str | Argument, alias: str = "") -> Query:
        """Set the statement's table; a blank query also selects ``*``."""
        self.from_(table, alias)
        if self._blank:
            self.column(WILDCARD)
        return self

    def from_(self, table: str | Argument, alias: str = "") -> Query:
        """Add a table without touching the column list."""
        if isinstance(table, str):
            table = Argument.table(table)
        self._blueprint.add_fragment(Clause.TABLES, Fragment(table=table, alias=alias))
        return self

    def column(self, column: str | Argument, alias: str = "") -> Query:
        """Add a selected column.

        The first explicit column replaces the implicit ``*``, and asking
        for ``*`` again drops every column chosen so far.
        """
        wildcard = column == WILDCARD
        if wildcard or self._blank:
            self._blueprint.reset_fragment(Clause.COLUMNS)
        if not wildcard:
            self._blank = False
        if isinstance(column, str) and not wildcard:
            column = Argument.column(column)
        self._blueprint.add_fragment(Clause.COLUMNS, Fragment(column=column, alias=alias))
        return self

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    def join(
        self,
        table: str | Argument,
        first: str | Argument | Builder,
        second: str | Argument | None = None,
        operator: str = "=",
        type: str = "INNER",
    ) -> Query:
        """Join ``table`` on ``first operator second``.

        ``first`` may instead be a callback receiving a nested builder whose
        where conditions become the ``ON`` clause.
        """
        if callable(first):
            first = self._group(first, Clause.WHERE)
        else:
            first = _table_ref(first)
        self._blueprint.add_fragment(
            Clause.JOIN,
            Fragment(
                table=_table_ref(table),
                first=first,
                second=_table_ref(second),
                operator=operator,
                type=type.upper(),
            ),
        )
        return self

    def left_join(
        self,
        table: str | Argument,
        first: str | Argument | Builder,
        second: str | Argument | None = None,
        operator: str = "=",
    ) -> Query:
        return self.join(table, first, second, operator, "LEFT")

    def right_join(
        self,
        table: str | Argument,
        first: str | Argument | Builder,
        second: str | Argument | None = None,
        operator: str = "=",
    ) -> Query:
        return self.join(table, first, second, operator, "RIGHT")

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def where(
        self,
        column: str | Argument | Builder,
        value: Any = None,
        operator: str = "=",
        boolean: str = "AND",
    ) -> Query:
        """Add a ``column operator ?`` condition.

        Passing a callback as ``column`` adds a parenthesised group built
        from the conditions the callback adds to a nested builder.  Values
        that are :class:`Argument` instances are inlined; lists bind one
        placeholder per element.
        """
        return self._condition(Clause.WHERE, column, value, operator, boolean)

    def or_where(
        self, column: str | Argument | Builder, value: Any = None, operator: str = "="
    ) -> Query:
        return self.where(column, value, operator, "OR")

    def where_column(
        self, first: str | Argument, second: str | Argument, operator: str = "=", boolean: str = "AND"
    ) -> Query:
        """Compare two columns, e.g. ``where_column("email", "login")``."""
        return self.where(_column_ref(first), _column_ref(second), operator, boolean)

    def where_in(self, column: str | Argument, values: Iterable[Any], boolean: str = "AND") -> Query:
        return self.where(column, list(values), "IN", boolean)

    def where_not_in(
        self, column: str | Argument, values: Iterable[Any], boolean: str = "AND"
    ) -> Query:
        return self.where(column, list(values), "NOT IN", boolean)

    def where_null(self, column: str | Argument, boolean: str = "AND") -> Query:
        return self.where(column, Argument.raw("NULL"), "IS", boolean)

    def where_not_null(self, column: str | Argument, boolean: str = "AND") -> Query:
        return self.where(column, Argument.raw("NULL"), "IS NOT", boolean)

    def having(
        self,
        column: str | Argument | Builder,
        value: Any = None,
        operator: str = "=",
        boolean: str = "AND",
    ) -> Query:
        """Add a ``HAVING`` condition; same forms as :meth:`where`."""
        return self._condition(Clause.HAVING, column, value, operator, boolean)

    def having_column(
        self, first: str | Argument, second: str | Argument, operator: str = "=", boolean: str = "AND"
    ) -> Query:
        return self.having(_column_ref(first), _column_ref(second), operator, boolean)

    # ------------------------------------------------------------------
    # Grouping, ordering and paging
    # ------------------------------------------------------------------

    def group(self, column: str | Argument) -> Query:
        self._blueprint.add_fragment(Clause.GROUP, Fragment(column=_column_ref(column)))
        return self

    def order(self, column: str | Argument, sort: str = "ASC") -> Query:
        self._blueprint.add_fragment(
            Clause.ORDER, Fragment(column=_column_ref(column), sort=sort.upper())
        )
        return self

    def limit(self, limit: int, offset: int | None = None) -> Query:
        """Replace the limit; ``offset`` renders as ``LIMIT offset, limit``.

        Any offset that is not ``None`` is rendered, so ``limit(n, 0)`` gives
        ``LIMIT 0, n`` rather than ``LIMIT n``.
        """
        self._blueprint.reset_fragment(Clause.LIMIT)
        self._blueprint.add_fragment(Clause.LIMIT, Fragment(limit=limit, offset=offset))
        return self

    def page(self, page: int, size: int | None = None) -> Query:
        """Limit to the ``page``-th (1-based) window of ``size`` rows."""
        if size is None:
            size = self._options.page_size
        return self.limit(size, size * (max(page, 1) - 1))

    def union(self, query: Query | Blueprint) -> Query:
        """Append ``UNION`` of another select, compiled along with this one."""
        self._blueprint.add_fragment(Clause.UNION, Fragment(query=query))
        return self

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def select(self, single: bool = False) -> Any:
        """Run the select; a list of rows, or one row (or ``None``) if ``single``."""
        self._blueprint.type = StatementType.SELECT
        return self._execute(RowMapper(single=single, model=self._model, owner=self))

    def all(self) -> list[Any]:
        return self.select()

    def first(self) -> Any:
        return self.select(single=True)

    def count(self, column: str | Argument = WILDCARD) -> int:
        return int(self._aggregate("COUNT", column))

    def sum(self, column: str | Argument) -> Any:
        return self._aggregate("SUM", column)

    def min(self, column: str | Argument) -> Any:
        return self._aggregate("MIN", column)

    def max(self, column: str | Argument) -> Any:
        return self._aggregate("MAX", column)

    def avg(self, column: str | Argument) -> Any:
        return self._aggregate("AVG", column)

    def chunk(
        self,
        size: int | None,
        callback: Callable[[list[Any], int, int], Any],
        index: str | None = None,
    ) -> Query:
        """Walk the matching rows in pages keyed on a monotonic column.

        Each page is a clone ordered by ``index`` ascending and restricted
        to ``index > last seen value``, so rows are visited once even when
        the table is written to between pages.  ``callback(rows, count,
        number)`` is called per non-empty page; returning ``False`` stops
        the walk.

        Args:
            size: Rows per page (default: ``options.chunk_size``).
            callback: Called with the page rows, their count and the 1-based
                page number.
            index: Cursor column (default: ``options.chunk_index``).

        Raises:
            ValueError: If ``size`` is not positive.
        """
        if size is None:
            size = self._options.chunk_size
        if size < 1:
            raise ValueError(f"chunk size must be positive, got {size!r}")
        index = index or self._options.chunk_index
        key = index.rsplit(".", 1)[-1]
        number = 1
        last: Any = 0
        while True:
            page = self.clone()
            page._blueprint.reset_fragment(Clause.ORDER)
            conditions = page._blueprint.get_fragments(Clause.WHERE)
            if conditions:
                # The cursor must bound the whole template, not its last OR branch.
                page._blueprint.reset_fragment(Clause.WHERE)
                page._blueprint.add_fragment(
                    Clause.WHERE,
                    Fragment(column=PredicateGroup(tuple(conditions)), boolean="AND"),
                )
            page.where(index, last, ">").order(index).limit(size)
            rows = page.all()
            if not rows:
                break
            _log.debug("query.chunk", chunk=number, rows=len(rows), index=index)
            if callback(rows, len(rows), number) is False:
                break
            last = _row_value(rows[-1], key)
            number += 1
        return self

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, data: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> Any:
        """Insert one row (a mapping) or a batch; returns the last insert id."""
        self._blueprint.reset_fragment(Clause.INSERT)
        self._blueprint.add_fragment(Clause.INSERT, Fragment(insert=_insert_rows(data)))
        self._blueprint.type = StatementType.INSERT
        self._execute()
        return self._connection.last_insert_id()

    def upsert(
        self,
        insert: Mapping[str, Any] | Iterable[Mapping[str, Any]],
        update: Mapping[str, Any],
        index: Iterable[str] = (),
    ) -> Query:
        """Insert, updating ``update`` columns when a unique key collides.

        ``index`` names the conflict target columns; SQLite requires it,
        MySQL infers it from the table's unique keys.
        """
        self._blueprint.reset_fragment(Clause.INSERT)
        self._blueprint.add_fragment(
            Clause.INSERT,
            Fragment(insert=_insert_rows(insert), update=dict(update), index=list(index)),
        )
        self._blueprint.type = StatementType.UPSERT
        self._execute()
        return self

    def update(self, data: Mapping[str, Any]) -> Query:
        self._blueprint.reset_fragment(Clause.UPDATE)
        self._blueprint.add_fragment(Clause.UPDATE, Fragment(update=dict(data)))
        self._blueprint.type = StatementType.UPDATE
        self._execute()
        return self

    def delete(self) -> Query:
        self._blueprint.type = StatementType.DELETE
        self._execute()
        return self

    def truncate(self) -> Query:
        self._blueprint.type = StatementType.TRUNCATE
        self._execute()
        return self

    # ------------------------------------------------------------------
    # Compilation and introspection
    # ------------------------------------------------------------------

    def build(self) -> CompiledQuery:
        """Compile the current blueprint without running it."""
        return self._compiler.build(self._blueprint)

    def dump(self, stream: Any = None) -> Query:
        """Write the compiled SQL and its parameters to ``stream`` (stdout)."""
        compiled = self.build()
        print(compiled.code, repr(compiled.parameters), sep="\n", file=stream)
        return self

    def clone(self) -> Query:
        """Return an independent copy sharing the connection and compiler."""
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._blueprint = self._blueprint.copy()
        return clone

    __copy__ = clone

    def __str__(self) -> str:
        return self.build().code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dialect={self._compiler.dialect_name!r}, "
            f"blueprint={self._blueprint!r})"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _condition(
        self, clause: Clause, column: Any, value: Any, operator: str, boolean: str
    ) -> Query:
        if callable(column):
            column = self._group(column, clause)
        else:
            column = _column_ref(column)
        if isinstance(value, (list, set, frozenset)):
            value = tuple(value)
        self._blueprint.add_fragment(
            clause,
            Fragment(column=column, value=value, operator=operator, boolean=boolean.upper()),
        )
        return self

    def _group(self, callback: Builder, clause: Clause) -> PredicateGroup:
        nested = self._spawn()
        callback(nested)
        return PredicateGroup(tuple(nested._blueprint.get_fragments(clause)))

    def _spawn(self) -> Query:
        nested = self.clone()
        nested._blueprint = Blueprint()
        nested._model = None
        nested._blank = True
        return nested

    def _aggregate(self, function: str, column: str | Argument) -> Any:
        name = function.lower()
        query = self.clone()
        query._model = None
        query._blank = False
        query._blueprint.reset_fragment(Clause.COLUMNS)
        query.column(Argument.method(function, column or WILDCARD), name)
        row = query.first()
        if row is None:
            return 0
        value = _row_value(row, name)
        return 0 if value is None else value

    def _execute(self, mapper: RowMapper | None = None) -> Any:
        compiled = self.build()
        _log.debug(
            "query.execute",
            statement=self._blueprint.type.value,
            dialect=compiled.dialect,
            sql=compiled.code,
            parameters=len(compiled.parameters),
        )
        return self._connection.query(compiled.code, compiled.parameters, mapper)


def _column_ref(value: Any) -> Any:
    return Argument.column(value) if isinstance(value, str) else value


def _table_ref(value: Any) -> Any:
    return Argument.table(value) if isinstance(value, str) else value


def _insert_rows(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, Mapping):
        return [dict(data)]
    if isinstance(data, (str, bytes)):
        raise TypeError("insert data must be a mapping or a sequence of mappings")
    return [dict(row) for row in data]


def _row_value(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)
