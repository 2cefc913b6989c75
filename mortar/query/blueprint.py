"""Dialect-agnostic statement blueprint.

A :class:`Blueprint` is the intermediate representation handed from the
fluent :class:`~mortar.query.query.Query` to a dialect compiler: the
statement type plus an ordered list of :class:`Fragment` objects per clause.
"""
from __future__ import annotations

from enum import Enum

from mortar.query.fragment import Fragment


class StatementType(str, Enum):
    """The kind of statement a blueprint compiles to."""

    SELECT = "select"
    INSERT = "insert"
    UPSERT = "upsert"
    UPDATE = "update"
    DELETE = "delete"
    TRUNCATE = "truncate"


class Clause(str, Enum):
    """Fragment buckets, one per clause kind."""

    COLUMNS = "columns"
    TABLES = "tables"
    JOIN = "join"
    WHERE = "where"
    HAVING = "having"
    GROUP = "group"
    ORDER = "order"
    LIMIT = "limit"
    UNION = "union"
    INSERT = "insert"
    UPDATE = "update"


class Blueprint:
    """Ordered fragment accumulation for one statement.

    A clause list springs into existence the first time the clause is
    touched; an untouched clause and an empty one read the same.
    """

    def __init__(self, type: StatementType | str = StatementType.SELECT) -> None:
        self._type = StatementType(type)
        self._fragments: dict[Clause, list[Fragment]] = {}

    # ------------------------------------------------------------------
    # Statement type
    # ------------------------------------------------------------------

    @property
    def type(self) -> StatementType:
        return self._type

    @type.setter
    def type(self, value: StatementType | str) -> None:
        self._type = StatementType(value)

    # ------------------------------------------------------------------
    # Fragment accumulation
    # ------------------------------------------------------------------

    def add_fragment(self, clause: Clause | str, fragment: Fragment) -> Blueprint:
        """Append ``fragment`` to ``clause``, creating the list on first use."""
        self._fragments.setdefault(Clause(clause), []).append(fragment)
        return self

    def pop_fragment(self, clause: Clause | str) -> Fragment | None:
        """Remove and return the last fragment of ``clause``, or ``None``."""
        fragments = self._fragments.get(Clause(clause))
        return fragments.pop() if fragments else None

    def shift_fragment(self, clause: Clause | str) -> Fragment | None:
        """Remove and return the first fragment of ``clause``, or ``None``."""
        fragments = self._fragments.get(Clause(clause))
        return fragments.pop(0) if fragments else None

    def reset_fragment(self, clause: Clause | str) -> Blueprint:
        """Empty ``clause``."""
        self._fragments[Clause(clause)] = []
        return self

    def get_fragments(self, clause: Clause | str) -> list[Fragment]:
        """Return a copy of the fragments recorded for ``clause``."""
        return list(self._fragments.get(Clause(clause), ()))

    def get_fragment(self, clause: Clause | str) -> Fragment | None:
        """Return the first fragment of ``clause`` without removing it."""
        fragments = self._fragments.get(Clause(clause))
        return fragments[0] if fragments else None

    def has_fragments(self, clause: Clause | str) -> bool:
        return bool(self._fragments.get(Clause(clause)))

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def copy(self) -> Blueprint:
        """Return a blueprint with freshly created fragment lists.

        Fragments are immutable, so only the lists are duplicated; appending
        to or resetting a clause on the copy never reaches the original.
        """
        clone = Blueprint(self._type)
        clone._fragments = {clause: list(items) for clause, items in self._fragments.items()}
        return clone

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> Blueprint:
        return self.copy()

    def __repr__(self) -> str:
        counts = {clause.value: len(items) for clause, items in self._fragments.items()}
        return f"Blueprint(type={self._type.value!r}, fragments={counts!r})"
