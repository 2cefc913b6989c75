"""Test fixtures: a recording connection, canned row sources and sample DDL."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mortar.connection import Dialect, RowMapper

_FIXTURES_DIR = Path(__file__).parent
_LIMIT = re.compile(r"LIMIT (\d+)$")

RowSource = Callable[[str, list], list]


class RecordingConnection:
    """Connection collaborator that records statements instead of running them.

    Args:
        dialect: Dialect tag reported to ``Query``.
        rows: Optional ``rows(sql, parameters) -> list[dict]`` serving
            select results; selects return no rows without it.
    """

    def __init__(self, dialect: Any = Dialect.MYSQL, rows: RowSource | None = None) -> None:
        self.dialect = dialect
        self.rows = rows
        self.statements: list[tuple[str, list]] = []
        self._insert_id = 0

    @property
    def sql(self) -> str:
        """SQL text of the latest statement."""
        return self.statements[-1][0]

    @property
    def parameters(self) -> list:
        """Parameters of the latest statement."""
        return self.statements[-1][1]

    def query(self, sql: str, parameters: list, mapper: RowMapper | None = None) -> Any:
        self.statements.append((sql, list(parameters)))
        if mapper is None:
            if sql.startswith("INSERT"):
                self._insert_id += 1
            return 1
        rows = self.rows(sql, list(parameters)) if self.rows else []
        return mapper.map(rows)

    def last_insert_id(self) -> int:
        return self._insert_id


def constant_rows(*rows: dict) -> RowSource:
    """Serve the same rows for every select."""
    return lambda sql, parameters: [dict(row) for row in rows]


def keyed_rows(total: int, index: str = "id") -> RowSource:
    """Serve a ``total``-row table keyed 1..total to keyset-paged selects.

    Reads the cursor from the last bound parameter and the page size from
    the trailing ``LIMIT n``.
    """

    def rows(sql: str, parameters: list) -> list:
        match = _LIMIT.search(sql)
        size = int(match.group(1)) if match else total
        cursor = parameters[-1] if parameters else 0
        last = min(cursor + size, total)
        return [{index: key, "total": key * 10} for key in range(cursor + 1, last + 1)]

    return rows


def load_ddl(target: str = "sqlite") -> list[str]:
    """Return the sample DDL for ``target`` split into single statements."""
    text = (_FIXTURES_DIR / f"ddl_{target}.sql").read_text()
    return [statement.strip() for statement in text.split(";") if statement.strip()]
