"""Compiler output."""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CompiledQuery:
    """The output of a successful compilation.

    Attributes:
        code: SQL text with ``?`` positional placeholders.
        parameters: Values for the placeholders, in placeholder order.
        dialect: Name of the dialect that produced the SQL.
    """

    code: str = ""
    parameters: list[Any] = field(default_factory=list)
    dialect: str = ""

    def add_parameter(self, value: Any) -> CompiledQuery:
        """Bind one value, even if it is itself a list."""
        self.parameters.append(value)
        return self

    def add_parameters(self, values: Iterable[Any]) -> CompiledQuery:
        """Bind each of ``values`` in order."""
        self.parameters.extend(values)
        return self

    def __iter__(self) -> Iterator[Any]:
        # Allows ``sql, params = query.build()``.
        yield self.code
        yield self.parameters

    def __str__(self) -> str:
        return self.code
