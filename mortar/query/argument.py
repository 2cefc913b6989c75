"""Non-bound SQL tokens.

An :class:`Argument` is anything the compiler must inline as SQL text rather
than send as a bound parameter: raw expressions, function calls, and column
or table references.  Arguments are immutable; build them with the four
constructors::

    Argument.raw("NOW()")
    Argument.method("SUM", "total")          # SUM(`total`)
    Argument.column("u.email", "login")      # `u`.`email` AS `login`
    Argument.table("user_meta", "um")        # `user_meta` AS `um`

Method parameters are quoted as identifiers, never bound, so they must only
ever carry column-like names and never untrusted user input.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

#: The wildcard token, which is never quoted.
WILDCARD = "*"


class ArgumentKind(str, Enum):
    """How an argument renders itself."""

    RAW = "raw"
    METHOD = "method"
    COLUMN = "column"
    TABLE = "table"


def quote_identifier(name: str) -> str:
    """Return ``name`` as a backtick-quoted identifier.

    The wildcard passes through unquoted.  Embedded backticks are doubled.
    """
    if name == WILDCARD:
        return name
    escaped = name.replace("`", "``")
    return f"`{escaped}`"


def quote_path(path: str, quote: Callable[[str], str] = quote_identifier) -> str:
    """Quote every dot-separated segment of ``path`` independently.

    Empty segments are left empty and ``*`` segments pass through, so
    ``u.*`` renders as ``` `u`.* ```.
    """
    parts = [quote(part) if part else part for part in str(path).split(".")]
    return ".".join(parts)


@dataclass(frozen=True)
class Argument:
    """An immutable SQL token that is inlined instead of parameter-bound.

    Attributes:
        kind: Rendering strategy.
        value: Raw text, function name, or dotted identifier path.
        parameters: Function arguments for ``method``; an optional alias for
            ``column`` / ``table``.
    """

    kind: ArgumentKind
    value: Any
    parameters: tuple[Any, ...] = ()

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def raw(cls, value: Any) -> Argument:
        """Create a raw, unescaped argument."""
        return cls(ArgumentKind.RAW, value)

    @classmethod
    def method(cls, name: str, *parameters: Any) -> Argument:
        """Create a function-call argument, e.g. ``COUNT(*)``."""
        return cls(ArgumentKind.METHOD, name, parameters)

    @classmethod
    def column(cls, name: str, *alias: str) -> Argument:
        """Create a column reference with an optional alias."""
        return cls(ArgumentKind.COLUMN, name, alias)

    @classmethod
    def table(cls, name: str, *alias: str) -> Argument:
        """Create a table reference with an optional alias."""
        return cls(ArgumentKind.TABLE, name, alias)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def compile(self, quote: Callable[[str], str] = quote_identifier) -> str:
        """Render the argument as SQL text.

        Args:
            quote: Identifier quoting function; compilers pass their own.

        Returns:
            The escaped SQL fragment.
        """
        if self.kind is ArgumentKind.RAW:
            return str(self.value)
        if self.kind is ArgumentKind.METHOD:
            args = ", ".join(self._compile_parameter(p, quote) for p in self.parameters)
            return f"{self.value}({args})"
        if self.value == WILDCARD:
            return WILDCARD
        sql = quote_path(self.value, quote)
        if self.parameters and self.parameters[0]:
            sql = f"{sql} AS {quote(str(self.parameters[0]))}"
        return sql

    @staticmethod
    def _compile_parameter(parameter: Any, quote: Callable[[str], str]) -> str:
        if isinstance(parameter, Argument):
            return parameter.compile(quote)
        if parameter == WILDCARD:
            return WILDCARD
        return quote_path(str(parameter), quote)

    def __str__(self) -> str:
        return self.compile()
