"""Compiler registry (Open/Closed Principle).

``CompilerFactory``
    Central registry for :class:`~mortar.compile.base.SQLCompiler`
    implementations, keyed by :class:`~mortar.connection.Dialect`.  Register
    a new compiler once; every ``Query`` bound to a connection of that
    dialect picks it up automatically.

Usage::

    from mortar.compile.registry import CompilerFactory

    @CompilerFactory.register(Dialect.MYSQL)
    class TunedMySQLCompiler(MySQLCompiler):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from mortar.compile.base import SQLCompiler
from mortar.connection import Dialect
from mortar.errors import ConfigurationError


class CompilerFactory:
    """Registry mapping dialect tags to :class:`SQLCompiler` classes.

    Callers register a compiler class once; queries create instances on
    demand via :meth:`create`.

    Example::

        @CompilerFactory.register(Dialect.SQLITE)
        class SQLiteCompiler(SQLCompiler):
            ...

        compiler = CompilerFactory.create(Dialect.SQLITE)
    """

    _compilers: ClassVar[dict[Dialect, type[SQLCompiler]]] = {}

    @classmethod
    def register(cls, dialect: Dialect | str) -> Callable[[type[SQLCompiler]], type[SQLCompiler]]:
        """Decorator that registers a compiler class under ``dialect``.

        Args:
            dialect: The dialect tag (e.g. ``Dialect.MYSQL`` or ``"mysql"``).

        Returns:
            A decorator that registers and returns the compiler class.
        """

        def decorator(compiler_cls: type[SQLCompiler]) -> type[SQLCompiler]:
            cls._compilers[Dialect(dialect)] = compiler_cls
            return compiler_cls

        return decorator

    @classmethod
    def register_class(cls, dialect: Dialect | str, compiler_cls: type[SQLCompiler]) -> None:
        """Register a compiler class without using the decorator form."""
        cls._compilers[Dialect(dialect)] = compiler_cls

    @classmethod
    def create(cls, dialect: Any) -> SQLCompiler:
        """Instantiate the compiler registered for ``dialect``.

        Args:
            dialect: A :class:`Dialect` member or its string value.

        Returns:
            A fresh :class:`SQLCompiler` instance.

        Raises:
            ConfigurationError: If no compiler is registered for ``dialect``.
        """
        try:
            compiler_cls = cls._compilers.get(Dialect(dialect))
        except ValueError:
            compiler_cls = None
        if compiler_cls is None:
            registered = cls.registered_dialects()
            raise ConfigurationError(
                f"Unsupported dialect: {dialect!r}. Registered dialects: {registered}.",
                dialect=dialect,
            )
        return compiler_cls()

    @classmethod
    def registered_dialects(cls) -> list[str]:
        """Return the sorted list of registered dialect names."""
        return sorted(dialect.value for dialect in cls._compilers)
