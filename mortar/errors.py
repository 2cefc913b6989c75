"""Custom exception hierarchy for mortar.

All public errors inherit from MortarError so callers can catch the base
class for any mortar-specific failure.  Errors raised by the database driver
behind a connection are never wrapped; they propagate unchanged.
"""
from __future__ import annotations

from typing import Any


class MortarError(Exception):
    """Base exception for all mortar errors."""


class ConfigurationError(MortarError):
    """Raised when a query cannot be bound to a usable dialect compiler.

    Detected when the ``Query`` is constructed, before any SQL is compiled,
    so a misconfigured connection fails immediately.

    Args:
        message: Human-readable description.
        dialect: The dialect value that could not be resolved, if any.
    """

    def __init__(self, message: str, dialect: Any = None) -> None:
        super().__init__(message)
        self.dialect = dialect


class CompilationError(MortarError):
    """Raised when a blueprint cannot be compiled to SQL.

    Args:
        message: Human-readable description.
        clause: The blueprint clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause
