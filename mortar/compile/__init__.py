"""mortar compilation layer: Blueprint → parameterized SQL."""
from mortar.compile.base import SQLCompiler
from mortar.compile.mysql import MySQLCompiler
from mortar.compile.registry import CompilerFactory
from mortar.compile.sqlite import SQLiteCompiler

CompilerFactory.register_class("mysql", MySQLCompiler)
CompilerFactory.register_class("sqlite", SQLiteCompiler)

__all__ = [
    "SQLCompiler",
    "CompilerFactory",
    "MySQLCompiler",
    "SQLiteCompiler",
]
