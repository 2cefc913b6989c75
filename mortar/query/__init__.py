"""mortar statement model: arguments, fragments, blueprints and compiled output.

The fluent builder lives in :mod:`mortar.query.query`; it is not imported
here because the compilers depend on this package.
"""
from mortar.query.argument import WILDCARD, Argument, ArgumentKind, quote_identifier
from mortar.query.blueprint import Blueprint, Clause, StatementType
from mortar.query.compiled import CompiledQuery
from mortar.query.fragment import Fragment, PredicateGroup

__all__ = [
    "WILDCARD",
    "Argument",
    "ArgumentKind",
    "quote_identifier",
    "Blueprint",
    "Clause",
    "StatementType",
    "CompiledQuery",
    "Fragment",
    "PredicateGroup",
]
