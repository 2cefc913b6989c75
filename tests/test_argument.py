"""Unit tests for Argument rendering and identifier quoting."""

from __future__ import annotations

import pytest

from mortar.query.argument import Argument, ArgumentKind, quote_identifier, quote_path


def test_raw_is_inlined_verbatim():
    assert Argument.raw("NOW()").compile() == "NOW()"
    assert Argument.raw(1).compile() == "1"


def test_column_wildcard_is_not_quoted():
    assert Argument.column("*").compile() == "*"


def test_column_dotted_path_quotes_each_segment():
    assert Argument.column("u.email").compile() == "`u`.`email`"
    assert Argument.column("u.*").compile() == "`u`.*"


def test_column_with_alias():
    assert Argument.column("email", "login").compile() == "`email` AS `login`"


def test_table_with_alias():
    assert Argument.table("foo", "f").compile() == "`foo` AS `f`"


def test_empty_alias_is_ignored():
    assert Argument.table("foo", "").compile() == "`foo`"


def test_method_quotes_parameters():
    assert Argument.method("SUM", "total").compile() == "SUM(`total`)"
    assert Argument.method("COUNT", "*").compile() == "COUNT(*)"
    assert Argument.method("NOW").compile() == "NOW()"


def test_method_nests_arguments():
    inner = Argument.method("SUM", "o.total")
    outer = Argument.method("COALESCE", inner, Argument.raw("0"))
    assert outer.compile() == "COALESCE(SUM(`o`.`total`), 0)"


def test_backticks_inside_identifiers_are_doubled():
    assert quote_identifier("we`ird") == "`we``ird`"


def test_quote_path_keeps_empty_segments():
    assert quote_path("a..b") == "`a`..`b`"


def test_custom_quote_function():
    def quote(name: str) -> str:
        return f'"{name}"'

    assert Argument.column("u.id", "key").compile(quote) == '"u"."id" AS "key"'


def test_str_renders():
    assert str(Argument.column("id")) == "`id`"


def test_arguments_are_immutable_and_comparable():
    arg = Argument.column("id")
    assert arg == Argument(ArgumentKind.COLUMN, "id")
    with pytest.raises(AttributeError):
        arg.value = "other"  # type: ignore[misc]
