"""Clause fragments and predicate groups."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


class Fragment:
    """An immutable attribute record describing one clause piece.

    Attributes are read either by item or by attribute name; a missing
    attribute reads as ``None`` so optional keys (``alias``, ``offset``,
    ``index``) need no special casing in the compilers::

        fragment = Fragment(column=Argument.column("id"), alias="")
        fragment.column
        fragment["alias"]
        fragment.offset  # None
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None, **attributes: Any) -> None:
        merged = dict(data or {})
        merged.update(attributes)
        object.__setattr__(self, "_data", MappingProxyType(merged))

    @property
    def data(self) -> dict[str, Any]:
        """A copy of the fragment's attributes."""
        return dict(self._data)

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_data":
            raise AttributeError(name)
        return self._data.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Fragment is immutable")

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fragment):
            return NotImplemented
        return dict(self._data) == dict(other._data)

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self):
        return (Fragment, (dict(self._data),))

    def __repr__(self) -> str:
        return f"Fragment({dict(self._data)!r})"


@dataclass(frozen=True)
class PredicateGroup:
    """A parenthesised set of conditions captured from a nested builder.

    ``fragments`` are where/having fragments and may themselves hold further
    groups in their ``column`` slot, so nesting depth is unbounded.
    """

    fragments: tuple[Fragment, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.fragments)

    def __len__(self) -> int:
        return len(self.fragments)
