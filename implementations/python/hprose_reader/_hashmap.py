"""Insertion-ordered map whose keys may be any decoded value.

A peer can send a Map keyed by a List, another Map, or an Object.  Those
Python types aren't hashable, and even if they were, two separately decoded
lists with equal contents are different wire values.  So keys are split in
two families:

    scalars    None, bool, int, float, Decimal, str, bytes, DateTime
               → compared by value, qualified by type (True and 1 differ)
    composites everything else (list, DecodedMap, objects)
               → compared by identity of the decoded instance

This deliberately differs from ``dict``.  Looking up a composite key only
works with the very instance the reader produced (or a Ref to it).
"""

from __future__ import annotations

import reprlib
from collections.abc import MutableMapping
from decimal import Decimal
from typing import Any, Dict, Hashable, Iterator, Tuple

from ._temporal import DateTime

_BY_VALUE = (type(None), bool, int, float, Decimal, str, bytes, DateTime)

_IDENTITY = object()


def key_of(value: Any) -> Hashable:
    """Return the hashable stand-in used to file ``value`` as a map key."""
    if isinstance(value, _BY_VALUE):
        return (type(value), value)
    return (_IDENTITY, id(value))


class DecodedMap(MutableMapping):
    """Ordered mapping with value keys for scalars, identity keys otherwise."""

    __slots__ = ("_entries",)

    def __init__(self, items: Any = ()) -> None:
        # stand-in key -> (original key, value); the original key is held
        # here so identity stand-ins never outlive their object.
        self._entries: Dict[Hashable, Tuple[Any, Any]] = {}
        if isinstance(items, (DecodedMap, dict)):
            items = items.items()
        for k, v in items:
            self[k] = v

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._entries[key_of(key)][1]
        except KeyError:
            raise KeyError(key) from None

    def __setitem__(self, key: Any, value: Any) -> None:
        sk = key_of(key)
        entry = self._entries.get(sk)
        if entry is not None:
            # keep the first key instance, replace the value in place
            self._entries[sk] = (entry[0], value)
        else:
            self._entries[sk] = (key, value)

    def __delitem__(self, key: Any) -> None:
        try:
            del self._entries[key_of(key)]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return key_of(key) in self._entries

    def __iter__(self) -> Iterator[Any]:
        for k, _v in self._entries.values():
            yield k

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecodedMap):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    @reprlib.recursive_repr("DecodedMap({...})")
    def __repr__(self) -> str:
        body = ", ".join("{!r}: {!r}".format(k, v) for k, v in self._entries.values())
        return "DecodedMap({" + body + "})"

    def to_dict(self) -> Dict[Any, Any]:
        """Copy into a plain dict.  Raises TypeError on unhashable keys."""
        return {k: v for k, v in self._entries.values()}
