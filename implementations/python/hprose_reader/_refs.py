"""Session tables: the reference table and the class table.

Both are append-only within a session and indexed from 0.  They are
cleared together by ``Reader.reset()`` and never implicitly.
"""

from __future__ import annotations

from typing import Any, List, NamedTuple, Optional, Tuple

from ._errors import ERR_CLASS_INDEX, ERR_REF_INDEX, ReaderError


class ReferenceTable:
    """Slots for every reference-tracked value decoded this session.

    Values are shared, never copied: a list allocated here and filled
    afterwards is the same object every Ref resolves to, which is what lets
    a container hold a Ref to itself.
    """

    __slots__ = ("_slots",)

    def __init__(self) -> None:
        self._slots: List[Any] = []

    def allocate(self, value: Any) -> int:
        self._slots.append(value)
        return len(self._slots) - 1

    def resolve(self, index: int, position: Optional[int] = None) -> Any:
        if not 0 <= index < len(self._slots):
            raise ReaderError(
                ERR_REF_INDEX,
                "reference {} out of range (table holds {})".format(
                    index, len(self._slots)),
                position=position,
            )
        return self._slots[index]

    def reset(self) -> None:
        self._slots.clear()

    def __len__(self) -> int:
        return len(self._slots)


class ClassDescriptor(NamedTuple):
    """A Class definition as registered for this session."""

    name: str
    cls: Any
    fields: Tuple[str, ...]
    count: int


class ClassTable:
    __slots__ = ("_classes",)

    def __init__(self) -> None:
        self._classes: List[ClassDescriptor] = []

    def register(self, descriptor: ClassDescriptor) -> int:
        self._classes.append(descriptor)
        return len(self._classes) - 1

    def lookup(self, index: int,
               position: Optional[int] = None) -> ClassDescriptor:
        if not 0 <= index < len(self._classes):
            raise ReaderError(
                ERR_CLASS_INDEX,
                "class index {} was never registered ({} known)".format(
                    index, len(self._classes)),
                position=position,
            )
        return self._classes[index]

    def reset(self) -> None:
        self._classes.clear()

    def __len__(self) -> int:
        return len(self._classes)
