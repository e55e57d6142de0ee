"""hprose_reader — decoder for the hprose serialization format.

Hprose is a compact, tag-prefixed, self-describing format: every value
starts with a one-byte tag, numbers travel as decimal text, and repeated or
cyclic values travel as references to earlier ones.

Quick start:
    >>> from hprose_reader import unserialize
    >>> unserialize(b'a3{12s5"hello"}')
    [1, 2, 'hello']

A reader keeps its reference and class tables across calls, so several
values can be read from one continuing stream:
    >>> from hprose_reader import Reader
    >>> r = Reader(b's3"abc"r0;')
    >>> r.unserialize(), r.unserialize()
    ('abc', 'abc')
"""

from __future__ import annotations

from ._classes import ClassManager, ClassRegistry, DynamicObject, class_manager
from ._constants import MAX_DEPTH
from ._core import Reader, unserialize
from ._errors import (
    ERR_BAD_NUMBER,
    ERR_CLASS_INDEX,
    ERR_EMPTY_STREAM,
    ERR_LIMIT_DEPTH,
    ERR_REF_INDEX,
    ERR_REGISTRY,
    ERR_REMOTE,
    ERR_TAG_MISMATCH,
    ERR_TRUNCATED,
    ERR_UNEXPECTED_TAG,
    ERR_UTF8,
    ReaderError,
    RemoteError,
)
from ._hashmap import DecodedMap
from ._refs import ClassDescriptor, ClassTable, ReferenceTable
from ._stream import ByteStream
from ._temporal import DateTime

__version__ = "1.0.0"

__all__ = [
    # Decoding
    "unserialize",
    "Reader",
    "ByteStream",
    "MAX_DEPTH",
    # Decoded value types
    "DateTime",
    "DecodedMap",
    "DynamicObject",
    # Session tables
    "ReferenceTable",
    "ClassTable",
    "ClassDescriptor",
    # Class registry
    "ClassRegistry",
    "ClassManager",
    "class_manager",
    # Exceptions
    "ReaderError",
    "RemoteError",
    # Error codes
    "ERR_EMPTY_STREAM",
    "ERR_TRUNCATED",
    "ERR_TAG_MISMATCH",
    "ERR_UNEXPECTED_TAG",
    "ERR_CLASS_INDEX",
    "ERR_REF_INDEX",
    "ERR_REMOTE",
    "ERR_BAD_NUMBER",
    "ERR_UTF8",
    "ERR_LIMIT_DEPTH",
    "ERR_REGISTRY",
]
