"""Hprose wire markers, expected-tag sets, and reader limits.

Every value on the wire starts with a one-byte tag.  The digits 0-9 double
as tags: a bare digit is the integer literal itself, with no terminator.
"""

from __future__ import annotations

from typing import FrozenSet, Tuple

# ── Value tags ───────────────────────────────────────────────
TAG_INTEGER: int = ord("i")
TAG_LONG: int = ord("l")
TAG_DOUBLE: int = ord("d")
TAG_NAN: int = ord("N")
TAG_INFINITY: int = ord("I")
TAG_NULL: int = ord("n")
TAG_EMPTY: int = ord("e")
TAG_TRUE: int = ord("t")
TAG_FALSE: int = ord("f")
TAG_DATE: int = ord("D")
TAG_TIME: int = ord("T")
TAG_BYTES: int = ord("b")
TAG_UTF8CHAR: int = ord("u")
TAG_STRING: int = ord("s")
TAG_GUID: int = ord("g")
TAG_LIST: int = ord("a")
TAG_MAP: int = ord("m")
TAG_CLASS: int = ord("c")
TAG_OBJECT: int = ord("o")
TAG_REF: int = ord("r")
TAG_ERROR: int = ord("E")

# ── Structural markers ───────────────────────────────────────
TAG_NEG: int = ord("-")
TAG_SEMICOLON: int = ord(";")   # numeric terminator
TAG_OPENBRACE: int = ord("{")   # count terminator
TAG_CLOSEBRACE: int = ord("}")
TAG_QUOTE: int = ord('"')       # text/bytes length terminator
TAG_POINT: int = ord(".")       # fraction start
TAG_UTC: int = ord("Z")

DIGITS: FrozenSet[int] = frozenset(range(ord("0"), ord("9") + 1))

# ── Typed-read expectations ──────────────────────────────────
# Reference-tracked kinds may arrive either inline or as a Ref to an
# earlier occurrence in the same session.
EXPECT_BOOLEAN: Tuple[int, ...] = (TAG_TRUE, TAG_FALSE)
EXPECT_DATE: Tuple[int, ...] = (TAG_DATE, TAG_REF)
EXPECT_TIME: Tuple[int, ...] = (TAG_TIME, TAG_REF)
EXPECT_BYTES: Tuple[int, ...] = (TAG_BYTES, TAG_REF)
EXPECT_STRING: Tuple[int, ...] = (TAG_STRING, TAG_REF)
EXPECT_GUID: Tuple[int, ...] = (TAG_GUID, TAG_REF)
EXPECT_LIST: Tuple[int, ...] = (TAG_LIST, TAG_REF)
EXPECT_MAP: Tuple[int, ...] = (TAG_MAP, TAG_REF)
EXPECT_OBJECT: Tuple[int, ...] = (TAG_CLASS, TAG_OBJECT, TAG_REF)

# A GUID body is exactly 36 characters between the braces.
GUID_LENGTH: int = 36

# Date/time fields not present on the wire default to the epoch.
EPOCH_YEAR: int = 1970
EPOCH_MONTH: int = 1
EPOCH_DAY: int = 1

# ── Limits ───────────────────────────────────────────────────
# Each nesting level costs two interpreter frames; 256 keeps well clear of
# the default recursion limit.
MAX_DEPTH: int = 256
