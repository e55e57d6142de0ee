"""Hprose reader: tag dispatch and every value decoder.

One tag byte selects a decoder.  Containers recurse back into the
dispatcher for their elements.  Every identity-bearing value (string,
bytes, GUID, date, time, list, map, object) takes a slot in the reference
table *before* its children are decoded, so a Ref inside a container can
point at the container itself.

Value mapping:

    0-9, Integer, Long   int  (Python ints are already arbitrary-precision)
    Double               decimal.Decimal
    NaN, Infinity        float
    Null / True / False  None / bool
    Empty, String, Char  str
    Guid                 str  (opaque, not grammar-checked)
    Bytes                bytes
    Date, Time           DateTime  (nanosecond resolution)
    List                 list
    Map                  DecodedMap  (identity keys for composites)
    Class + Object       instance supplied by the class registry
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from ._classes import ClassRegistry, class_manager
from ._constants import (
    DIGITS,
    EPOCH_DAY,
    EPOCH_MONTH,
    EPOCH_YEAR,
    EXPECT_BOOLEAN,
    EXPECT_BYTES,
    EXPECT_DATE,
    EXPECT_GUID,
    EXPECT_LIST,
    EXPECT_MAP,
    EXPECT_OBJECT,
    EXPECT_STRING,
    EXPECT_TIME,
    GUID_LENGTH,
    MAX_DEPTH,
    TAG_BYTES,
    TAG_CLASS,
    TAG_CLOSEBRACE,
    TAG_DATE,
    TAG_DOUBLE,
    TAG_EMPTY,
    TAG_ERROR,
    TAG_FALSE,
    TAG_GUID,
    TAG_INFINITY,
    TAG_INTEGER,
    TAG_LIST,
    TAG_LONG,
    TAG_MAP,
    TAG_NAN,
    TAG_NEG,
    TAG_NULL,
    TAG_OBJECT,
    TAG_OPENBRACE,
    TAG_POINT,
    TAG_QUOTE,
    TAG_REF,
    TAG_SEMICOLON,
    TAG_STRING,
    TAG_TIME,
    TAG_TRUE,
    TAG_UTC,
    TAG_UTF8CHAR,
)
from ._errors import (
    ERR_BAD_NUMBER,
    ERR_EMPTY_STREAM,
    ERR_LIMIT_DEPTH,
    ERR_REGISTRY,
    ERR_UNEXPECTED_TAG,
    ERR_UTF8,
    ReaderError,
    RemoteError,
    tag_mismatch,
    tag_repr,
)
from ._hashmap import DecodedMap
from ._refs import ClassDescriptor, ClassTable, ReferenceTable
from ._stream import ByteStream
from ._temporal import DateTime

logger = logging.getLogger(__name__)

_INTEGER = re.compile(rb"[+-]?[0-9]+")
_DECIMAL = re.compile(rb"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

_ZERO = ord("0")


class Reader:
    """Decode hprose values from one byte stream.

    A reader owns the session state (reference table and class table) for
    its stream.  Consecutive ``unserialize()`` calls share that state, as a
    continuing stream requires; call ``reset()`` between logically
    independent values.  Not safe for concurrent use: give each thread its
    own reader.
    """

    def __init__(self, stream: Any, registry: Optional[ClassRegistry] = None,
                 *, max_depth: int = MAX_DEPTH) -> None:
        self.stream = stream if isinstance(stream, ByteStream) else ByteStream(stream)
        self.registry = registry if registry is not None else class_manager
        self.max_depth = max_depth
        self.refs = ReferenceTable()
        self.classes = ClassTable()
        self._depth = 0

    def reset(self) -> None:
        """Forget every reference and class seen so far."""
        logger.debug("reset after %d refs, %d classes",
                     len(self.refs), len(self.classes))
        self.refs.reset()
        self.classes.reset()

    # ── Entry point ───────────────────────────────────────────

    def unserialize(self) -> Any:
        """Decode the next value of any type."""
        tag = self.stream.read_byte()
        if tag is None:
            raise ReaderError(ERR_EMPTY_STREAM, "no byte found in stream",
                              position=self.stream.position)
        return self._read_value(tag)

    def _read_element(self) -> Any:
        # Inside a container the stream may not simply end.
        return self._read_value(self.stream.read_tag())

    def _read_value(self, tag: int) -> Any:
        if tag in DIGITS:
            return tag - _ZERO
        if tag == TAG_INTEGER:
            return self._read_integer_body()
        if tag == TAG_LONG:
            return self._read_long_body()
        if tag == TAG_DOUBLE:
            return self._read_double_body()
        if tag == TAG_NAN:
            return math.nan
        if tag == TAG_INFINITY:
            return self._read_infinity_body()
        if tag == TAG_NULL:
            return None
        if tag == TAG_EMPTY:
            return ""
        if tag == TAG_TRUE:
            return True
        if tag == TAG_FALSE:
            return False
        if tag == TAG_DATE:
            return self._read_date_body()
        if tag == TAG_TIME:
            return self._read_time_body()
        if tag == TAG_BYTES:
            return self._read_bytes_body()
        if tag == TAG_UTF8CHAR:
            return self._read_utf8(1)
        if tag == TAG_STRING:
            return self._read_string_body()
        if tag == TAG_GUID:
            return self._read_guid_body()
        if tag == TAG_LIST:
            return self._read_list_body()
        if tag == TAG_MAP:
            return self._read_map_body()
        if tag == TAG_CLASS:
            return self._read_class_then_object()
        if tag == TAG_OBJECT:
            return self._read_object_body()
        if tag == TAG_REF:
            return self._read_ref()
        if tag == TAG_ERROR:
            message = self.read_string()
            logger.debug("remote error in stream: %s", message)
            raise RemoteError(str(message), position=self.stream.position)
        raise ReaderError(
            ERR_UNEXPECTED_TAG,
            "unexpected serialize tag {} in stream".format(tag_repr(tag)),
            position=self.stream.position, actual=tag,
        )

    # ── Typed reads ───────────────────────────────────────────
    # Each checks the leading tag itself.  Kinds that live in the reference
    # table also accept a Ref in place of the value.

    def read_integer(self) -> int:
        tag = self.stream.read_tag()
        if tag in DIGITS:
            return tag - _ZERO
        self._check(tag, (TAG_INTEGER,))
        return self._read_integer_body()

    def read_long(self) -> int:
        tag = self.stream.read_tag()
        if tag in DIGITS:
            return tag - _ZERO
        self._check(tag, (TAG_LONG,))
        return self._read_long_body()

    def read_double(self) -> Decimal:
        tag = self.stream.read_tag()
        if tag in DIGITS:
            return Decimal(tag - _ZERO)
        self._check(tag, (TAG_DOUBLE,))
        return self._read_double_body()

    def read_nan(self) -> float:
        self.stream.expect_tag(TAG_NAN)
        return math.nan

    def read_infinity(self) -> float:
        self.stream.expect_tag(TAG_INFINITY)
        return self._read_infinity_body()

    def read_null(self) -> None:
        self.stream.expect_tag(TAG_NULL)

    def read_empty(self) -> str:
        self.stream.expect_tag(TAG_EMPTY)
        return ""

    def read_boolean(self) -> bool:
        return self.stream.expect_one_of(EXPECT_BOOLEAN) == TAG_TRUE

    def read_date(self) -> DateTime:
        if self.stream.expect_one_of(EXPECT_DATE) == TAG_REF:
            return self._read_ref()
        return self._read_date_body()

    def read_time(self) -> DateTime:
        if self.stream.expect_one_of(EXPECT_TIME) == TAG_REF:
            return self._read_ref()
        return self._read_time_body()

    def read_bytes(self) -> bytes:
        if self.stream.expect_one_of(EXPECT_BYTES) == TAG_REF:
            return self._read_ref()
        return self._read_bytes_body()

    def read_utf8char(self) -> str:
        self.stream.expect_tag(TAG_UTF8CHAR)
        return self._read_utf8(1)

    def read_string(self) -> str:
        if self.stream.expect_one_of(EXPECT_STRING) == TAG_REF:
            return self._read_ref()
        return self._read_string_body()

    def read_guid(self) -> str:
        if self.stream.expect_one_of(EXPECT_GUID) == TAG_REF:
            return self._read_ref()
        return self._read_guid_body()

    def read_list(self) -> List[Any]:
        if self.stream.expect_one_of(EXPECT_LIST) == TAG_REF:
            return self._read_ref()
        return self._read_list_body()

    def read_map(self) -> DecodedMap:
        if self.stream.expect_one_of(EXPECT_MAP) == TAG_REF:
            return self._read_ref()
        return self._read_map_body()

    def read_object(self) -> Any:
        tag = self.stream.expect_one_of(EXPECT_OBJECT)
        if tag == TAG_REF:
            return self._read_ref()
        if tag == TAG_CLASS:
            return self._read_class_then_object()
        return self._read_object_body()

    def _check(self, tag: int, expected: Tuple[int, ...]) -> None:
        if tag not in expected:
            raise tag_mismatch(expected, tag, self.stream.position)

    # ── Numbers ───────────────────────────────────────────────

    def _bad_number(self, text: bytes, what: str) -> ReaderError:
        return ReaderError(
            ERR_BAD_NUMBER, "malformed {}: {!r}".format(what, text),
            position=self.stream.position,
        )

    def _parse_int(self, text: bytes, what: str) -> int:
        if not _INTEGER.fullmatch(text):
            raise self._bad_number(text, what)
        try:
            return int(text)
        except ValueError as e:
            # digit count beyond sys.get_int_max_str_digits()
            raise self._bad_number(text[:32] + b"...", what) from e

    def _read_int(self, terminator: int, what: str) -> int:
        # An empty digit run reads as 0.
        text = self.stream.read_until(terminator)
        if not text:
            return 0
        return self._parse_int(text, what)

    def _read_count(self, terminator: int, what: str) -> int:
        n = self._read_int(terminator, what)
        if n < 0:
            raise self._bad_number(str(n).encode("ascii"), what)
        return n

    def _read_integer_body(self) -> int:
        return self._read_int(TAG_SEMICOLON, "integer")

    def _read_long_body(self) -> int:
        text = self.stream.read_until(TAG_SEMICOLON)
        return self._parse_int(text, "long")

    def _read_double_body(self) -> Decimal:
        text = self.stream.read_until(TAG_SEMICOLON)
        if not _DECIMAL.fullmatch(text):
            raise self._bad_number(text, "double")
        try:
            return Decimal(text.decode("ascii"))
        except InvalidOperation as e:
            raise self._bad_number(text, "double") from e

    def _read_infinity_body(self) -> float:
        # The sign byte is always consumed; only Neg flips the sign.
        return -math.inf if self.stream.read_byte() == TAG_NEG else math.inf

    def _read_digits(self, n: int, what: str) -> int:
        text = self.stream.read_exact(n, what)
        if not text.isdigit():
            raise self._bad_number(text, what)
        return int(text)

    # ── Text and binary ───────────────────────────────────────

    def _read_utf8(self, length: int) -> str:
        """Read ``length`` UTF-16 code units worth of UTF-8 bytes.

        The length prefix counts UTF-16 units, so a 4-byte sequence (a
        surrogate pair on the sending side) counts as two.  A 4-byte
        sequence arriving with one unit left is still read whole.
        """
        buf = bytearray()
        units = 0
        while units < length:
            # Every unit costs at least one byte, so this never over-reads.
            chunk = self.stream.read_exact(length - units, "string")
            i = 0
            while i < len(chunk):
                lead = chunk[i]
                if lead < 0x80:
                    width = 1
                elif lead & 0xE0 == 0xC0:
                    width = 2
                elif lead & 0xF0 == 0xE0:
                    width = 3
                elif lead & 0xF8 == 0xF0:
                    width = 4
                else:
                    raise ReaderError(
                        ERR_UTF8, "invalid UTF-8 lead byte 0x{:02x}".format(lead),
                        position=self.stream.position,
                    )
                end = i + width
                if end > len(chunk):
                    chunk += self.stream.read_exact(end - len(chunk), "string")
                units += 2 if width == 4 else 1
                i = end
            buf += chunk
        try:
            return buf.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ReaderError(ERR_UTF8, "invalid UTF-8 in string: {}".format(e.reason),
                              position=self.stream.position) from e

    def _read_text(self) -> str:
        """Length-prefixed, quoted text that takes no reference slot."""
        length = self._read_count(TAG_QUOTE, "string length")
        text = self._read_utf8(length)
        self.stream.expect_tag(TAG_QUOTE)
        return text

    def _read_string_body(self) -> str:
        text = self._read_text()
        self.refs.allocate(text)
        return text

    def _read_bytes_body(self) -> bytes:
        length = self._read_count(TAG_QUOTE, "bytes length")
        data = self.stream.read_exact(length, "bytes")
        self.stream.expect_tag(TAG_QUOTE)
        self.refs.allocate(data)
        return data

    def _read_guid_body(self) -> str:
        self.stream.expect_tag(TAG_OPENBRACE)
        guid = self.stream.read_exact(GUID_LENGTH, "guid").decode("latin-1")
        self.stream.expect_tag(TAG_CLOSEBRACE)
        self.refs.allocate(guid)
        return guid

    # ── Dates and times ───────────────────────────────────────

    def _read_clock(self) -> Tuple[int, int, int, int, int]:
        """Read hhmmss[.fff[fff[fff]]] and return it with the zone tag.

        The fraction is normalized to nanoseconds whether the peer sent
        milli-, micro- or nanosecond precision.
        """
        hour = self._read_digits(2, "hour")
        minute = self._read_digits(2, "minute")
        second = self._read_digits(2, "second")
        nanosecond = 0
        tag = self.stream.read_tag()
        if tag == TAG_POINT:
            nanosecond = self._read_digits(3, "fraction")
            tag = self.stream.read_tag()
            if tag in DIGITS:
                nanosecond = (nanosecond * 10 + tag - _ZERO) * 100 + self._read_digits(2, "fraction")
                tag = self.stream.read_tag()
                if tag in DIGITS:
                    nanosecond = (nanosecond * 10 + tag - _ZERO) * 100 + self._read_digits(2, "fraction")
                    tag = self.stream.read_tag()
                else:
                    nanosecond *= 1000
            else:
                nanosecond *= 1000000
        return hour, minute, second, nanosecond, tag

    def _read_date_body(self) -> DateTime:
        year = self._read_digits(4, "year")
        month = self._read_digits(2, "month")
        day = self._read_digits(2, "day")
        hour = minute = second = nanosecond = 0
        tag = self.stream.read_tag()
        if tag == TAG_TIME:
            hour, minute, second, nanosecond, tag = self._read_clock()
        value = DateTime(year, month, day, hour, minute, second, nanosecond,
                         utc=tag == TAG_UTC)
        self.refs.allocate(value)
        return value

    def _read_time_body(self) -> DateTime:
        hour, minute, second, nanosecond, tag = self._read_clock()
        value = DateTime(EPOCH_YEAR, EPOCH_MONTH, EPOCH_DAY,
                         hour, minute, second, nanosecond, utc=tag == TAG_UTC)
        self.refs.allocate(value)
        return value

    # ── Containers ────────────────────────────────────────────

    def _enter(self) -> None:
        if self._depth >= self.max_depth:
            raise ReaderError(
                ERR_LIMIT_DEPTH, "nesting exceeds max_depth={}".format(self.max_depth),
                position=self.stream.position,
            )
        self._depth += 1

    def _read_list_body(self) -> List[Any]:
        items: List[Any] = []
        self.refs.allocate(items)
        count = self._read_count(TAG_OPENBRACE, "list count")
        self._enter()
        try:
            for _ in range(count):
                items.append(self._read_element())
        finally:
            self._depth -= 1
        self.stream.expect_tag(TAG_CLOSEBRACE)
        return items

    def _read_map_body(self) -> DecodedMap:
        mapping = DecodedMap()
        self.refs.allocate(mapping)
        count = self._read_count(TAG_OPENBRACE, "map count")
        self._enter()
        try:
            for _ in range(count):
                key = self._read_element()
                mapping[key] = self._read_element()
        finally:
            self._depth -= 1
        self.stream.expect_tag(TAG_CLOSEBRACE)
        return mapping

    # ── Classes and objects ───────────────────────────────────

    def _read_field_name(self) -> str:
        # Field names may arrive tagged (s4"name") or bare (4"name").
        # Neither form takes a reference slot.
        tag = self.stream.read_tag()
        if tag == TAG_STRING:
            return self._read_text()
        if tag not in DIGITS:
            raise tag_mismatch((TAG_STRING,), tag, self.stream.position)
        rest = self.stream.read_until(TAG_QUOTE)
        length = self._parse_int(bytes((tag,)) + rest, "field name length")
        name = self._read_utf8(length)
        self.stream.expect_tag(TAG_QUOTE)
        return name

    def _read_class(self) -> None:
        name = self._read_text()
        count = self._read_count(TAG_OPENBRACE, "field count")
        fields = tuple(self._read_field_name() for _ in range(count))
        self.stream.expect_tag(TAG_CLOSEBRACE)
        try:
            cls = self.registry.resolve(name)
        except (AttributeError, TypeError, ValueError) as e:
            raise ReaderError(ERR_REGISTRY, "cannot resolve class {!r}: {}".format(name, e),
                              position=self.stream.position) from e
        index = self.classes.register(ClassDescriptor(name, cls, fields, count))
        logger.debug("class #%d %r with fields %s", index, name, fields)

    def _read_class_then_object(self) -> Any:
        # Several Class definitions may precede the value that uses them.
        self._read_class()
        while True:
            tag = self.stream.expect_one_of(EXPECT_OBJECT)
            if tag == TAG_CLASS:
                self._read_class()
            elif tag == TAG_REF:
                return self._read_ref()
            else:
                return self._read_object_body()

    def _read_object_body(self) -> Any:
        index = self._read_count(TAG_OPENBRACE, "class index")
        descriptor = self.classes.lookup(index, self.stream.position)
        try:
            obj = self.registry.instantiate(descriptor.cls)
        except (AttributeError, TypeError, ValueError) as e:
            raise ReaderError(ERR_REGISTRY, "cannot instantiate {!r}: {}".format(
                descriptor.name, e), position=self.stream.position) from e
        self.refs.allocate(obj)
        self._enter()
        try:
            for field in descriptor.fields:
                value = self._read_element()
                try:
                    self.registry.set_field(obj, field, value)
                except (AttributeError, TypeError, ValueError) as e:
                    raise ReaderError(ERR_REGISTRY, "cannot set {}.{}: {}".format(
                        descriptor.name, field, e), position=self.stream.position) from e
        finally:
            self._depth -= 1
        self.stream.expect_tag(TAG_CLOSEBRACE)
        return obj

    # ── References ────────────────────────────────────────────

    def _read_ref(self) -> Any:
        index = self._read_int(TAG_SEMICOLON, "reference")
        return self.refs.resolve(index, self.stream.position)


def unserialize(data: Any, registry: Optional[ClassRegistry] = None,
                *, max_depth: int = MAX_DEPTH) -> Any:
    """Decode a single value from bytes or a binary stream.

    Uses a fresh reader, so references and classes don't carry over
    between calls.
    """
    return Reader(data, registry, max_depth=max_depth).unserialize()
