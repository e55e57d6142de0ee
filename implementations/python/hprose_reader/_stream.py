"""Byte-source wrapper and the stream primitives every decoder builds on.

The reader issues many tiny reads (one tag, two date digits, a UTF-8
continuation byte).  ``ByteStream`` turns whatever the caller handed us into
exact reads, and turns end-of-stream into ``ReaderError`` at the point it
matters.
"""

from __future__ import annotations

import io
from typing import Any, Iterable, Optional

from ._errors import ERR_TRUNCATED, ReaderError, tag_mismatch

# Upper bound on a single read from the source.  Length prefixes come off
# the wire, so a declared size is never handed to the source as-is.
READ_CHUNK = 65536


class ByteStream:
    """Exact-read view over bytes or a binary file-like object.

    ``source`` may be ``bytes``, ``bytearray``, ``memoryview`` or anything
    with a ``read(n)`` method returning bytes.  Short reads are retried until
    the request is satisfied or the source returns nothing.
    """

    __slots__ = ("_source", "_pos")

    def __init__(self, source: Any) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        elif not callable(getattr(source, "read", None)):
            raise TypeError(
                "expected bytes or a readable binary stream, got {}".format(
                    type(source).__name__))
        self._source = source
        self._pos = 0

    @property
    def position(self) -> int:
        """Number of bytes consumed so far."""
        return self._pos

    def read(self, n: int) -> bytes:
        """Read up to n bytes; shorter only at end-of-stream."""
        if n <= 0:
            return b""
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._source.read(min(remaining, READ_CHUNK))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        self._pos += len(data)
        return data

    def read_byte(self) -> Optional[int]:
        """Read one byte, or None at end-of-stream."""
        b = self.read(1)
        return b[0] if b else None

    def read_exact(self, n: int, what: str = "value") -> bytes:
        data = self.read(n)
        if len(data) != n:
            raise ReaderError(
                ERR_TRUNCATED,
                "truncated {}: wanted {} bytes, got {}".format(what, n, len(data)),
                position=self._pos,
            )
        return data

    def read_tag(self) -> int:
        """Read one tag inside a value, where end-of-stream is a truncation."""
        tag = self.read_byte()
        if tag is None:
            raise ReaderError(ERR_TRUNCATED, "stream ended inside a value",
                              position=self._pos)
        return tag

    def read_until(self, terminator: int) -> bytes:
        """Accumulate bytes up to (and consuming, not returning) terminator."""
        buf = bytearray()
        while True:
            c = self.read_byte()
            if c is None:
                raise ReaderError(
                    ERR_TRUNCATED,
                    "terminator {!r} never found".format(chr(terminator)),
                    position=self._pos,
                )
            if c == terminator:
                return bytes(buf)
            buf.append(c)

    def expect_tag(self, expected: int) -> int:
        tag = self.read_byte()
        if tag != expected:
            raise tag_mismatch((expected,), tag, self._pos)
        return tag

    def expect_one_of(self, candidates: Iterable[int]) -> int:
        """Read one tag and return it if it is among candidates."""
        candidates = tuple(candidates)
        tag = self.read_byte()
        if tag is None or tag not in candidates:
            raise tag_mismatch(candidates, tag, self._pos)
        return tag
