"""Reader error codes and exception classes.

Every failure aborts the top-level decode.  There is one exception type for
local parse failures, ``ReaderError``, and one subclass for failures the
peer sent us on purpose, ``RemoteError``.  Callers that only propagate can
catch ``ReaderError`` and never need to tell the two apart.
"""

from __future__ import annotations

from typing import Iterable, Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly: tests compare against these strings.

ERR_EMPTY_STREAM: str = "ERR_EMPTY_STREAM"        # no tag available at all
ERR_TRUNCATED: str = "ERR_TRUNCATED"              # stream ended mid-value
ERR_TAG_MISMATCH: str = "ERR_TAG_MISMATCH"        # tag outside expected set
ERR_UNEXPECTED_TAG: str = "ERR_UNEXPECTED_TAG"    # no decoder for tag
ERR_CLASS_INDEX: str = "ERR_CLASS_INDEX"          # object names unknown class
ERR_REF_INDEX: str = "ERR_REF_INDEX"              # ref beyond the table
ERR_REMOTE: str = "ERR_REMOTE"                    # Error tag from the peer
ERR_BAD_NUMBER: str = "ERR_BAD_NUMBER"            # digits that don't parse
ERR_UTF8: str = "ERR_UTF8"                        # text that isn't UTF-8
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"          # nesting beyond max_depth
ERR_REGISTRY: str = "ERR_REGISTRY"                # registry refused a class or field


def tag_repr(tag: Optional[int]) -> str:
    """Render a tag byte for error messages: printable ASCII or hex."""
    if tag is None:
        return "EOF"
    if 0x20 < tag < 0x7F:
        return repr(chr(tag))
    return "0x{:02x}".format(tag)


class ReaderError(Exception):
    """Exception for hprose decoding errors.

    ``code`` is one of the ERR_* strings above.  ``position`` is the byte
    offset in the stream where the problem was detected.  Tag errors also
    fill in ``expected`` (a tuple of tag bytes) and ``actual``.
    """

    def __init__(
        self,
        code: str,
        msg: str = "",
        *,
        position: Optional[int] = None,
        expected: Optional[Iterable[int]] = None,
        actual: Optional[int] = None,
    ) -> None:
        text = msg or code
        if position is not None:
            text = "{} (at byte {})".format(text, position)
        super().__init__(text)
        self.code = code
        self.position = position
        self.expected = tuple(expected) if expected is not None else None
        self.actual = actual


class RemoteError(ReaderError):
    """The stream carried an Error value instead of a result."""

    def __init__(self, message: str, *, position: Optional[int] = None) -> None:
        super().__init__(ERR_REMOTE, message, position=position)
        self.message = message


def tag_mismatch(expected: Iterable[int], actual: Optional[int],
                 position: Optional[int] = None) -> ReaderError:
    expected = tuple(expected)
    if actual is None:
        return ReaderError(
            ERR_TRUNCATED,
            "expected {} but the stream ended".format(
                " or ".join(tag_repr(t) for t in expected)),
            position=position, expected=expected, actual=None,
        )
    return ReaderError(
        ERR_TAG_MISMATCH,
        "tag {} expected, but {} found in stream".format(
            " or ".join(tag_repr(t) for t in expected), tag_repr(actual)),
        position=position, expected=expected, actual=actual,
    )
