"""hprose-reader command-line interface.

Usage:
    printf 'a2{1s2"hi"}' | python3 -m hprose_reader decode
    python3 -m hprose_reader decode --input dump.bin --all --reset
    python3 -m hprose_reader decode --hex < dump.hex
    python3 -m hprose_reader version
"""

from __future__ import annotations

import argparse
import binascii
import io
import logging
import pprint
import sys
from typing import List, Optional

from . import ERR_EMPTY_STREAM, Reader, ReaderError, RemoteError, __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hprose-reader",
        description="Decode hprose-serialized values for inspection",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log reader activity (class registrations, resets)")
    sub = parser.add_subparsers(dest="command")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode and pretty-print values")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read the stream from FILE instead of stdin")
    dec_p.add_argument("--hex", action="store_true",
                       help="Input is hex text rather than raw bytes")
    dec_p.add_argument("--all", action="store_true",
                       help="Keep decoding top-level values until the stream ends")
    dec_p.add_argument("--reset", action="store_true",
                       help="Reset references and classes between values (with --all)")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read stream bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("hprose-reader: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_decode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    if args.hex:
        try:
            raw = binascii.unhexlify(b"".join(raw.split()))
        except binascii.Error as e:
            raise SystemExit("hprose-reader: bad hex input: {}".format(e))

    reader = Reader(io.BytesIO(raw))
    if not args.all:
        print(pprint.pformat(reader.unserialize()))
        return

    while True:
        try:
            value = reader.unserialize()
        except ReaderError as e:
            if e.code == ERR_EMPTY_STREAM:
                return
            raise
        print(pprint.pformat(value))
        if args.reset:
            reader.reset()


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"hprose-reader {__version__}")
        return

    try:
        if args.command == "decode":
            _cmd_decode(args)
    except RemoteError as e:
        print(f"hprose-reader: remote error: {e.message}", file=sys.stderr)
        sys.exit(2)
    except ReaderError as e:
        print(f"hprose-reader: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
