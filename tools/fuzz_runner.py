#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing of the hprose reader.
#
# Takes a corpus of well-formed seed streams and applies random mutations:
#   A) truncate at a random offset
#   B) flip / replace a random byte (biased toward tag bytes)
#   C) splice a random slice of another seed into the stream
#
# Every decode must either return a value or raise ReaderError.  Any other
# exception is a reader bug: the runner prints a repro payload and exits
# non-zero.

import os, sys, random, base64, traceback
from typing import List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

from hprose_reader import ERR_EMPTY_STREAM, ClassManager, Reader, ReaderError

SEED = int(os.environ.get("HPROSE_SEED", "4242"))
ROUNDS = int(os.environ.get("HPROSE_FUZZ_ROUNDS", "20000"))
MAX_DEPTH = int(os.environ.get("HPROSE_FUZZ_MAX_DEPTH", "32"))

random.seed(SEED)

SEEDS: List[bytes] = [
    b"5",
    b"i-123;",
    b"l123456789012345678901234567890;",
    b"d-1.25E-3;",
    b"NI+I-ntfe",
    b's5"hello"',
    b's3"a' + "\U0001F600".encode("utf-8") + b'"',
    b"u" + "€".encode("utf-8"),
    b'b4"\x00\xff"\n"',
    b"g{AFA7F4B1-A64D-46FA-886F-ED7FBCFEF069}",
    b"D20121207T153025.123456789Z",
    b"T235959.123;",
    b'a3{1s1"x"a1{r0;}}',
    b'm2{s1"k"a2{12}r2;r1;}',
    b'c6"Person"2{s4"name"s3"age"}o0{s3"Tom"i30;}o0{e0}',
    b'c1"A"1{1"x"}c1"B"0{}o1{}',
    b'Es5"error"',
    b'b99999999999999999999"x"',
]

# Tag bytes are where mutations hurt the most.
TAGS = b"0123456789ildNInetfDTbusgamcorE+-;{}\".Z"

def b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def mutate(data: bytes) -> bytes:
    r = random.random()
    if r < 0.30 and data:
        return data[:random.randrange(len(data))]
    if r < 0.75 and data:
        buf = bytearray(data)
        i = random.randrange(len(buf))
        if random.random() < 0.6:
            buf[i] = random.choice(TAGS)
        else:
            buf[i] = random.getrandbits(8)
        return bytes(buf)
    other = random.choice(SEEDS)
    a = random.randrange(len(other) + 1)
    b = random.randrange(a, len(other) + 1)
    at = random.randrange(len(data) + 1)
    return data[:at] + other[a:b] + data[at:]

def decode_all(data: bytes) -> None:
    # Read values until the stream runs dry, as a client on a pipe would.
    reader = Reader(data, ClassManager(), max_depth=MAX_DEPTH)
    while True:
        try:
            reader.unserialize()
        except ReaderError as e:
            if e.code == ERR_EMPTY_STREAM:
                return
            raise

def main() -> int:
    ok = 0
    errors = 0
    for i in range(ROUNDS):
        data = random.choice(SEEDS)
        for _ in range(random.randint(1, 3)):
            data = mutate(data)
        try:
            decode_all(data)
            ok += 1
        except ReaderError:
            errors += 1
        except Exception:
            print("CRASH: round", i)
            print("input_b64:", b64(data))
            traceback.print_exc()
            return 1

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (decoded={ok}, rejected={errors})")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
