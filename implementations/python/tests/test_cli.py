"""Tests for the hprose-reader command-line interface."""

from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from unittest import mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hprose_reader import __version__
from hprose_reader._cli import main


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def write(self, data: bytes) -> str:
        path = os.path.join(self._tmp.name, "stream.bin")
        with open(path, "wb") as f:
            f.write(data)
        return path

    def run_cli(self, *argv: str):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with mock.patch("sys.stdout", out), mock.patch("sys.stderr", err):
            try:
                main(list(argv))
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()


class TestDecode(CliTestCase):
    def test_single_value(self):
        code, out, _ = self.run_cli("decode", "--input", self.write(b'a2{1s2"hi"}'))
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "[1, 'hi']")

    def test_hex_input(self):
        # a1{5} as hex with whitespace
        path = self.write(b"61 31 7b 35 7d\n")
        code, out, _ = self.run_cli("decode", "--hex", "--input", path)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "[5]")

    def test_all_values_share_session(self):
        path = self.write(b's2"hi"r0;')
        code, out, _ = self.run_cli("decode", "--all", "--input", path)
        self.assertEqual(code, 0)
        self.assertEqual(out.split(), ["'hi'", "'hi'"])

    def test_all_with_reset(self):
        path = self.write(b's2"hi"r0;')
        code, _, err = self.run_cli("decode", "--all", "--reset", "--input", path)
        self.assertEqual(code, 2)
        self.assertIn("ERR_REF_INDEX", err)

    def test_remote_error(self):
        path = self.write(b'Es4"oops"')
        code, _, err = self.run_cli("decode", "--input", path)
        self.assertEqual(code, 2)
        self.assertIn("remote error: oops", err)

    def test_bad_hex(self):
        code, _, _ = self.run_cli("decode", "--hex", "--input", self.write(b"zz"))
        self.assertNotEqual(code, 0)


class TestMisc(CliTestCase):
    def test_version(self):
        code, out, _ = self.run_cli("version")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "hprose-reader {}".format(__version__))

    def test_no_command(self):
        code, _, _ = self.run_cli()
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
