from __future__ import annotations

import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pakharvester import cli
from pakharvester.core import config as config_module
from pakharvester.core.paths import Paths

from builders import legacy_pak, png_bytes


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

        self.home = os.path.join(self.tmp.name, "home")
        env = mock.patch.dict(os.environ, {Paths.HOME_ENV: self.home})
        env.start()
        self.addCleanup(env.stop)

        config_module._global_config = None
        self.addCleanup(setattr, config_module, "_global_config", None)

        self.archive = self.write("monster.pak", legacy_pak([("orc", png_bytes()), ("notes", b"text")]))
        self.garbage = self.write("garbage.bin", b"nothing useful")

    def write(self, name: str, data: bytes) -> str:
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def run_cli(self, *argv: str):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(list(argv))
        return code, out.getvalue()

    def test_no_command_prints_help(self) -> None:
        code, output = self.run_cli()
        self.assertEqual(code, 0)
        self.assertIn("usage", output.lower())

    def test_list(self) -> None:
        code, output = self.run_cli("list", "--archive", self.archive, "-v")
        self.assertEqual(code, 0)
        self.assertIn("legacy_pak", output)
        self.assertIn("orc", output)
        self.assertIn("PNG 8x8", output)

    def test_list_unrecognized(self) -> None:
        code, output = self.run_cli("list", "--archive", self.garbage)
        self.assertEqual(code, 1)
        self.assertIn("Unrecognized container format", output)

    def test_list_missing_file(self) -> None:
        code, output = self.run_cli("list", "--archive", os.path.join(self.tmp.name, "nope.pak"))
        self.assertEqual(code, 1)
        self.assertIn("Could not open file", output)

    def test_extract(self) -> None:
        out_dir = os.path.join(self.tmp.name, "out")
        code, _ = self.run_cli("extract", "--archive", self.archive, "-o", out_dir, "-f", "bmp")
        self.assertEqual(code, 0)
        self.assertEqual(sorted(os.listdir(out_dir)), ["0000_orc.bmp", "0001_notes.bin"])

    def test_extract_needs_output(self) -> None:
        code, output = self.run_cli("extract", "--archive", self.archive)
        self.assertEqual(code, 1)
        self.assertIn("No output directory", output)

    def test_probe(self) -> None:
        code, output = self.run_cli("probe", "--archive", self.archive)
        self.assertEqual(code, 0)
        self.assertIn("Resolver would use: legacy_pak", output)

        code, output = self.run_cli("probe", "--archive", self.garbage)
        self.assertEqual(code, 1)
        self.assertIn("no_match", output)

    def test_scan(self) -> None:
        code, output = self.run_cli("scan", "--path", self.tmp.name, "--category", "Characters", "-v")
        self.assertEqual(code, 0)
        self.assertIn("Sprites (Characters): 2", output)

        code, _ = self.run_cli("scan", "--path", self.tmp.name, "--category", "Nope")
        self.assertEqual(code, 1)

        code, _ = self.run_cli("scan", "--path", os.path.join(self.tmp.name, "missing"))
        self.assertEqual(code, 1)

    def test_config_set_and_reset(self) -> None:
        code, _ = self.run_cli("config", "set", "max_entry_count", "25")
        self.assertEqual(code, 0)
        with open(os.path.join(self.home, "config.json"), encoding="utf-8") as f:
            self.assertEqual(json.load(f)["max_entry_count"], 25)

        code, output = self.run_cli("config", "show")
        self.assertEqual(code, 0)
        self.assertIn("max_entry_count", output)

        code, _ = self.run_cli("config", "reset")
        self.assertEqual(code, 0)
        with open(os.path.join(self.home, "config.json"), encoding="utf-8") as f:
            self.assertEqual(json.load(f)["max_entry_count"], 10000)

    def test_config_set_raw_strides_keeps_commands_working(self) -> None:
        code, _ = self.run_cli("config", "set", "raw_strides", "4")
        self.assertEqual(code, 0)
        code, _ = self.run_cli("list", "--archive", self.archive)
        self.assertEqual(code, 0)

        code, output = self.run_cli("config", "set", "raw_strides", "2")
        self.assertEqual(code, 1)
        self.assertIn("Invalid value", output)
        code, _ = self.run_cli("probe", "--archive", self.archive)
        self.assertEqual(code, 0)

    def test_launcher_paths(self) -> None:
        import main as launcher

        out = io.StringIO()
        with mock.patch.object(sys, "argv", ["main.py", "--paths"]), redirect_stdout(out):
            self.assertEqual(launcher.main(), 0)
        self.assertIn(os.path.join(os.path.abspath(self.home), "config.json"), out.getvalue())

    def test_config_set_rejects_bad_input(self) -> None:
        code, output = self.run_cli("config", "set", "bogus", "1")
        self.assertEqual(code, 1)
        self.assertIn("Unknown setting", output)

        code, output = self.run_cli("config", "set", "default_export_format", "TGA")
        self.assertEqual(code, 1)
        self.assertIn("Invalid value", output)


if __name__ == "__main__":
    unittest.main()
