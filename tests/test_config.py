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

from pakharvester.core import config as config_module
from pakharvester.core.config import DEFAULT_CONFIG, Config, get_config
from pakharvester.core.paths import Paths
from pakharvester.extractors import ParserSettings


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.path = os.path.join(self.tmp.name, "nested", "config.json")
        self.config = Config(self.path)

    def test_defaults(self) -> None:
        self.assertEqual(self.config.max_entry_count, 10000)
        self.assertEqual(self.config.max_name_length, 1024)
        self.assertEqual(self.config.speculative_window_size, 32768)
        self.assertEqual(self.config.pak_patterns, ["*.pak"])
        self.assertFalse(self.config.debug_mode)
        self.assertFalse(self.config.load())

    def test_defaults_are_not_shared(self) -> None:
        self.config.data["pak_patterns"].append("*.dat")
        self.assertEqual(DEFAULT_CONFIG["pak_patterns"], ["*.pak"])

    def test_save_and_load(self) -> None:
        self.config.max_entry_count = 42
        self.config.pak_patterns = "*.pak, *.spr"
        self.assertTrue(self.config.is_modified)
        with redirect_stdout(io.StringIO()):
            self.assertTrue(self.config.save())
        self.assertFalse(self.config.is_modified)

        other = Config(self.path)
        self.assertTrue(other.load())
        self.assertEqual(other.max_entry_count, 42)
        self.assertEqual(other.pak_patterns, ["*.pak", "*.spr"])

    def test_unknown_keys_are_ignored_on_load(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"debug_mode": True, "bogus": 1}, f)
        self.assertTrue(self.config.load())
        self.assertTrue(self.config.debug_mode)
        self.assertIsNone(self.config.get("bogus"))

    def test_invalid_file(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        with redirect_stdout(io.StringIO()):
            self.assertFalse(self.config.load())
        self.assertEqual(self.config.max_entry_count, 10000)

    def test_clamping(self) -> None:
        self.config.max_entry_count = 0
        self.assertEqual(self.config.max_entry_count, 1)
        self.config.speculative_window_size = 10
        self.assertEqual(self.config.speculative_window_size, 1024)
        self.config["max_name_length"] = 10 ** 9
        self.assertEqual(self.config.max_name_length, 65536)

    def test_export_format_validation(self) -> None:
        self.config.default_export_format = "bmp"
        self.assertEqual(self.config.default_export_format, "BMP")
        with self.assertRaises(ValueError):
            self.config.default_export_format = "TGA"

    def test_set_from_string(self) -> None:
        self.config.set_from_string("debug_mode", "true")
        self.assertIs(self.config.debug_mode, True)
        self.config.set_from_string("raw_strides", "[4]")
        self.assertEqual(self.config.get("raw_strides"), [4])
        self.config.set_from_string("default_output_path", "out/sprites")
        self.assertEqual(self.config["default_output_path"], "out/sprites")
        with self.assertRaises(KeyError):
            self.config.set_from_string("bogus", "1")

    def test_raw_geometry_lists_are_coerced(self) -> None:
        self.config.set_from_string("raw_strides", "4")
        self.assertEqual(self.config.raw_strides, [4])
        self.config.set_from_string("raw_dimensions", "32")
        self.assertEqual(self.config.raw_dimensions, [32])
        self.config.set_from_string("raw_dimensions", "64, 16")
        self.assertEqual(self.config.raw_dimensions, [16, 64])
        self.config.set_from_string("raw_strides", "[3, 4, 3]")
        self.assertEqual(self.config.raw_strides, [3, 4])

    def test_raw_geometry_lists_reject_bad_values(self) -> None:
        bad = [
            ("raw_strides", "[2]"),
            ("raw_strides", "abc"),
            ("raw_strides", "true"),
            ("raw_dimensions", "[0, 16]"),
            ("raw_dimensions", "[]"),
            ("raw_dimensions", "{\"w\": 16}"),
        ]
        for key, text in bad:
            with self.subTest(key=key, text=text):
                before = self.config.get(key)
                with self.assertRaises(ValueError):
                    self.config.set_from_string(key, text)
                self.assertEqual(self.config.get(key), before)

    def test_bad_file_values_are_ignored_on_load(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"raw_strides": 4, "raw_dimensions": "big", "max_entry_count": 5}, f)

        with redirect_stdout(io.StringIO()) as out:
            self.assertTrue(self.config.load())
        self.assertIn("[WARN]", out.getvalue())
        self.assertEqual(self.config.raw_strides, [4])
        self.assertEqual(self.config.raw_dimensions, DEFAULT_CONFIG["raw_dimensions"])
        self.assertEqual(self.config.max_entry_count, 5)

        settings = ParserSettings.from_config(self.config)
        self.assertEqual(tuple(settings.sniffer.strides), (4,))

    def test_reset(self) -> None:
        self.config.max_entry_count = 5
        self.config.reset_to_defaults()
        self.assertEqual(self.config.max_entry_count, 10000)

    def test_parser_settings_from_config(self) -> None:
        self.config.max_entry_count = 7
        self.config.debug_mode = True
        self.config.set("raw_strides", [3])
        self.config.set("reject_grayscale", False)

        settings = ParserSettings.from_config(self.config)
        self.assertEqual(settings.max_entry_count, 7)
        self.assertTrue(settings.debug)
        self.assertEqual(tuple(settings.sniffer.strides), (3,))
        self.assertFalse(settings.sniffer.reject_grayscale)


class PathsTests(unittest.TestCase):
    def test_home_override(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {Paths.HOME_ENV: tmp}):
                self.assertEqual(Paths.get_user_data_dir(), os.path.abspath(tmp))
                self.assertEqual(
                    Paths.get_config_path(),
                    os.path.join(os.path.abspath(tmp), "config.json"),
                )

    def test_global_config_uses_home(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {Paths.HOME_ENV: tmp}):
                config_module._global_config = None
                try:
                    config = get_config()
                    self.assertIs(get_config(), config)
                    self.assertEqual(config.config_path, os.path.join(os.path.abspath(tmp), "config.json"))
                finally:
                    config_module._global_config = None


if __name__ == "__main__":
    unittest.main()
