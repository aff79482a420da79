import os
import sys
import tempfile
import unittest
from unittest import mock

import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import SETTINGS_ENV, YamlConfig, load_settings
from settings_schema import EngineSettings, validate_settings


class YamlConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "settings.yaml")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_missing_file_gives_defaults(self) -> None:
        self.assertEqual(YamlConfig(self.path).load(), {})
        self.assertEqual(load_settings(self.path), EngineSettings())

    def test_save_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({"default_load": 60.0, "language": "it"})
        self.assertEqual(cfg.load(), {"default_load": 60.0, "language": "it"})
        settings = load_settings(self.path)
        self.assertEqual(settings.default_load, 60.0)
        self.assertEqual(settings.language, "it")
        self.assertEqual(settings.load_increment, 1.0)

    def test_save_rejects_invalid(self) -> None:
        with self.assertRaises(ValueError):
            YamlConfig(self.path).save({"default_load": -1})
        self.assertFalse(os.path.exists(self.path))

    def test_non_mapping_file(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump([1, 2, 3], f)
        with self.assertRaises(ValueError):
            YamlConfig(self.path).load()

    def test_invalid_values_in_file(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"load_increment": 0}, f)
        with self.assertRaises(ValueError):
            load_settings(self.path)

    def test_environment_override(self) -> None:
        with mock.patch.dict(os.environ, {SETTINGS_ENV: self.path}):
            self.assertEqual(YamlConfig().path, self.path)

    def test_validate_settings(self) -> None:
        validate_settings({"default_rpe": 9})
        with self.assertRaises(ValueError):
            validate_settings({"default_rpe": 11})


if __name__ == "__main__":
    unittest.main()
