import asyncio
import os
import sys
import unittest

import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import StoreConfig, YamlConfig, load_store_config
from db import AsyncSettingsRepository, Database
from errors import InvalidRecord
from settings_schema import DEFAULT_SETTINGS, validate_settings


class SettingsYamlTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "yaml_settings_test.db"
        self.yaml_path = "yaml_settings_test.yaml"
        for path in (self.db_path, self.yaml_path):
            if os.path.exists(path):
                os.remove(path)

    def tearDown(self) -> None:
        for path in (self.db_path, self.yaml_path):
            if os.path.exists(path):
                os.remove(path)
        os.environ.pop("WORKOUT_DB", None)

    def _repo(self) -> AsyncSettingsRepository:
        asyncio.run(Database(self.db_path).init_db())
        repo = AsyncSettingsRepository(self.db_path, self.yaml_path)
        asyncio.run(repo.init_settings())
        return repo

    def test_yaml_round_trip(self) -> None:
        cfg = YamlConfig(self.yaml_path)
        self.assertEqual(cfg.load(), {})
        cfg.save({"theme": "dark", "timerDuration": 60})
        self.assertEqual(cfg.load(), {"theme": "dark", "timerDuration": 60})

    def test_settings_written_to_yaml(self) -> None:
        repo = self._repo()
        asyncio.run(repo.set_value("theme", "dark"))
        with open(self.yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        self.assertEqual(data["theme"], "dark")
        self.assertEqual(data["timerDuration"], 90)
        self.assertIs(data["autoTimer"], False)

    def test_settings_loaded_from_yaml(self) -> None:
        YamlConfig(self.yaml_path).save({"timerDuration": 120, "autoTimer": True})
        repo = self._repo()
        settings = asyncio.run(repo.all_settings())
        self.assertEqual(settings["timerDuration"], 120)
        self.assertIs(settings["autoTimer"], True)

    def test_invalid_yaml_settings_rejected(self) -> None:
        YamlConfig(self.yaml_path).save({"theme": "purple"})
        with self.assertRaises(InvalidRecord):
            self._repo()

    def test_validate_settings(self) -> None:
        self.assertEqual(validate_settings({}), DEFAULT_SETTINGS)
        self.assertEqual(validate_settings({"timerDuration": "45"})["timerDuration"], 45)
        self.assertEqual(validate_settings({"language": "en"})["language"], "en")
        with self.assertRaises(InvalidRecord):
            validate_settings({"timerDuration": -5})

    def test_store_config(self) -> None:
        self.assertEqual(load_store_config(self.yaml_path), StoreConfig())
        YamlConfig(self.yaml_path).save({"heatmap_days": 30, "keep_theme_on_clear": False})
        os.environ["WORKOUT_DB"] = "other.db"
        config = load_store_config(self.yaml_path)
        self.assertEqual(config.heatmap_days, 30)
        self.assertFalse(config.keep_theme_on_clear)
        self.assertEqual(config.db_path, "other.db")


if __name__ == "__main__":
    unittest.main()
