import os
from typing import Optional

import yaml
from pydantic import BaseModel

APP_VERSION = "3.0.0"


class YamlConfig:
    """Load and save a flat mapping to a YAML file."""

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a mapping")
        return data

    def save(self, data: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)


class StoreConfig(BaseModel):
    """Runtime options for opening a workout store."""

    db_path: str = "workout.db"
    legacy_dir: str = "legacy"
    settings_yaml: Optional[str] = None
    keep_theme_on_clear: bool = True
    heatmap_days: int = 90
    log_level: str = "INFO"


def load_store_config(path: str = "config.yaml") -> StoreConfig:
    data = YamlConfig(path).load()
    db_override = os.environ.get("WORKOUT_DB")
    if db_override:
        data["db_path"] = db_override
    return StoreConfig(**data)
