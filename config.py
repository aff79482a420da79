import logging
import os

import yaml

from settings_schema import EngineSettings, validate_settings

APP_VERSION = "1.0.0"
SETTINGS_ENV = "BLOCKBUILDER_SETTINGS"

logger = logging.getLogger(__name__)


class YamlConfig:
    """Load and save engine settings to a YAML file."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path or os.environ.get(SETTINGS_ENV, "settings.yaml")

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a mapping")
        return data

    def save(self, data: dict) -> None:
        validate_settings(data)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)


def load_settings(path: str | None = None) -> EngineSettings:
    """Return validated settings from ``path`` merged over the defaults."""
    cfg = YamlConfig(path)
    data = cfg.load()
    validate_settings(data)
    settings = EngineSettings(**data)
    logger.debug("loaded settings from %s: %s", cfg.path, settings)
    return settings
