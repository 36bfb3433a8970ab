"""Configuration management for the voice controller."""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"


class Config:
    """Configuration manager for the voice controller."""

    def __init__(self, config_path: Optional[str] = DEFAULT_CONFIG_PATH):
        """Initialize configuration from YAML file.

        Args:
            config_path: Path to the configuration YAML file, or None for defaults only
        """
        self.config_path = Path(config_path) if config_path else None
        self.config: dict[str, Any] = {}
        if self.config_path is not None:
            self.load()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build a configuration from an in-memory mapping."""
        config = cls(config_path=None)
        config.config = dict(data)
        return config

    def load(self):
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                "Please create config/config.yaml from the template."
            )

        with open(self.config_path, "r") as f:
            self.config = yaml.safe_load(f) or {}

        logger.info(f"Configuration loaded from {self.config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Configuration key (supports dot notation, e.g., 'wake.debounce_seconds')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def log_level(self) -> str:
        return self.get("logging.level", "INFO")

    @property
    def settings_path(self) -> str:
        """Get path of the persisted voice settings file."""
        return self.get("storage.settings_path", "data/settings.yaml")

    @property
    def default_language(self) -> str:
        return self.get("language.default", "en")

    @property
    def wake_debounce_seconds(self) -> float:
        """Get minimum gap between two wake detections."""
        return float(self.get("wake.debounce_seconds", 3.0))

    @property
    def wake_flash_seconds(self) -> float:
        return float(self.get("wake.flash_seconds", 0.9))

    @property
    def prompt_ttl_seconds(self) -> float:
        """Get how long the wake acknowledgement stays visible."""
        return float(self.get("prompt.ttl_seconds", 3.0))

    @property
    def commit_delay_seconds(self) -> float:
        """Get delay between session end and auto-send."""
        return float(self.get("session.commit_delay_seconds", 0.1))

    @property
    def silence_timeout_seconds(self) -> float:
        return float(self.get("session.silence_timeout_seconds", 3.0))

    @property
    def sound_volume(self) -> float:
        return float(self.get("sound.volume", 0.06))

    @property
    def sound_output_device(self) -> str | None:
        """Get preferred output device name (None for default)."""
        return self.get("sound.output_device", None)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load configuration from file.

    Args:
        config_path: Path to configuration file

    Returns:
        Config instance
    """
    return Config(config_path)
