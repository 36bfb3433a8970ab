"""Tests for config.py."""

import pytest

from veer_voice.config import Config, load_config


def test_defaults_without_file():
    config = Config(config_path=None)
    assert config.wake_debounce_seconds == 3.0
    assert config.prompt_ttl_seconds == 3.0
    assert config.commit_delay_seconds == 0.1
    assert config.sound_output_device is None
    assert config.default_language == "en"


def test_dot_notation_and_zero_values():
    config = Config.from_dict({"wake": {"debounce_seconds": 0}, "logging": "flat"})
    assert config.wake_debounce_seconds == 0.0
    assert config.get("logging.level", "INFO") == "INFO"
    assert config.get("missing.key") is None


def test_load_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("sound:\n  volume: 0.2\n  output_device: respeaker\n")
    config = load_config(str(path))
    assert config.sound_volume == 0.2
    assert config.sound_output_device == "respeaker"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))
