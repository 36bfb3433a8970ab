"""Tests for the set/config/voices CLI commands."""

import yaml

from veer_voice.commands import list_voices, set_setting, show_config


def _write_config(tmp_path):
    settings_path = tmp_path / "settings.yaml"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump({"storage": {"settings_path": str(settings_path)}, "language": {"default": "en"}})
    )
    return str(config_path), settings_path


def test_set_setting_persists(tmp_path):
    config_path, settings_path = _write_config(tmp_path)

    assert set_setting.main("wake.phrase", "ok veer", config_path=config_path) is True
    assert set_setting.main("voice.autoSend", "off", config_path=config_path) is True

    stored = yaml.safe_load(settings_path.read_text())
    assert stored["veer.wake.phrase"] == "ok veer"
    assert stored["veer.voice.autoSend"] == "false"


def test_set_setting_rejects_unknown_key(tmp_path, capsys):
    config_path, _ = _write_config(tmp_path)

    assert set_setting.main("wake.volume", "3", config_path=config_path) is False
    assert "Error" in capsys.readouterr().out


def test_show_config_prints_effective_settings(tmp_path, capsys):
    config_path, _ = _write_config(tmp_path)

    assert show_config.main(config_path=config_path) is True
    out = capsys.readouterr().out
    assert "wake.phrase: hey veer" in out
    assert "Sound Output Device: default" in out


def test_show_config_missing_file(tmp_path):
    assert show_config.main(config_path=str(tmp_path / "missing.yaml")) is False


def test_list_voices(capsys):
    assert list_voices.main() is True
    assert "Console - en-US (default)" in capsys.readouterr().out
