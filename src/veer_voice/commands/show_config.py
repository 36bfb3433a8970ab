"""Display current configuration and stored voice settings."""

from veer_voice.config import DEFAULT_CONFIG_PATH


def main(config_path: str = DEFAULT_CONFIG_PATH) -> bool:
    """Display current configuration.

    Returns:
        True if successful, False otherwise
    """
    from veer_voice.config import Config
    from veer_voice.core import SettingsStore, YamlFileStorage
    from veer_voice.core.settings import describe

    try:
        config = Config(config_path)

        print("Current Configuration")
        print("=" * 60)
        print(f"Settings File: {config.settings_path}")
        print(f"Default Language: {config.default_language}")
        print(f"Wake Debounce: {config.wake_debounce_seconds}s")
        print(f"Prompt TTL: {config.prompt_ttl_seconds}s")
        print(f"Auto-send Delay: {config.commit_delay_seconds}s")
        print(f"Silence Timeout: {config.silence_timeout_seconds}s")
        print(f"Sound Output Device: {config.sound_output_device or 'default'}")
        print()
        print("Voice Settings")
        print("=" * 60)

        store = SettingsStore(YamlFileStorage(config.settings_path), config.default_language)
        for key, value in describe(store).items():
            print(f"{key}: {value}")

        print("=" * 60)
        return True

    except Exception as e:
        print(f"Error loading configuration: {e}")
        return False
