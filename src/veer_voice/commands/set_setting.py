"""Update one persisted voice setting."""

import logging

from veer_voice.config import DEFAULT_CONFIG_PATH, load_config
from veer_voice.core import EventBus, SettingsStore, SettingsSynchronizer, YamlFileStorage

logger = logging.getLogger(__name__)


def main(key: str, value: str, config_path: str = DEFAULT_CONFIG_PATH) -> bool:
    """Set ``key`` to ``value`` in the settings file.

    Returns:
        True if successful, False otherwise
    """
    try:
        config = load_config(config_path)
        store = SettingsStore(YamlFileStorage(config.settings_path), config.default_language)
        SettingsSynchronizer(store, EventBus()).set(key, value)
    except (KeyError, ValueError) as e:
        print(f"Error: {e}")
        return False
    except Exception as e:
        logger.error(f"Failed to update setting: {e}", exc_info=True)
        return False

    print(f"✓ {key} = {value}")
    return True
