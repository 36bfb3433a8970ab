"""Durable voice settings and the synchronizer that broadcasts their changes."""

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Dict, Optional, Protocol

import yaml

from .event_bus import (
    LANGUAGE_CHANGE,
    RESPONSE_MODE_CHANGE,
    VOICE_SETTINGS_CHANGE,
    WAKE_CHANGE,
    WAKE_PROMPT_CHANGE,
    WAKE_SOUND_CHANGE,
    WAKE_SOUND_PARAMS_CHANGE,
    EventBus,
    LanguageChangeEvent,
    ResponseModeEvent,
    WakeChangeEvent,
    WakePromptChangeEvent,
    WakeSoundChangeEvent,
    WakeSoundParamsEvent,
)

logger = logging.getLogger(__name__)

KEY_WAKE_ENABLED = "veer.wake.enabled"
KEY_WAKE_PHRASE = "veer.wake.phrase"
KEY_WAKE_PROMPT = "veer.wake.prompt"
KEY_WAKE_SOUND = "veer.wake.sound"
KEY_WAKE_SOUND_FREQUENCY = "veer.wake.sound.frequency"
KEY_WAKE_SOUND_DURATION = "veer.wake.sound.duration"
KEY_AUTO_SEND = "veer.voice.autoSend"
KEY_VOICE_SETTINGS = "veer.voice.settings"
KEY_LANGUAGE = "veer.language"

FALLBACK_PHRASE = "hey veer"
FALLBACK_PROMPT = "Yes?"
DEFAULT_SOUND_FREQUENCY = 1000.0
DEFAULT_SOUND_DURATION = 120.0
RATE_RANGE = (0.5, 2.0)

# Per-language wake phrase and spoken acknowledgement
LANGUAGE_DEFAULTS: Dict[str, Dict[str, str]] = {
    "en": {"phrase": "hey veer", "prompt": "Yes?"},
    "es": {"phrase": "oye veer", "prompt": "¿Sí?"},
    "fr": {"phrase": "salut veer", "prompt": "Oui ?"},
    "de": {"phrase": "hallo veer", "prompt": "Ja?"},
    "hi": {"phrase": "hey veer", "prompt": "हाँ?"},
}


def default_phrase(language: str) -> str:
    return LANGUAGE_DEFAULTS.get(language, {}).get("phrase", FALLBACK_PHRASE)


def default_prompt(language: str) -> str:
    return LANGUAGE_DEFAULTS.get(language, {}).get("prompt", FALLBACK_PROMPT)


def _clamp(value: float, bounds=RATE_RANGE) -> float:
    low, high = bounds
    return max(low, min(high, value))


@dataclass(frozen=True)
class VoiceSettings:
    voice_name: Optional[str] = None
    lang: str = "en-US"
    rate: float = 1.0
    pitch: float = 1.0

    def to_json(self) -> str:
        return json.dumps(
            {"voiceName": self.voice_name, "lang": self.lang, "rate": self.rate, "pitch": self.pitch}
        )

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "VoiceSettings":
        """Parse the stored blob; anything unreadable yields the defaults."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
            return cls(
                voice_name=data.get("voiceName") or None,
                lang=data.get("lang") or "en-US",
                rate=_clamp(float(data.get("rate", 1.0))),
                pitch=_clamp(float(data.get("pitch", 1.0))),
            )
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring corrupt voice settings: {e}")
            return cls()


@dataclass(frozen=True)
class WakeConfig:
    enabled: bool = True
    phrase: str = FALLBACK_PHRASE
    prompt: str = FALLBACK_PROMPT
    sound_enabled: bool = True
    sound_frequency_hz: float = DEFAULT_SOUND_FREQUENCY
    sound_duration_ms: float = DEFAULT_SOUND_DURATION


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """In-process storage, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def items(self):
        return dict(self._data).items()


class YamlFileStorage:
    """String key/value pairs persisted to a YAML file on every write."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._data: Dict[str, str] = {}
        self.load()

    def load(self):
        if not self.path.exists():
            logger.info(f"No settings file at {self.path}, using defaults")
            return

        with open(self.path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.path} is not a mapping, ignoring it")
            return

        self._data = {str(k): str(v) for k, v in data.items() if v is not None}
        logger.info(f"Settings loaded from {self.path}")

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def items(self):
        return dict(self._data).items()


class SettingsStore:
    """Typed access to the persisted voice settings.

    Every read applies the defaults for missing or invalid values; every
    write goes straight to the backing storage.
    """

    def __init__(self, storage: Optional[KeyValueStorage] = None, default_language: str = "en"):
        self.storage = storage if storage is not None else MemoryStorage()
        self.default_language = default_language

    def _get_bool(self, key: str, default: bool) -> bool:
        value = self.storage.get(key)
        if value is None:
            return default
        return value == "true"

    def _get_positive(self, key: str, default: float) -> float:
        value = self.storage.get(key)
        try:
            number = float(value) if value is not None else default
        except ValueError:
            return default
        return number if number > 0 else default

    def _set_bool(self, key: str, value: bool):
        self.storage.set(key, "true" if value else "false")

    # Reads

    def get_language(self) -> str:
        return self.storage.get(KEY_LANGUAGE) or self.default_language

    def get_wake_enabled(self) -> bool:
        return self._get_bool(KEY_WAKE_ENABLED, True)

    def get_wake_phrase(self) -> str:
        phrase = (self.storage.get(KEY_WAKE_PHRASE) or "").strip()
        return phrase or default_phrase(self.get_language())

    def get_wake_prompt(self) -> str:
        return self.storage.get(KEY_WAKE_PROMPT) or default_prompt(self.get_language())

    def get_wake_sound_enabled(self) -> bool:
        return self._get_bool(KEY_WAKE_SOUND, True)

    def get_wake_sound_frequency(self) -> float:
        return self._get_positive(KEY_WAKE_SOUND_FREQUENCY, DEFAULT_SOUND_FREQUENCY)

    def get_wake_sound_duration(self) -> float:
        return self._get_positive(KEY_WAKE_SOUND_DURATION, DEFAULT_SOUND_DURATION)

    def get_auto_send(self) -> bool:
        return self._get_bool(KEY_AUTO_SEND, True)

    def get_voice_settings(self) -> VoiceSettings:
        return VoiceSettings.from_json(self.storage.get(KEY_VOICE_SETTINGS))

    def get_wake_config(self) -> WakeConfig:
        return WakeConfig(
            enabled=self.get_wake_enabled(),
            phrase=self.get_wake_phrase(),
            prompt=self.get_wake_prompt(),
            sound_enabled=self.get_wake_sound_enabled(),
            sound_frequency_hz=self.get_wake_sound_frequency(),
            sound_duration_ms=self.get_wake_sound_duration(),
        )

    # Writes

    def set_language(self, language: str):
        self.storage.set(KEY_LANGUAGE, language)

    def set_wake_enabled(self, enabled: bool):
        self._set_bool(KEY_WAKE_ENABLED, enabled)

    def set_wake_phrase(self, phrase: str):
        self.storage.set(KEY_WAKE_PHRASE, phrase)

    def set_wake_prompt(self, prompt: str):
        self.storage.set(KEY_WAKE_PROMPT, prompt)

    def set_wake_sound_enabled(self, enabled: bool):
        self._set_bool(KEY_WAKE_SOUND, enabled)

    def set_wake_sound_frequency(self, frequency: float):
        self.storage.set(KEY_WAKE_SOUND_FREQUENCY, str(frequency))

    def set_wake_sound_duration(self, duration: float):
        self.storage.set(KEY_WAKE_SOUND_DURATION, str(duration))

    def set_auto_send(self, enabled: bool):
        self._set_bool(KEY_AUTO_SEND, enabled)

    def set_voice_settings(self, settings: VoiceSettings):
        self.storage.set(KEY_VOICE_SETTINGS, settings.to_json())


class SettingsSynchronizer:
    """Persists a setting, then publishes the complete config subset it belongs to."""

    def __init__(self, store: SettingsStore, event_bus: EventBus):
        self.store = store
        self.event_bus = event_bus

    def set_wake_enabled(self, enabled: bool):
        self.store.set_wake_enabled(enabled)
        self._publish_wake_change()

    def set_wake_phrase(self, phrase: str):
        self.store.set_wake_phrase(phrase)
        self._publish_wake_change()

    def _publish_wake_change(self):
        self.event_bus.publish(
            WAKE_CHANGE,
            WakeChangeEvent(
                enabled=self.store.get_wake_enabled(), phrase=self.store.get_wake_phrase()
            ),
        )

    def set_wake_prompt(self, prompt: str):
        self.store.set_wake_prompt(prompt)
        self.event_bus.publish(WAKE_PROMPT_CHANGE, WakePromptChangeEvent(prompt=prompt))

    def set_wake_sound_enabled(self, enabled: bool):
        self.store.set_wake_sound_enabled(enabled)
        self.event_bus.publish(WAKE_SOUND_CHANGE, WakeSoundChangeEvent(enabled=enabled))

    def set_wake_sound_params(
        self, frequency: Optional[float] = None, duration: Optional[float] = None
    ):
        if frequency is not None:
            self.store.set_wake_sound_frequency(frequency)
        if duration is not None:
            self.store.set_wake_sound_duration(duration)
        self.event_bus.publish(
            WAKE_SOUND_PARAMS_CHANGE,
            WakeSoundParamsEvent(
                frequency=self.store.get_wake_sound_frequency(),
                duration=self.store.get_wake_sound_duration(),
            ),
        )

    def set_auto_send(self, enabled: bool):
        # Read fresh at the end of every session, no subscribers needed
        self.store.set_auto_send(enabled)

    def set_language(self, language: str):
        self.store.set_language(language)
        self.event_bus.publish(LANGUAGE_CHANGE, LanguageChangeEvent(language=language))

    def set_voice_settings(self, settings: VoiceSettings):
        settings = replace(settings, rate=_clamp(settings.rate), pitch=_clamp(settings.pitch))
        self.store.set_voice_settings(settings)
        self.event_bus.publish(VOICE_SETTINGS_CHANGE, settings)

    def update_voice_settings(self, **changes) -> VoiceSettings:
        """Apply field changes (voice_name, lang, rate, pitch) to the stored voice settings."""
        settings = replace(self.store.get_voice_settings(), **changes)
        self.set_voice_settings(settings)
        return self.store.get_voice_settings()

    def reset_voice_settings(self):
        self.set_voice_settings(VoiceSettings())

    def set_response_mode(self, mode: str):
        self.event_bus.publish(RESPONSE_MODE_CHANGE, ResponseModeEvent(mode=mode))

    def set(self, key: str, value: str):
        """Update one setting from its textual form (used by the CLI)."""
        setters = {
            "wake.enabled": lambda v: self.set_wake_enabled(_parse_bool(v)),
            "wake.phrase": self.set_wake_phrase,
            "wake.prompt": self.set_wake_prompt,
            "wake.sound": lambda v: self.set_wake_sound_enabled(_parse_bool(v)),
            "wake.sound.frequency": lambda v: self.set_wake_sound_params(frequency=float(v)),
            "wake.sound.duration": lambda v: self.set_wake_sound_params(duration=float(v)),
            "voice.autoSend": lambda v: self.set_auto_send(_parse_bool(v)),
            "voice.name": lambda v: self.update_voice_settings(voice_name=v or None),
            "voice.lang": lambda v: self.update_voice_settings(lang=v),
            "voice.rate": lambda v: self.update_voice_settings(rate=float(v)),
            "voice.pitch": lambda v: self.update_voice_settings(pitch=float(v)),
            "language": self.set_language,
        }
        if key not in setters:
            raise KeyError(f"Unknown setting '{key}'. Known settings: {', '.join(sorted(setters))}")
        setters[key](value)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def describe(store: SettingsStore) -> Dict[str, object]:
    """Flat view of every effective setting, defaults applied."""
    wake = store.get_wake_config()
    voice = store.get_voice_settings()
    view: Dict[str, object] = {"language": store.get_language()}
    view.update({f"wake.{k}": v for k, v in asdict(wake).items()})
    view["voice.autoSend"] = store.get_auto_send()
    view.update({f"voice.{k}": v for k, v in asdict(voice).items()})
    return view
