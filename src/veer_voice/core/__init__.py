"""Core components - event bus, settings, capabilities, timers, wake matching."""

from .capabilities import (
    CapabilityError,
    CaptureStartError,
    RuntimeListenerError,
    SpeakOptions,
    SpeechCaptureCapability,
    SpeechOutputCapability,
    SynthesisError,
    VoiceDescriptor,
)
from .console_io import ConsoleCapture, ConsoleSpeech, ConsoleSpeechHub
from .event_bus import EventBus
from .settings import (
    MemoryStorage,
    SettingsStore,
    SettingsSynchronizer,
    VoiceSettings,
    WakeConfig,
    YamlFileStorage,
)
from .sound_cue import ToneCuePlayer
from .timers import TimerSlot
from .wake_matcher import WakePhraseMatcher

__all__ = [
    "CapabilityError",
    "CaptureStartError",
    "ConsoleCapture",
    "ConsoleSpeech",
    "ConsoleSpeechHub",
    "EventBus",
    "MemoryStorage",
    "RuntimeListenerError",
    "SettingsStore",
    "SettingsSynchronizer",
    "SpeakOptions",
    "SpeechCaptureCapability",
    "SpeechOutputCapability",
    "SynthesisError",
    "TimerSlot",
    "ToneCuePlayer",
    "VoiceDescriptor",
    "VoiceSettings",
    "WakeConfig",
    "WakePhraseMatcher",
    "YamlFileStorage",
]
