"""Event bus for the voice controller - typed publish/subscribe."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Settings topics
WAKE_CHANGE = "wake-change"
WAKE_STATUS = "wake-status"
WAKE_SOUND_CHANGE = "wake-sound-change"
WAKE_PROMPT_CHANGE = "wake-prompt-change"
WAKE_SOUND_PARAMS_CHANGE = "wake-sound-params-change"
LANGUAGE_CHANGE = "language-change"
VOICE_SETTINGS_CHANGE = "voice-settings-change"
RESPONSE_MODE_CHANGE = "response-mode-change"

# Controller output topics (UI consumers)
PHASE_CHANGE = "phase-change"
TRANSCRIPT = "transcript"
EPHEMERAL_PROMPT = "ephemeral-prompt"
WAKE_FLASH = "wake-flash"
NOTICE = "notice"
COMMIT = "commit"


@dataclass(frozen=True)
class WakeChangeEvent:
    """Wake listener enabled flag and phrase.

    ``phrase`` is None when a legacy payload carried no phrase. ``enabled``
    is None for a bare change notification; subscribers re-read the
    stored flag.
    """

    enabled: Optional[bool]
    phrase: Optional[str] = None


@dataclass(frozen=True)
class WakeStatusEvent:
    """Whether the background wake listener is currently running."""

    active: bool


@dataclass(frozen=True)
class WakeSoundChangeEvent:
    enabled: bool


@dataclass(frozen=True)
class WakePromptChangeEvent:
    prompt: str


@dataclass(frozen=True)
class WakeSoundParamsEvent:
    frequency: Optional[float] = None
    duration: Optional[float] = None


@dataclass(frozen=True)
class LanguageChangeEvent:
    language: str


@dataclass(frozen=True)
class ResponseModeEvent:
    mode: str


@dataclass(frozen=True)
class PhaseChangeEvent:
    old: str
    new: str


@dataclass(frozen=True)
class TranscriptEvent:
    text: str


@dataclass(frozen=True)
class PromptEvent:
    """Ephemeral prompt shown (text) or dismissed (None)."""

    text: Optional[str]


@dataclass(frozen=True)
class WakeFlashEvent:
    active: bool


@dataclass(frozen=True)
class NoticeEvent:
    level: str  # 'info' or 'error'
    message: str


@dataclass(frozen=True)
class CommitEvent:
    text: str


def _bool_or_field(value: Any, field: str, topic: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, dict) and field in value:
        return bool(value[field])
    raise ValueError(f"Unsupported payload for '{topic}': {value!r}")


def _str_or_field(value: Any, field: str, topic: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get(field), str):
        return value[field]
    raise ValueError(f"Unsupported payload for '{topic}': {value!r}")


def normalize_payload(topic: str, payload: Any) -> Any:
    """Convert legacy payload shapes into the canonical event for a topic.

    Already-canonical events pass through untouched, as do payloads for
    topics without a legacy form.

    Raises:
        ValueError: If the payload cannot be interpreted for the topic
    """
    if topic == WAKE_CHANGE:
        if isinstance(payload, WakeChangeEvent):
            return payload
        if payload is None:
            return WakeChangeEvent(enabled=None)
        if isinstance(payload, bool):
            return WakeChangeEvent(enabled=payload)
        if isinstance(payload, dict):
            enabled = payload.get("enabled")
            phrase = payload.get("phrase")
            return WakeChangeEvent(
                enabled=bool(enabled) if enabled is not None else None,
                phrase=phrase if isinstance(phrase, str) else None,
            )
        raise ValueError(f"Unsupported payload for '{topic}': {payload!r}")

    if topic == WAKE_STATUS:
        if isinstance(payload, WakeStatusEvent):
            return payload
        return WakeStatusEvent(active=_bool_or_field(payload, "active", topic))

    if topic == WAKE_SOUND_CHANGE:
        if isinstance(payload, WakeSoundChangeEvent):
            return payload
        return WakeSoundChangeEvent(enabled=_bool_or_field(payload, "enabled", topic))

    if topic == WAKE_PROMPT_CHANGE:
        if isinstance(payload, WakePromptChangeEvent):
            return payload
        return WakePromptChangeEvent(prompt=_str_or_field(payload, "prompt", topic))

    if topic == WAKE_SOUND_PARAMS_CHANGE:
        if isinstance(payload, WakeSoundParamsEvent):
            return payload
        if isinstance(payload, dict):
            frequency = payload.get("frequency")
            duration = payload.get("duration")
            return WakeSoundParamsEvent(
                frequency=float(frequency) if frequency is not None else None,
                duration=float(duration) if duration is not None else None,
            )
        raise ValueError(f"Unsupported payload for '{topic}': {payload!r}")

    if topic == LANGUAGE_CHANGE:
        if isinstance(payload, LanguageChangeEvent):
            return payload
        return LanguageChangeEvent(language=_str_or_field(payload, "language", topic))

    if topic == RESPONSE_MODE_CHANGE:
        if isinstance(payload, ResponseModeEvent):
            return payload
        return ResponseModeEvent(mode=_str_or_field(payload, "mode", topic))

    return payload


class EventBus:
    """Publish/subscribe channel between voice components.

    Subscribers run synchronously, in subscription order, on the thread
    that publishes. A failing subscriber is logged and does not stop
    delivery to the others.
    """

    def __init__(self):
        """Initialize event bus."""
        self._subscribers: Dict[str, List[Callable]] = {}
        self._lock = threading.Lock()
        logger.debug("EventBus initialized")

    def subscribe(self, event_type: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Subscribe to an event type.

        Args:
            event_type: Type of event to subscribe to (e.g., 'wake-change')
            callback: Function to call when event is published

        Returns:
            A function that removes this subscription
        """
        with self._lock:
            if event_type not in self._subscribers:
                self._subscribers[event_type] = []

            self._subscribers[event_type].append(callback)
            logger.debug(
                f"Subscribed to '{event_type}' "
                f"(total subscribers: {len(self._subscribers[event_type])})"
            )

        return lambda: self.unsubscribe(event_type, callback)

    def unsubscribe(self, event_type: str, callback: Callable[[Any], None]):
        """Unsubscribe from an event type.

        Args:
            event_type: Type of event to unsubscribe from
            callback: Callback function to remove
        """
        with self._lock:
            if event_type in self._subscribers:
                try:
                    self._subscribers[event_type].remove(callback)
                    logger.debug(f"Unsubscribed from '{event_type}'")
                except ValueError:
                    pass

    def publish(self, event_type: str, event_data: Any = None):
        """Publish an event to all subscribers.

        Args:
            event_type: Type of event to publish
            event_data: Event data, normalized before delivery

        Raises:
            ValueError: If the payload shape is not valid for the topic
        """
        event = normalize_payload(event_type, event_data)

        with self._lock:
            subscribers = self._subscribers.get(event_type, []).copy()

        if not subscribers:
            logger.debug(f"No subscribers for event '{event_type}'")
            return

        logger.debug(f"Publishing '{event_type}' to {len(subscribers)} subscriber(s)")

        for callback in subscribers:
            self._safe_callback(callback, event, event_type)

    def _safe_callback(self, callback: Callable, event_data: Any, event_type: str):
        """Call subscriber callback with error handling.

        Args:
            callback: Subscriber callback function
            event_data: Event data
            event_type: Event type name (for logging)
        """
        try:
            callback(event_data)
        except Exception as e:
            logger.error(f"Error in subscriber callback for '{event_type}': {e}", exc_info=True)

    def get_subscriber_count(self, event_type: str) -> int:
        """Get number of subscribers for an event type.

        Args:
            event_type: Event type to check

        Returns:
            Number of subscribers
        """
        with self._lock:
            return len(self._subscribers.get(event_type, []))
