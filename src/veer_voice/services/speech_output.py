"""Speech output: speaking, cancellation and auto-speak of assistant messages."""

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable, Optional, Set

from ..core.capabilities import SpeakOptions, SpeechOutputCapability
from ..core.event_bus import RESPONSE_MODE_CHANGE, EventBus, ResponseModeEvent
from ..core.settings import SettingsStore, VoiceSettings

logger = logging.getLogger(__name__)

SILENT_MODE = "silent"
AUTO_MODE = "auto"


@dataclass(frozen=True)
class ChatMessage:
    id: Hashable
    role: str  # 'user' or 'assistant'
    content: str


def effective_mode(mode: Optional[str], resolved_mode: Optional[str] = None) -> Optional[str]:
    """Response mode in force; 'auto' defers to the mode resolved for the last message."""
    if mode == AUTO_MODE and resolved_mode:
        return resolved_mode
    return mode


class SpokenMessageLedger:
    """Ids of messages already handed to speech output in this conversation."""

    def __init__(self):
        self._ids: Set[Hashable] = set()

    def add(self, message_id: Hashable):
        self._ids.add(message_id)

    def clear(self):
        self._ids.clear()

    def __contains__(self, message_id: Hashable) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class SpeechOutputController:
    """Wraps the speech output capability.

    Calls are not queued: a new ``speak`` may pre-empt one in flight, the
    capability handles the interruption. Failures are logged, never raised.
    """

    def __init__(
        self,
        output: SpeechOutputCapability,
        settings: SettingsStore,
        event_bus: Optional[EventBus] = None,
        on_speaking_change: Optional[Callable[[bool], None]] = None,
    ):
        """Initialize speech output controller.

        Args:
            output: Host speech synthesis capability
            settings: Settings store supplying the voice settings
            event_bus: Optional event bus; response mode changes mute auto-speak
            on_speaking_change: Called with True when speech starts and False when it ends
        """
        self.output = output
        self.settings = settings
        self.event_bus = event_bus
        self.on_speaking_change = on_speaking_change

        self.ledger = SpokenMessageLedger()
        self.mode: Optional[str] = None
        self.last_assistant_text: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

        if event_bus:
            self._unsubscribe = event_bus.subscribe(RESPONSE_MODE_CHANGE, self._on_mode_change)

    @property
    def supported(self) -> bool:
        try:
            return bool(self.output.supports_synthesis())
        except Exception as e:
            logger.error(f"Error checking speech synthesis support: {e}")
            return False

    @property
    def muted(self) -> bool:
        return self.mode == SILENT_MODE

    async def speak(self, text: str, voice_settings: Optional[VoiceSettings] = None):
        """Speak ``text``; returns when speech finished or failed."""
        if not text or not self.supported:
            return

        voice = voice_settings or self.settings.get_voice_settings()
        options = SpeakOptions(
            voice_name=voice.voice_name, lang=voice.lang, rate=voice.rate, pitch=voice.pitch
        )

        self._notify_speaking(True)
        try:
            await self.output.speak(text, options)
        except Exception as e:
            logger.warning(f"Speech output failed: {e}")
        finally:
            self._notify_speaking(False)

    def stop(self):
        try:
            self.output.stop()
        except Exception as e:
            logger.warning(f"Error stopping speech output: {e}")

    async def on_assistant_message(
        self, message: ChatMessage, mode: Optional[str] = None, resolved_mode: Optional[str] = None
    ) -> bool:
        """Auto-speak a newly observed assistant message at most once.

        The id is recorded before speaking, so a slow or failing speak
        cannot lead to a second attempt.

        Returns:
            True if the message was spoken
        """
        if message.role != "assistant" or message.id in self.ledger:
            return False

        self.ledger.add(message.id)
        self.last_assistant_text = message.content

        current = effective_mode(mode if mode is not None else self.mode, resolved_mode)
        if current == SILENT_MODE:
            logger.debug(f"Silent mode, not speaking message {message.id}")
            return False

        await self.speak(message.content)
        return True

    async def observe_messages(
        self,
        messages: Iterable[ChatMessage],
        mode: Optional[str] = None,
        resolved_mode: Optional[str] = None,
    ) -> int:
        """Auto-speak every assistant message not yet in the ledger, oldest first.

        Returns:
            Number of messages spoken
        """
        spoken = 0
        for message in list(messages):
            if await self.on_assistant_message(message, mode, resolved_mode):
                spoken += 1
        return spoken

    async def replay_last(self) -> bool:
        """Speak the most recent assistant message again."""
        if not self.last_assistant_text:
            return False
        await self.speak(self.last_assistant_text)
        return True

    def reset_session(self):
        """Forget spoken messages (new conversation)."""
        self.ledger.clear()
        self.last_assistant_text = None

    def close(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_mode_change(self, event: ResponseModeEvent):
        self.mode = event.mode
        logger.info(f"Response mode changed to '{event.mode}'")

    def _notify_speaking(self, speaking: bool):
        if self.on_speaking_change:
            try:
                self.on_speaking_change(speaking)
            except Exception as e:
                logger.error(f"Error in speaking change callback: {e}")
