"""Voice interaction controller - wires wake detection, listening and speech output."""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Set

from .config import Config
from .core.capabilities import SoundCue, SpeechCaptureCapability, SpeechOutputCapability
from .core.event_bus import (
    LANGUAGE_CHANGE,
    NOTICE,
    VOICE_SETTINGS_CHANGE,
    WAKE_CHANGE,
    WAKE_PROMPT_CHANGE,
    WAKE_SOUND_CHANGE,
    WAKE_SOUND_PARAMS_CHANGE,
    WAKE_STATUS,
    EventBus,
    LanguageChangeEvent,
    NoticeEvent,
    WakeChangeEvent,
    WakePromptChangeEvent,
    WakeSoundChangeEvent,
    WakeSoundParamsEvent,
    WakeStatusEvent,
)
from .core.settings import SettingsStore, SettingsSynchronizer, VoiceSettings
from .services.ephemeral_prompt import EphemeralPromptScheduler
from .services.listening_session import ListeningSessionController
from .services.speech_output import ChatMessage, SpeechOutputController
from .services.state_machine import SessionState
from .services.wake_detector import WakeWordDetector

logger = logging.getLogger(__name__)


class VoiceInteractionController:
    """Single entry point for the UI layer.

    Every public method is safe to call from keyboard handlers: capability
    errors are logged and reported as ``notice`` events, never raised.
    """

    def __init__(
        self,
        settings: SettingsStore,
        event_bus: EventBus,
        capture: SpeechCaptureCapability,
        wake_capture: SpeechCaptureCapability,
        output: SpeechOutputCapability,
        sound_cue: Optional[SoundCue] = None,
        config: Optional[Config] = None,
        on_commit: Optional[Callable[[str], None]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the controller.

        Args:
            settings: Persisted voice settings
            event_bus: Bus shared with the settings UI
            capture: Capture capability for foreground sessions
            wake_capture: Capture capability for the background wake listener
            output: Speech synthesis capability
            sound_cue: Optional wake beep player
            config: Timing configuration (defaults when omitted)
            on_commit: Called with the transcript when auto-send fires
            loop: Event loop for timers (defaults to the running loop)
        """
        config = config or Config.from_dict({})
        self.config = config
        self.settings = settings
        self.event_bus = event_bus
        self.synchronizer = SettingsSynchronizer(settings, event_bus)
        self.sound_cue = sound_cue
        self.capture = capture

        self.session = ListeningSessionController(
            capture,
            settings,
            event_bus,
            commit_delay=config.commit_delay_seconds,
            loop=loop,
            on_error=self._on_session_error,
        )
        self.session.set_commit_callback(on_commit)
        self.detector = WakeWordDetector(
            wake_capture, event_bus, debounce_seconds=config.wake_debounce_seconds
        )
        self.speech = SpeechOutputController(
            output, settings, event_bus, on_speaking_change=self._on_speaking_change
        )
        self.prompts = EphemeralPromptScheduler(
            event_bus,
            prompt_ttl=config.prompt_ttl_seconds,
            flash_ttl=config.wake_flash_seconds,
            loop=loop,
        )

        self._loop = loop
        self.voice_settings: VoiceSettings = settings.get_voice_settings()
        self.wake_sound_enabled = settings.get_wake_sound_enabled()

        self._recognition_supported: Optional[bool] = None
        self._started = False
        self._closed = False
        self._subscriptions: List[Callable[[], None]] = []
        self._tasks: Set[asyncio.Future] = set()

    # Lifecycle

    def start(self):
        """Check capabilities, subscribe to settings events and start the wake listener."""
        if self._started:
            return
        self._started = True
        self._closed = False

        if not self.recognition_supported:
            self._notify("error", "Speech recognition not supported on this platform")
        if not self.speech.supported:
            self._notify("info", "Speech synthesis not supported on this platform")

        handlers = {
            WAKE_CHANGE: self._on_wake_change,
            WAKE_STATUS: self._on_wake_status,
            WAKE_SOUND_CHANGE: self._on_wake_sound_change,
            WAKE_PROMPT_CHANGE: self._on_wake_prompt_change,
            WAKE_SOUND_PARAMS_CHANGE: self._on_wake_sound_params,
            LANGUAGE_CHANGE: self._on_language_change,
            VOICE_SETTINGS_CHANGE: self._on_voice_settings_change,
        }
        for topic, handler in handlers.items():
            self._subscriptions.append(self.event_bus.subscribe(topic, handler))

        self._restart_wake(self.settings.get_wake_enabled())
        logger.info("Voice interaction controller started")

    def close(self):
        """Release listeners, timers and pending work."""
        if self._closed:
            return
        self._closed = True
        self._started = False

        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        self.detector.stop()
        self.session.close()
        self.prompts.close()
        self.speech.stop()
        self.speech.close()
        logger.info("Voice interaction controller closed")

    # Properties

    @property
    def recognition_supported(self) -> bool:
        """Whether speech capture is available; checked once per controller."""
        if self._recognition_supported is None:
            try:
                self._recognition_supported = bool(self.capture.supports_recognition())
            except Exception as e:
                logger.error(f"Error checking speech recognition support: {e}")
                self._recognition_supported = False
        return self._recognition_supported

    @property
    def wake_active(self) -> bool:
        return self.detector.running

    @property
    def wake_enabled(self) -> bool:
        return self.settings.get_wake_enabled()

    @property
    def listening(self) -> bool:
        return self.session.is_active

    def snapshot(self) -> SessionState:
        return self.session.snapshot()

    def set_commit_callback(self, callback: Optional[Callable[[str], None]]):
        self.session.set_commit_callback(callback)

    # Keyboard surface

    def toggle_listening(self) -> bool:
        """Start or stop a foreground session (mic button / shortcut).

        Returns:
            False if recognition is unsupported or failed to start
        """
        if self.session.is_active:
            self.session.stop()
            return True

        if not self.recognition_supported:
            return False

        started = self.session.start(self.voice_settings.lang)
        if not started:
            self._notify("error", "Failed to start speech recognition")
        return started

    def toggle_wake(self) -> bool:
        """Flip the wake listener setting.

        Returns:
            The new enabled value
        """
        enabled = not self.settings.get_wake_enabled()
        self.synchronizer.set_wake_enabled(enabled)
        self._notify("info", "Wake enabled" if enabled else "Wake disabled")
        return enabled

    async def replay_last(self) -> bool:
        """Speak the last assistant message again."""
        return await self.speech.replay_last()

    # Chat integration

    async def observe_messages(
        self,
        messages: Iterable[ChatMessage],
        mode: Optional[str] = None,
        resolved_mode: Optional[str] = None,
    ) -> int:
        return await self.speech.observe_messages(messages, mode, resolved_mode)

    def new_conversation(self):
        self.speech.reset_session()

    # Wake handling

    def _restart_wake(self, enabled: bool, phrase: Optional[str] = None) -> bool:
        self.detector.stop()
        if not enabled or not self.recognition_supported:
            return False

        return self.detector.start(
            self._on_wake_detected,
            self._on_wake_error,
            self.voice_settings.lang,
            phrase or self.settings.get_wake_phrase(),
        )

    def _on_wake_detected(self):
        self.prompts.flash()

        if self.wake_sound_enabled and self.sound_cue is not None:
            try:
                self.sound_cue.play(
                    self.settings.get_wake_sound_duration(),
                    self.settings.get_wake_sound_frequency(),
                )
            except Exception as e:
                logger.warning(f"Wake sound failed: {e}")

        if self.session.is_active:
            logger.info("Wake word detected during an active session, ignoring")
            return
        if self._tasks:
            logger.info("Wake word detected while the previous one is being handled, ignoring")
            return

        try:
            task = (self._loop or asyncio.get_running_loop()).create_task(self._handle_wake())
        except RuntimeError as e:
            logger.error(f"Cannot handle wake word without a running event loop: {e}")
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle_wake(self):
        prompt = self.settings.get_wake_prompt()
        self.prompts.show(prompt)
        await self.speech.speak(prompt)

        if self._closed:
            return
        self._notify("info", "Wake word detected")

        if self.session.is_active:
            logger.info("Session started while the wake prompt was spoken, not starting another")
            return

        if not self.session.start(self.voice_settings.lang):
            self._notify("error", "Failed to start speech recognition")
            return
        # "hey veer, what's the weather" said in one breath
        self.session.prefill(self.detector.trailing_text)

    def _on_wake_error(self, error: Exception):
        logger.error(f"Wake listener stopped after error: {error}")

    def _on_session_error(self, error: Exception):
        # Wake stays off until the next enable or settings change
        if self.detector.running:
            logger.info("Stopping wake listener after recognition error")
            self.detector.stop()

    # Settings events

    def _on_wake_change(self, event: WakeChangeEvent):
        if event.enabled is None:
            enabled = self.settings.get_wake_enabled()
        else:
            enabled = event.enabled
            if self.settings.get_wake_enabled() != enabled:
                self.settings.set_wake_enabled(enabled)
        if event.phrase is not None and event.phrase.strip():
            phrase = event.phrase
        else:
            phrase = self.settings.get_wake_phrase()
        self._restart_wake(enabled, phrase)

    def _on_wake_status(self, event: WakeStatusEvent):
        self.session.set_wake_active(event.active)

    def _on_wake_sound_change(self, event: WakeSoundChangeEvent):
        self.wake_sound_enabled = event.enabled
        if self.settings.get_wake_sound_enabled() != event.enabled:
            self.settings.set_wake_sound_enabled(event.enabled)

    def _on_wake_prompt_change(self, event: WakePromptChangeEvent):
        if self.settings.get_wake_prompt() != event.prompt:
            self.settings.set_wake_prompt(event.prompt)

    def _on_wake_sound_params(self, event: WakeSoundParamsEvent):
        if event.frequency is not None and event.frequency != self.settings.get_wake_sound_frequency():
            self.settings.set_wake_sound_frequency(event.frequency)
        if event.duration is not None and event.duration != self.settings.get_wake_sound_duration():
            self.settings.set_wake_sound_duration(event.duration)

    def _on_language_change(self, event: LanguageChangeEvent):
        if self.settings.get_language() != event.language:
            self.settings.set_language(event.language)
        logger.info(f"Language changed to '{event.language}', restarting wake listener")
        self._restart_wake(self.settings.get_wake_enabled())

    def _on_voice_settings_change(self, settings: VoiceSettings):
        previous_lang = self.voice_settings.lang
        self.voice_settings = settings
        if settings.lang != previous_lang and self.detector.running:
            self._restart_wake(self.settings.get_wake_enabled())

    def _on_speaking_change(self, speaking: bool):
        if speaking:
            self.session.begin_speaking()
        else:
            self.session.end_speaking()

    def _notify(self, level: str, message: str):
        log = logger.error if level == "error" else logger.info
        log(message)
        self.event_bus.publish(NOTICE, NoticeEvent(level=level, message=message))
