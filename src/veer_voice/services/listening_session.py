"""Foreground recognition session: transcript tracking and auto-send."""

import asyncio
import logging
from typing import Callable, Optional

from ..core.capabilities import RuntimeListenerError, SpeechCaptureCapability
from ..core.event_bus import (
    COMMIT,
    NOTICE,
    PHASE_CHANGE,
    TRANSCRIPT,
    CommitEvent,
    EventBus,
    NoticeEvent,
    PhaseChangeEvent,
    TranscriptEvent,
)
from ..core.settings import SettingsStore
from ..core.timers import TimerSlot
from .state_machine import Phase, SessionState, StateMachine

logger = logging.getLogger(__name__)


class ListeningSessionController:
    """Owns the single foreground recognition session and the phase state.

    All phase changes go through this class. The wake detector and the
    speech output only report what they are doing (``set_wake_active``,
    ``begin_speaking``/``end_speaking``); they never set the phase.

    The transcript lives in one place, read through ``latest_transcript()``.
    Deferred work (the auto-send timer) calls that accessor when it fires,
    so it always sees the newest text.
    """

    def __init__(
        self,
        capture: SpeechCaptureCapability,
        settings: SettingsStore,
        event_bus: Optional[EventBus] = None,
        commit_delay: float = 0.1,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """Initialize session controller.

        Args:
            capture: Capture capability for foreground recognition
            settings: Settings store, read for the auto-send flag at session end
            event_bus: Optional event bus for phase/transcript/commit events
            commit_delay: Seconds to wait before invoking the commit callback
            loop: Event loop for timers (defaults to the running loop)
            on_error: Called with a non-benign runtime error before the session ends
        """
        self.capture = capture
        self.settings = settings
        self.event_bus = event_bus
        self.commit_delay = commit_delay
        self.on_error = on_error

        self.state_machine = StateMachine()
        self.state_machine.add_listener(self._on_phase_change)

        self._transcript = ""
        self._generation = 0
        self._wake_active = False
        self._speaking = 0
        self._commit_callback: Optional[Callable[[str], None]] = None
        self._commit_timer = TimerSlot("auto-send", loop)

    @property
    def phase(self) -> Phase:
        return self.state_machine.state

    @property
    def is_active(self) -> bool:
        return self.state_machine.state is Phase.ACTIVE_LISTENING

    @property
    def auto_send_pending(self) -> bool:
        return self._commit_timer.armed

    def latest_transcript(self) -> str:
        """Current transcript text, updated on every interim result."""
        return self._transcript

    def snapshot(self) -> SessionState:
        return SessionState(
            phase=self.phase,
            transcript=self._transcript,
            auto_send_pending=self.auto_send_pending,
        )

    def set_commit_callback(self, callback: Optional[Callable[[str], None]]):
        """Set the action invoked with the transcript when auto-send fires."""
        self._commit_callback = callback

    def start(self, lang: str) -> bool:
        """Start a recognition session.

        Returns:
            True if a new session started. False if one is already active,
            recognition is unsupported, or the capture failed to start; the
            phase is unchanged in those cases.
        """
        if self.is_active:
            logger.info("Listening session already active, ignoring start")
            return False

        if not self.capture.supports_recognition():
            logger.info("Speech recognition not supported")
            return False

        self._generation += 1
        generation = self._generation

        try:
            started = self.capture.start(
                lambda text: self._handle_interim(generation, text),
                lambda: self._handle_end(generation),
                lang,
                on_error=lambda error: self._handle_error(generation, error),
            )
        except Exception as e:
            logger.error(f"Failed to start recognition: {e}")
            started = False

        if not started:
            self._generation += 1
            return False

        self._commit_timer.cancel()
        self._set_transcript("")
        self.state_machine.transition(Phase.ACTIVE_LISTENING)
        logger.info(f"Listening session started (lang={lang})")
        return True

    def stop(self):
        """End the active session by user request."""
        if not self.is_active:
            return

        self._generation += 1
        try:
            self.capture.stop()
        except Exception as e:
            logger.error(f"Error stopping recognition: {e}")
        self._finish("manual stop")

    def toggle(self, lang: str) -> bool:
        """Stop the session if active, otherwise start one.

        Returns:
            True if the session was stopped or started, False if starting failed
        """
        if self.is_active:
            self.stop()
            return True
        return self.start(lang)

    def prefill(self, text: str) -> bool:
        """Use ``text`` as the first interim result of a session that has heard nothing yet."""
        text = text.strip()
        if not text or not self.is_active or self._transcript:
            return False
        self._set_transcript(text)
        return True

    def set_wake_active(self, active: bool):
        """Record whether the wake listener runs; moves between IDLE and WAKE_LISTENING."""
        self._wake_active = active
        if self.phase in (Phase.IDLE, Phase.WAKE_LISTENING):
            self.state_machine.transition(self._resting_phase())

    def begin_speaking(self):
        self._speaking += 1
        if self.phase in (Phase.IDLE, Phase.WAKE_LISTENING):
            self.state_machine.transition(Phase.SPEAKING)

    def end_speaking(self):
        self._speaking = max(0, self._speaking - 1)
        if self._speaking == 0 and self.phase is Phase.SPEAKING:
            self.state_machine.transition(self._resting_phase())

    def close(self):
        """Tear down: stop any session, cancel the pending auto-send and go IDLE."""
        self._commit_timer.cancel()
        self._generation += 1
        if self.is_active:
            try:
                self.capture.stop()
            except Exception as e:
                logger.error(f"Error stopping recognition: {e}")
        self._wake_active = False
        self._speaking = 0
        self.state_machine.transition(Phase.IDLE)

    def _resting_phase(self) -> Phase:
        return Phase.WAKE_LISTENING if self._wake_active else Phase.IDLE

    def _settle(self):
        """Leave ACTIVE_LISTENING for the phase matching what still runs."""
        self.state_machine.transition(self._resting_phase())
        if self._speaking:
            self.state_machine.transition(Phase.SPEAKING)

    def _set_transcript(self, text: str):
        self._transcript = text
        if self.event_bus:
            self.event_bus.publish(TRANSCRIPT, TranscriptEvent(text=text))

    def _handle_interim(self, generation: int, text: str):
        if generation != self._generation:
            return
        self._set_transcript(text)

    def _handle_end(self, generation: int):
        if generation != self._generation:
            return
        self._generation += 1
        self._finish("recognition ended")

    def _handle_error(self, generation: int, error: Exception):
        if generation != self._generation:
            return
        if isinstance(error, RuntimeListenerError) and error.benign:
            logger.debug(f"Ignoring benign recognition error: {error.code}")
            return

        logger.error(f"Speech recognition error: {error}")
        self._generation += 1
        try:
            self.capture.stop()
        except Exception as e:
            logger.error(f"Error stopping recognition: {e}")
        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"Error in session error callback: {e}")
        self._settle()
        if self.event_bus:
            self.event_bus.publish(
                NOTICE, NoticeEvent(level="error", message=f"Speech recognition error: {error}")
            )

    def _finish(self, reason: str):
        self._settle()
        logger.info(f"Listening session ended ({reason})")

        if self.settings.get_auto_send() and self._transcript.strip():
            if not self._commit_timer.arm(self.commit_delay, self._commit):
                logger.warning("Auto-send skipped, transcript kept for a manual send")

    def _commit(self):
        text = self.latest_transcript().strip()
        callback = self._commit_callback
        if not text:
            return
        if callback is None:
            logger.debug("Auto-send fired with no commit callback set")
            return

        logger.info(f"Auto-sending transcript: '{text}'")
        self._transcript = ""
        callback(text)
        if self.event_bus:
            self.event_bus.publish(COMMIT, CommitEvent(text=text))

    def _on_phase_change(self, old: Phase, new: Phase):
        if self.event_bus:
            self.event_bus.publish(PHASE_CHANGE, PhaseChangeEvent(old=old.name, new=new.name))
