"""Background wake word detection over a speech capture capability."""

import logging
import time
from typing import Callable, Optional

from ..core.capabilities import RuntimeListenerError, SpeechCaptureCapability
from ..core.event_bus import WAKE_STATUS, EventBus, WakeStatusEvent
from ..core.wake_matcher import WakePhraseMatcher

logger = logging.getLogger(__name__)


class WakeWordDetector:
    """Owns the continuously running wake listener.

    Detection fires at most once per utterance: after a match the detector
    stays latched until an interim result no longer contains the phrase.
    Detections are additionally debounced by ``debounce_seconds``.

    The detector never restarts itself. After ``stop()``, an error, or the
    engine ending on its own, it stays stopped until ``start()`` is called.
    """

    def __init__(
        self,
        capture: SpeechCaptureCapability,
        event_bus: Optional[EventBus] = None,
        debounce_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize wake detector.

        Args:
            capture: Capture capability dedicated to wake listening
            event_bus: Optional event bus for wake-status events
            debounce_seconds: Minimum gap between two detections
            clock: Monotonic clock in seconds
        """
        self.capture = capture
        self.event_bus = event_bus
        self.debounce_seconds = debounce_seconds
        self.clock = clock

        self.running = False
        self.phrase: Optional[str] = None
        self.lang: Optional[str] = None
        self.trailing_text = ""  # words after the phrase in the latest matching utterance

        self._generation = 0
        self._matcher: Optional[WakePhraseMatcher] = None
        self._on_detect: Optional[Callable[[], None]] = None
        self._on_error: Optional[Callable[[Exception], None]] = None
        self._latched = False
        self._last_detection: Optional[float] = None

    def start(
        self,
        on_detect: Callable[[], None],
        on_error: Callable[[Exception], None],
        lang: str,
        phrase: str,
    ) -> bool:
        """Start listening for ``phrase``.

        Returns:
            True if the listener is running, False if capture is unsupported
            or failed to start
        """
        if not self.capture.supports_recognition():
            logger.info("Speech recognition not supported - wake listener not started")
            return False

        if self.running:
            logger.warning("Wake listener already running, restarting")
            self.stop()

        self._generation += 1
        generation = self._generation
        self._matcher = WakePhraseMatcher(phrase)
        self.trailing_text = ""
        self._on_detect = on_detect
        self._on_error = on_error
        self._latched = False
        self.phrase = phrase
        self.lang = lang

        try:
            started = self.capture.start(
                lambda text: self._handle_interim(generation, text),
                lambda: self._handle_end(generation),
                lang,
                on_error=lambda error: self._handle_error(generation, error),
            )
        except Exception as e:
            logger.error(f"Failed to start wake listener: {e}")
            self._generation += 1
            on_error(e)
            return False

        if not started:
            logger.warning("Wake listener failed to start")
            self._generation += 1
            return False

        self.running = True
        logger.info(f"Wake listener started (phrase='{phrase}', lang={lang})")
        self._publish_status(True)
        return True

    def stop(self):
        """Stop the wake listener; pending callbacks from it are ignored afterwards."""
        self._generation += 1
        if not self.running:
            return

        self.running = False
        try:
            self.capture.stop()
        except Exception as e:
            logger.error(f"Error stopping wake listener: {e}")
        logger.info("Wake listener stopped")
        self._publish_status(False)

    def _handle_interim(self, generation: int, text: str):
        if generation != self._generation or self._matcher is None:
            return

        if not self._matcher.matches(text):
            # A non-matching result means a new utterance started
            self._latched = False
            self.trailing_text = ""
            return

        self.trailing_text = self._matcher.trailing_text(text)
        if self._latched:
            return
        self._latched = True

        now = self.clock()
        if self._last_detection is not None and now - self._last_detection < self.debounce_seconds:
            logger.debug("Wake phrase heard again within debounce window, ignoring")
            return
        self._last_detection = now

        logger.info(f"Wake phrase detected in '{text}'")
        if self._on_detect:
            self._on_detect()

    def _handle_end(self, generation: int):
        if generation != self._generation:
            return
        self._generation += 1
        self.running = False
        logger.info("Wake listener ended")
        self._publish_status(False)

    def _handle_error(self, generation: int, error: Exception):
        if generation != self._generation:
            return
        if isinstance(error, RuntimeListenerError) and error.benign:
            logger.debug(f"Ignoring benign wake listener error: {error.code}")
            return

        logger.error(f"Wake listener error: {error}")
        self.stop()
        if self._on_error:
            self._on_error(error)

    def _publish_status(self, active: bool):
        if self.event_bus:
            self.event_bus.publish(WAKE_STATUS, WakeStatusEvent(active=active))
