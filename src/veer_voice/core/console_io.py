"""Console stand-ins for the host speech capabilities.

Typed lines play the role of recognized speech, and spoken text is
printed. Used by the ``run`` command to drive the controller from a
terminal.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from .capabilities import SpeakOptions, VoiceDescriptor, select_voice
from .timers import TimerSlot

logger = logging.getLogger(__name__)


class ConsoleSpeechHub:
    """Delivers each typed line to every console capture that is listening."""

    def __init__(self):
        self._captures: List["ConsoleCapture"] = []

    def create_capture(
        self, name: str, continuous: bool = False, silence_timeout: float = 3.0
    ) -> "ConsoleCapture":
        capture = ConsoleCapture(self, name, continuous, silence_timeout)
        self._captures.append(capture)
        return capture

    def feed(self, line: str):
        """Hand one utterance to all running captures."""
        for capture in list(self._captures):
            if capture.listening:
                capture.hear(line)


class ConsoleCapture:
    """Speech capture over typed lines.

    Each line is delivered word by word as interim results. A continuous
    capture keeps listening; otherwise the capture ends after
    ``silence_timeout`` seconds without input, or at once on an empty line.
    """

    def __init__(
        self,
        hub: ConsoleSpeechHub,
        name: str,
        continuous: bool = False,
        silence_timeout: float = 3.0,
    ):
        self.hub = hub
        self.name = name
        self.continuous = continuous
        self.silence_timeout = silence_timeout

        self.listening = False
        self.lang: Optional[str] = None
        self._on_interim: Optional[Callable[[str], None]] = None
        self._on_end: Optional[Callable[[], None]] = None
        self._heard: List[str] = []
        self._silence = TimerSlot(f"{name}-silence")

    def supports_recognition(self) -> bool:
        return True

    def start(
        self,
        on_interim: Callable[[str], None],
        on_end: Callable[[], None],
        lang: str,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> bool:
        if self.listening:
            self.stop()
        self._on_interim = on_interim
        self._on_end = on_end
        self.lang = lang
        self._heard = []
        self.listening = True
        logger.debug(f"Console capture '{self.name}' listening ({lang})")
        return True

    def stop(self):
        self._silence.cancel()
        self.listening = False

    def hear(self, line: str):
        text = line.strip()
        if not text:
            if not self.continuous:
                self._end()
            return

        words = text.split()
        prefix = " ".join(self._heard)
        for count in range(1, len(words) + 1):
            partial = " ".join(words[:count])
            result = f"{prefix} {partial}".strip() if not self.continuous else partial
            if self._on_interim and self.listening:
                self._on_interim(result)

        if not self.continuous:
            self._heard.extend(words)
            self._silence.arm(self.silence_timeout, self._end)

    def _end(self):
        if not self.listening:
            return
        self.stop()
        if self._on_end:
            self._on_end()


class ConsoleSpeech:
    """Speech output that prints text and takes time proportional to its length."""

    SECONDS_PER_WORD = 0.05

    def __init__(self, write: Callable[[str], None] = print):
        self.write = write
        self.voices = [VoiceDescriptor(name="Console", lang="en-US", default=True)]
        self._interrupt: Optional[asyncio.Event] = None

    def supports_synthesis(self) -> bool:
        return True

    async def get_available_voices(self) -> List[VoiceDescriptor]:
        return list(self.voices)

    async def speak(self, text: str, options: SpeakOptions) -> None:
        self.stop()
        interrupt = asyncio.Event()
        self._interrupt = interrupt

        voice = select_voice(self.voices, options.voice_name, options.lang)
        self.write(f"🔊 [{voice.name if voice else 'default'}] {text}")

        duration = len(text.split()) * self.SECONDS_PER_WORD / max(options.rate, 0.1)
        try:
            await asyncio.wait_for(interrupt.wait(), timeout=duration)
        except asyncio.TimeoutError:
            pass
        finally:
            if self._interrupt is interrupt:
                self._interrupt = None

    def stop(self) -> None:
        if self._interrupt is not None:
            self._interrupt.set()
            self._interrupt = None
