"""Host capability contracts for speech capture and speech output."""

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

# Engine error codes that only mean "nothing was heard" or "we stopped it"
BENIGN_ERROR_CODES = frozenset({"aborted", "no-speech"})


class CapabilityError(Exception):
    """Base class for errors raised by host speech capabilities."""


class CaptureStartError(CapabilityError):
    """Recognition could not be started (e.g. microphone permission denied)."""


class RuntimeListenerError(CapabilityError):
    """The capture engine reported an error while a listener was running."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code

    @property
    def benign(self) -> bool:
        return self.code in BENIGN_ERROR_CODES


class SynthesisError(CapabilityError):
    """Speech output failed."""


@dataclass(frozen=True)
class VoiceDescriptor:
    name: str
    lang: str
    default: bool = False


@dataclass(frozen=True)
class SpeakOptions:
    voice_name: Optional[str] = None
    lang: Optional[str] = None
    rate: float = 1.0
    pitch: float = 1.0


class SpeechCaptureCapability(Protocol):
    """Speech recognition supplied by the host.

    ``start`` returns False (or raises ``CaptureStartError``) when the
    recognizer could not be started. Callbacks are invoked on the event
    loop thread.
    """

    def supports_recognition(self) -> bool: ...

    def start(
        self,
        on_interim: Callable[[str], None],
        on_end: Callable[[], None],
        lang: str,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> bool: ...

    def stop(self) -> None: ...


class SpeechOutputCapability(Protocol):
    """Speech synthesis supplied by the host."""

    def supports_synthesis(self) -> bool: ...

    async def get_available_voices(self) -> List[VoiceDescriptor]: ...

    async def speak(self, text: str, options: SpeakOptions) -> None: ...

    def stop(self) -> None: ...


class SoundCue(Protocol):
    def play(self, duration_ms: float, frequency_hz: float) -> None: ...


def select_voice(
    voices: Sequence[VoiceDescriptor],
    voice_name: Optional[str] = None,
    lang: Optional[str] = None,
) -> Optional[VoiceDescriptor]:
    """Pick a voice: exact name first, then language prefix, then the first one."""
    if not voices:
        return None
    if voice_name:
        for voice in voices:
            if voice.name == voice_name:
                return voice
    if lang:
        for voice in voices:
            if voice.lang.startswith(lang):
                return voice
    return voices[0]
