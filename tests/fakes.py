"""Fake host capabilities and helpers shared by the tests."""

import asyncio
from typing import Callable, List, Optional

from veer_voice.config import Config
from veer_voice.core.capabilities import SpeakOptions, SynthesisError, VoiceDescriptor

FAST_CONFIG = {
    "wake": {"debounce_seconds": 0, "flash_seconds": 0.02},
    "prompt": {"ttl_seconds": 0.05},
    "session": {"commit_delay_seconds": 0.01},
}


def fast_config(**overrides) -> Config:
    data = {section: dict(values) for section, values in FAST_CONFIG.items()}
    for key, value in overrides.items():
        section, _, name = key.partition("__")
        data.setdefault(section, {})[name] = value
    return Config.from_dict(data)


def _run(coro):
    """Run an async coroutine synchronously."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeCapture:
    """Speech capture whose callbacks are driven by the test."""

    def __init__(self, supported: bool = True, start_result=True):
        self.supported = supported
        self.start_result = start_result
        self.calls: List[tuple] = []
        self.listening = False
        self.on_interim: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

    def supports_recognition(self) -> bool:
        return self.supported

    def start(self, on_interim, on_end, lang, on_error=None) -> bool:
        self.calls.append(("start", lang))
        if isinstance(self.start_result, Exception):
            raise self.start_result
        if not self.start_result:
            return False
        self.on_interim = on_interim
        self.on_end = on_end
        self.on_error = on_error
        self.listening = True
        return True

    def stop(self):
        self.calls.append(("stop",))
        self.listening = False

    @property
    def start_count(self) -> int:
        return sum(1 for call in self.calls if call[0] == "start")

    def say(self, text: str):
        self.on_interim(text)

    def finish(self):
        self.listening = False
        self.on_end()

    def fail(self, error: Exception):
        self.on_error(error)


class FakeSpeech:
    """Speech output that records what it was asked to say."""

    def __init__(self, supported: bool = True, fail: bool = False, delay: float = 0.0):
        self.supported = supported
        self.fail = fail
        self.delay = delay
        self.spoken: List[str] = []
        self.options: List[SpeakOptions] = []
        self.stops = 0

    def supports_synthesis(self) -> bool:
        return self.supported

    async def get_available_voices(self):
        return [VoiceDescriptor(name="Test", lang="en-US", default=True)]

    async def speak(self, text: str, options: SpeakOptions) -> None:
        self.spoken.append(text)
        self.options.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise SynthesisError("synthesis engine crashed")

    def stop(self):
        self.stops += 1


class Recorder:
    """Collects events published on a topic."""

    def __init__(self, event_bus, topic: str):
        self.events = []
        event_bus.subscribe(topic, self.events.append)
