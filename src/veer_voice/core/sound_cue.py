"""Wake sound cue - a short sine beep played through PyAudio."""

import asyncio
import logging
import threading
from typing import Dict, Iterator, Optional

import numpy as np

try:
    import pyaudio
    AUDIO_AVAILABLE = True
except ImportError:
    pyaudio = None
    AUDIO_AVAILABLE = False

logger = logging.getLogger(__name__)


def build_tone(
    duration_ms: float,
    frequency_hz: float,
    volume: float = 0.06,
    sample_rate: int = 24000,
) -> bytes:
    """Render a sine tone with a linear fade-out as PCM16 mono.

    Args:
        duration_ms: Tone length in milliseconds
        frequency_hz: Tone frequency in Hz
        volume: Peak amplitude (0.0-1.0)
        sample_rate: Output sample rate in Hz

    Returns:
        PCM16 little-endian audio bytes
    """
    samples = max(1, int(sample_rate * duration_ms / 1000.0))
    t = np.arange(samples, dtype=np.float32) / sample_rate
    envelope = np.linspace(1.0, 0.0, samples, dtype=np.float32)
    wave = np.sin(2 * np.pi * frequency_hz * t) * envelope * volume
    return (np.clip(wave, -1.0, 1.0) * 32767).astype("<i2").tobytes()


def output_devices(audio) -> Iterator[Dict]:
    """Yield PyAudio device info dicts for devices that can play sound."""
    for i in range(audio.get_device_count()):
        info = audio.get_device_info_by_index(i)
        if info.get("maxOutputChannels", 0) > 0:
            yield dict(info, index=i)


def pick_output_device(audio, preferred_name: Optional[str]) -> Optional[int]:
    """Index of the first output device whose name contains ``preferred_name``.

    Matching ignores case. None means PyAudio's default output, used when
    no name is configured or nothing matches.
    """
    if not preferred_name:
        return None

    wanted = preferred_name.lower()
    names = []
    for info in output_devices(audio):
        name = info.get("name", "")
        if wanted in name.lower():
            logger.info(f"Wake sound on '{name}' (index {info['index']})")
            return info["index"]
        names.append(name)

    logger.warning(f"No output device matches '{preferred_name}', using default; found {names}")
    return None


class ToneCuePlayer:
    """Plays the wake beep without blocking the event loop.

    Playback runs on the default executor. When PyAudio is not installed,
    or the device fails, the cue is skipped and logged.
    """

    def __init__(
        self,
        preferred_device_name: Optional[str] = None,
        volume: float = 0.06,
        sample_rate: int = 24000,
    ):
        """Initialize cue player.

        Args:
            preferred_device_name: Preferred output device name (partial match, case-insensitive).
                                   If None or not found, falls back to system default.
            volume: Beep amplitude (0.0-1.0)
            sample_rate: Playback sample rate in Hz
        """
        self.preferred_device_name = preferred_device_name
        self.volume = volume
        self.sample_rate = sample_rate
        self.enabled = AUDIO_AVAILABLE

        self.audio = None
        self.device_index: Optional[int] = None
        self._device_selected = False
        self._lock = threading.Lock()

        if not AUDIO_AVAILABLE:
            logger.warning("PyAudio not available - wake sound cue disabled")

    def play(self, duration_ms: float, frequency_hz: float):
        """Start playing a beep; returns immediately."""
        if not self.enabled:
            return

        data = build_tone(duration_ms, frequency_hz, self.volume, self.sample_rate)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._play_blocking(data)
            return
        loop.run_in_executor(None, self._play_blocking, data)

    def _play_blocking(self, data: bytes):
        with self._lock:
            stream = None
            try:
                if self.audio is None:
                    self.audio = pyaudio.PyAudio()
                if not self._device_selected:
                    self.device_index = pick_output_device(self.audio, self.preferred_device_name)
                    self._device_selected = True

                stream = self.audio.open(
                    format=pyaudio.paInt16,
                    channels=1,
                    rate=self.sample_rate,
                    output=True,
                    output_device_index=self.device_index,
                )
                stream.write(data)
            except Exception as e:
                logger.error(f"Error playing wake sound: {e}")
            finally:
                if stream is not None:
                    try:
                        stream.stop_stream()
                        stream.close()
                    except Exception as e:
                        logger.error(f"Error closing wake sound stream: {e}")

    def cleanup(self):
        """Release the PyAudio instance."""
        with self._lock:
            if self.audio is not None:
                self.audio.terminate()
                self.audio = None
                self._device_selected = False
        logger.debug("ToneCuePlayer cleaned up")
