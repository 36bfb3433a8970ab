"""Tests for services/wake_detector.py."""

from unittest.mock import MagicMock

from veer_voice.core.capabilities import CaptureStartError, RuntimeListenerError
from veer_voice.core.event_bus import WAKE_STATUS, EventBus, WakeStatusEvent
from veer_voice.services.wake_detector import WakeWordDetector

from fakes import FakeCapture, Recorder


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _make(debounce=0.0, **capture_kwargs):
    capture = FakeCapture(**capture_kwargs)
    bus = EventBus()
    clock = FakeClock()
    detector = WakeWordDetector(capture, bus, debounce_seconds=debounce, clock=clock)
    return detector, capture, bus, clock


class TestWakeDetectorStart:
    def test_unsupported_returns_false_without_side_effects(self):
        detector, capture, bus, _ = _make(supported=False)
        statuses = Recorder(bus, WAKE_STATUS).events

        assert detector.start(MagicMock(), MagicMock(), "en-US", "hey veer") is False
        assert capture.calls == []
        assert statuses == []
        assert detector.running is False

    def test_start_publishes_status(self):
        detector, capture, bus, _ = _make()
        statuses = Recorder(bus, WAKE_STATUS).events

        assert detector.start(MagicMock(), MagicMock(), "en-GB", "hey veer") is True
        assert capture.calls == [("start", "en-GB")]
        assert statuses == [WakeStatusEvent(active=True)]

    def test_start_returning_false(self):
        detector, _, _, _ = _make(start_result=False)
        on_error = MagicMock()
        assert detector.start(MagicMock(), on_error, "en-US", "hey veer") is False
        assert detector.running is False
        on_error.assert_not_called()

    def test_start_raising_reports_error(self):
        detector, _, _, _ = _make(start_result=CaptureStartError("permission denied"))
        on_error = MagicMock()
        assert detector.start(MagicMock(), on_error, "en-US", "hey veer") is False
        on_error.assert_called_once()
        assert detector.running is False


class TestWakeDetection:
    def test_fires_once_per_utterance(self):
        detector, capture, _, _ = _make()
        on_detect = MagicMock()
        detector.start(on_detect, MagicMock(), "en-US", "hey veer")

        capture.say("hey")
        capture.say("hey veer")
        capture.say("hey veer what's")
        capture.say("hey veer what's the weather")

        assert on_detect.call_count == 1

    def test_new_utterance_can_fire_again(self):
        detector, capture, _, _ = _make()
        on_detect = MagicMock()
        detector.start(on_detect, MagicMock(), "en-US", "hey veer")

        capture.say("hey veer")
        capture.say("thanks")
        capture.say("hey veer")

        assert on_detect.call_count == 2

    def test_debounce_window(self):
        detector, capture, _, clock = _make(debounce=3.0)
        on_detect = MagicMock()
        detector.start(on_detect, MagicMock(), "en-US", "hey veer")

        capture.say("hey veer")
        capture.say("ok")
        clock.now += 1.0
        capture.say("hey veer")
        assert on_detect.call_count == 1

        capture.say("ok")
        clock.now += 3.0
        capture.say("hey veer")
        assert on_detect.call_count == 2

    def test_callbacks_after_stop_are_ignored(self):
        detector, capture, bus, _ = _make()
        statuses = Recorder(bus, WAKE_STATUS).events
        on_detect = MagicMock()
        detector.start(on_detect, MagicMock(), "en-US", "hey veer")
        stale_interim = capture.on_interim
        stale_end = capture.on_end

        detector.stop()
        stale_interim("hey veer")
        stale_end()

        on_detect.assert_not_called()
        assert capture.calls[-1] == ("stop",)
        assert statuses == [WakeStatusEvent(active=True), WakeStatusEvent(active=False)]

    def test_restart_uses_new_phrase(self):
        detector, capture, _, _ = _make()
        on_detect = MagicMock()
        detector.start(on_detect, MagicMock(), "en-US", "hey veer")
        old_interim = capture.on_interim

        detector.stop()
        detector.start(on_detect, MagicMock(), "en-US", "computer")
        old_interim("computer")
        assert on_detect.call_count == 0

        capture.say("hey veer")
        assert on_detect.call_count == 0
        capture.say("computer")
        assert on_detect.call_count == 1
        assert detector.phrase == "computer"

    def test_tracks_words_after_the_phrase(self):
        detector, capture, _, _ = _make()
        detector.start(MagicMock(), MagicMock(), "en-US", "hey veer")

        capture.say("hey veer")
        assert detector.trailing_text == ""
        capture.say("hey veer what's the weather")
        assert detector.trailing_text == "what's the weather"
        capture.say("something else")
        assert detector.trailing_text == ""

    def test_engine_end_leaves_detector_stopped(self):
        detector, capture, bus, _ = _make()
        statuses = Recorder(bus, WAKE_STATUS).events
        detector.start(MagicMock(), MagicMock(), "en-US", "hey veer")

        capture.finish()

        assert detector.running is False
        assert statuses[-1] == WakeStatusEvent(active=False)
        assert capture.start_count == 1


class TestWakeDetectorErrors:
    def test_benign_errors_ignored(self):
        detector, capture, _, _ = _make()
        on_error = MagicMock()
        detector.start(MagicMock(), on_error, "en-US", "hey veer")

        capture.fail(RuntimeListenerError("no-speech"))
        capture.fail(RuntimeListenerError("aborted"))

        assert detector.running is True
        on_error.assert_not_called()

    def test_runtime_error_stops_without_retry(self):
        detector, capture, _, _ = _make()
        on_error = MagicMock()
        detector.start(MagicMock(), on_error, "en-US", "hey veer")

        error = RuntimeListenerError("network", "connection lost")
        capture.fail(error)

        assert detector.running is False
        on_error.assert_called_once_with(error)
        assert capture.start_count == 1
