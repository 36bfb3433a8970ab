"""Tests for services/speech_output.py - speaking and auto-speak bookkeeping."""

import asyncio

from veer_voice.core.event_bus import RESPONSE_MODE_CHANGE, EventBus
from veer_voice.core.settings import SettingsStore, VoiceSettings
from veer_voice.services.speech_output import (
    ChatMessage,
    SpeechOutputController,
    effective_mode,
)

from fakes import FakeSpeech, _run


def _make(**speech_kwargs):
    speech = FakeSpeech(**speech_kwargs)
    bus = EventBus()
    changes = []
    controller = SpeechOutputController(
        speech, SettingsStore(), bus, on_speaking_change=changes.append
    )
    return controller, speech, bus, changes


def _assistant(message_id, text):
    return ChatMessage(id=message_id, role="assistant", content=text)


class TestSpeak:
    def test_speak_uses_stored_voice_settings(self):
        controller, speech, _, changes = _make()
        controller.settings.set_voice_settings(VoiceSettings(voice_name="Alex", rate=1.5))

        _run(controller.speak("hello"))

        assert speech.spoken == ["hello"]
        assert speech.options[0].voice_name == "Alex"
        assert speech.options[0].rate == 1.5
        assert changes == [True, False]

    def test_failure_is_swallowed(self):
        controller, speech, _, changes = _make(fail=True)

        _run(controller.speak("hello"))

        assert speech.spoken == ["hello"]
        assert changes == [True, False]

    def test_unsupported_or_empty_is_noop(self):
        controller, speech, _, changes = _make(supported=False)
        _run(controller.speak("hello"))
        _run(controller.speak(""))
        assert speech.spoken == []
        assert changes == []

    def test_stop_delegates(self):
        controller, speech, _, _ = _make()
        controller.stop()
        assert speech.stops == 1


class TestAutoSpeak:
    def test_each_message_spoken_at_most_once(self):
        controller, speech, _, _ = _make()
        message = _assistant(1, "It is sunny.")

        async def scenario():
            await controller.on_assistant_message(message)
            await controller.on_assistant_message(message)
            await controller.observe_messages([message])

        _run(scenario())
        assert speech.spoken == ["It is sunny."]

    def test_concurrent_observation_speaks_once(self):
        controller, speech, _, _ = _make(delay=0.01)
        message = _assistant("a", "Done.")

        async def scenario():
            await asyncio.gather(
                controller.on_assistant_message(message),
                controller.on_assistant_message(message),
            )

        _run(scenario())
        assert speech.spoken == ["Done."]

    def test_failed_speak_is_not_retried(self):
        controller, speech, _, _ = _make(fail=True)
        message = _assistant(7, "Sorry.")

        async def scenario():
            await controller.on_assistant_message(message)
            await controller.on_assistant_message(message)

        _run(scenario())
        assert speech.spoken == ["Sorry."]
        assert 7 in controller.ledger

    def test_user_messages_ignored(self):
        controller, speech, _, _ = _make()
        _run(controller.on_assistant_message(ChatMessage(id=1, role="user", content="hi")))
        assert speech.spoken == []
        assert len(controller.ledger) == 0

    def test_silent_mode_records_without_speaking(self):
        controller, speech, bus, _ = _make()
        bus.publish(RESPONSE_MODE_CHANGE, {"mode": "silent"})

        spoken = _run(controller.on_assistant_message(_assistant(1, "quiet")))

        assert spoken is False
        assert controller.muted
        assert speech.spoken == []
        assert 1 in controller.ledger

    def test_auto_mode_resolved_to_silent(self):
        controller, speech, _, _ = _make()
        _run(controller.on_assistant_message(_assistant(1, "x"), mode="auto", resolved_mode="silent"))
        assert speech.spoken == []

    def test_observe_messages_in_order(self):
        controller, speech, _, _ = _make()
        messages = [
            ChatMessage(id=1, role="user", content="hi"),
            _assistant(2, "Hello."),
            _assistant(3, "How can I help?"),
        ]

        count = _run(controller.observe_messages(messages))

        assert count == 2
        assert speech.spoken == ["Hello.", "How can I help?"]


class TestReplayAndReset:
    def test_replay_last_speaks_again(self):
        controller, speech, _, _ = _make()

        async def scenario():
            await controller.on_assistant_message(_assistant(1, "Again."))
            return await controller.replay_last()

        assert _run(scenario()) is True
        assert speech.spoken == ["Again.", "Again."]

    def test_replay_without_message(self):
        controller, _, _, _ = _make()
        assert _run(controller.replay_last()) is False

    def test_reset_session_allows_same_id(self):
        controller, speech, _, _ = _make()

        async def scenario():
            await controller.on_assistant_message(_assistant(1, "First."))
            controller.reset_session()
            await controller.on_assistant_message(_assistant(1, "Second."))

        _run(scenario())
        assert speech.spoken == ["First.", "Second."]

    def test_close_unsubscribes(self):
        controller, _, bus, _ = _make()
        controller.close()
        assert bus.get_subscriber_count(RESPONSE_MODE_CHANGE) == 0


def test_effective_mode():
    assert effective_mode("auto", "silent") == "silent"
    assert effective_mode("auto", None) == "auto"
    assert effective_mode("voice", "silent") == "voice"
    assert effective_mode(None) is None
