"""Run the voice controller in an interactive console session."""

import asyncio
import itertools
import logging
import sys
import threading

from veer_voice.config import DEFAULT_CONFIG_PATH, load_config
from veer_voice.controller import VoiceInteractionController
from veer_voice.core import (
    ConsoleSpeech,
    ConsoleSpeechHub,
    EventBus,
    SettingsStore,
    ToneCuePlayer,
    YamlFileStorage,
)
from veer_voice.core.event_bus import (
    EPHEMERAL_PROMPT,
    NOTICE,
    PHASE_CHANGE,
    TRANSCRIPT,
    NoticeEvent,
    PhaseChangeEvent,
    PromptEvent,
    TranscriptEvent,
)
from veer_voice.services import ChatMessage

logger = logging.getLogger(__name__)

HELP = """Commands:
  /mic           toggle listening (like Ctrl+M)
  /wake          toggle the wake listener (like Ctrl+W)
  /replay        speak the last assistant message again (like Ctrl+L)
  /stop          stop speaking
  /reply TEXT    add an assistant message (auto-spoken unless silent)
  /mode MODE     set response mode (e.g. helper, silent, auto)
  /new           start a new conversation
  /status        show the session state
  /quit          exit
Any other line is treated as something you said."""


def main(config_path: str = DEFAULT_CONFIG_PATH, log_level: str | None = None) -> bool:
    """Run the console voice session.

    Args:
        config_path: Path to configuration file
        log_level: Logging level override (DEBUG, INFO, WARNING, ERROR)

    Returns:
        True if successful, False otherwise
    """
    try:
        config = load_config(config_path)
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Failed to load configuration: {e}")
        return False

    logging.basicConfig(
        level=getattr(logging, (log_level or config.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("=" * 70)
    print("🎤 VEER VOICE CONSOLE")
    print("=" * 70)
    print(HELP)
    print("=" * 70)
    print()

    return asyncio.run(_run_console(config))


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue):
    """Read stdin on a daemon thread so Ctrl+C never waits for a pending line."""

    def reader():
        for line in sys.stdin:
            loop.call_soon_threadsafe(lines.put_nowait, line.rstrip("\n"))
        loop.call_soon_threadsafe(lines.put_nowait, None)

    threading.Thread(target=reader, daemon=True).start()


async def _run_console(config) -> bool:
    event_bus = EventBus()
    settings = SettingsStore(YamlFileStorage(config.settings_path), config.default_language)
    hub = ConsoleSpeechHub()
    cue = ToneCuePlayer(
        preferred_device_name=config.sound_output_device, volume=config.sound_volume
    )

    controller = VoiceInteractionController(
        settings=settings,
        event_bus=event_bus,
        capture=hub.create_capture("session", silence_timeout=config.silence_timeout_seconds),
        wake_capture=hub.create_capture("wake", continuous=True),
        output=ConsoleSpeech(),
        sound_cue=cue,
        config=config,
    )

    ids = itertools.count(1)
    messages: list[ChatMessage] = []
    mode: dict[str, str | None] = {"current": None}
    pending: set[asyncio.Task] = set()

    def speak_new_messages():
        task = asyncio.ensure_future(controller.observe_messages(messages, mode["current"]))
        pending.add(task)
        task.add_done_callback(pending.discard)

    def on_commit(text: str):
        messages.append(ChatMessage(id=next(ids), role="user", content=text))
        print(f"📨 You: {text}")
        messages.append(ChatMessage(id=next(ids), role="assistant", content=f"You said: {text}"))
        speak_new_messages()

    def on_notice(event: NoticeEvent):
        print(f"{'❌' if event.level == 'error' else 'ℹ️ '} {event.message}")

    def on_prompt(event: PromptEvent):
        if event.text:
            print(f"💬 {event.text}")

    def on_phase(event: PhaseChangeEvent):
        print(f"   [{event.old} → {event.new}]")

    def on_transcript(event: TranscriptEvent):
        if event.text and controller.listening:
            print(f"   … {event.text}")

    event_bus.subscribe(NOTICE, on_notice)
    event_bus.subscribe(EPHEMERAL_PROMPT, on_prompt)
    event_bus.subscribe(PHASE_CHANGE, on_phase)
    event_bus.subscribe(TRANSCRIPT, on_transcript)
    controller.set_commit_callback(on_commit)
    controller.start()

    print(f"✓ Say '{settings.get_wake_phrase()}' to activate (wake {'on' if controller.wake_active else 'off'})")
    print()

    lines: asyncio.Queue = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), lines)

    try:
        while True:
            line = await lines.get()
            if line is None:
                break
            if not line.startswith("/"):
                hub.feed(line)
                continue

            command, _, argument = line[1:].partition(" ")
            if command == "quit":
                break
            elif command == "mic":
                controller.toggle_listening()
            elif command == "wake":
                controller.toggle_wake()
            elif command == "replay":
                if not await controller.replay_last():
                    print("Nothing to replay")
            elif command == "stop":
                controller.speech.stop()
            elif command == "reply":
                messages.append(ChatMessage(id=next(ids), role="assistant", content=argument))
                speak_new_messages()
            elif command == "mode":
                mode["current"] = argument or None
                controller.synchronizer.set_response_mode(argument)
            elif command == "new":
                messages.clear()
                controller.new_conversation()
                print("✓ New conversation")
            elif command == "status":
                print(controller.snapshot())
            else:
                print(HELP)
        return True
    except Exception as e:
        logger.error(f"Error in console session: {e}", exc_info=True)
        return False
    finally:
        for task in pending:
            task.cancel()
        controller.close()
        cue.cleanup()
        print("\n✓ Session ended")


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
