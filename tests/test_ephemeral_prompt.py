"""Tests for services/ephemeral_prompt.py."""

import asyncio

from veer_voice.core.event_bus import EPHEMERAL_PROMPT, WAKE_FLASH, EventBus, PromptEvent, WakeFlashEvent
from veer_voice.services.ephemeral_prompt import EphemeralPromptScheduler

from fakes import Recorder, _run


def _make():
    bus = EventBus()
    scheduler = EphemeralPromptScheduler(bus, prompt_ttl=0.02, flash_ttl=0.01)
    return scheduler, Recorder(bus, EPHEMERAL_PROMPT).events, Recorder(bus, WAKE_FLASH).events


class TestEphemeralPrompt:
    def test_prompt_expires(self):
        async def scenario():
            scheduler, prompts, _ = _make()
            shown = scheduler.show("Yes?")
            assert scheduler.prompt is shown
            await asyncio.sleep(0.05)
            return scheduler, prompts

        scheduler, prompts = _run(scenario())
        assert prompts == [PromptEvent(text="Yes?"), PromptEvent(text=None)]
        assert scheduler.prompt is None
        assert not scheduler.armed

    def test_rapid_shows_expire_once(self):
        async def scenario():
            scheduler, prompts, _ = _make()
            for text in ("one", "two", "three"):
                scheduler.show(text)
            await asyncio.sleep(0.05)
            return prompts

        prompts = _run(scenario())
        assert [event.text for event in prompts] == ["one", "two", "three", None]

    def test_flash_expires(self):
        async def scenario():
            scheduler, _, flashes = _make()
            scheduler.flash()
            assert scheduler.flashing
            scheduler.flash()
            await asyncio.sleep(0.05)
            return scheduler.flashing, flashes

        flashing, flashes = _run(scenario())
        assert flashing is False
        assert flashes[-1] == WakeFlashEvent(active=False)
        assert flashes.count(WakeFlashEvent(active=False)) == 1

    def test_dismiss_clears_immediately(self):
        async def scenario():
            scheduler, prompts, _ = _make()
            scheduler.show("Yes?")
            scheduler.dismiss()
            await asyncio.sleep(0.05)
            return prompts

        assert _run(scenario()) == [PromptEvent(text="Yes?"), PromptEvent(text=None)]

    def test_close_cancels_pending_expiry(self):
        async def scenario():
            scheduler, prompts, flashes = _make()
            scheduler.show("Yes?")
            scheduler.flash()
            scheduler.close()
            assert not scheduler.armed
            await asyncio.sleep(0.05)
            return prompts, flashes

        prompts, flashes = _run(scenario())
        assert prompts == [PromptEvent(text="Yes?")]
        assert flashes == [WakeFlashEvent(active=True)]
