"""Tests for core/timers.py - single-slot timer semantics."""

import asyncio

from veer_voice.core.timers import TimerSlot

from fakes import _run


def test_rearming_keeps_only_latest_callback():
    async def scenario():
        slot = TimerSlot("test")
        fired = []
        for i in range(5):
            slot.arm(0.01, fired.append, i)
        assert slot.armed
        await asyncio.sleep(0.05)
        return fired, slot.armed

    fired, armed = _run(scenario())
    assert fired == [4]
    assert armed is False


def test_cancel_prevents_firing():
    async def scenario():
        slot = TimerSlot("test")
        fired = []
        slot.arm(0.01, fired.append, "x")
        assert slot.cancel() is True
        assert slot.cancel() is False
        await asyncio.sleep(0.03)
        return fired

    assert _run(scenario()) == []


def test_callback_error_is_contained():
    async def scenario():
        slot = TimerSlot("test")

        def broken():
            raise RuntimeError("boom")

        slot.arm(0, broken)
        await asyncio.sleep(0.01)
        return slot.armed

    assert _run(scenario()) is False


def test_arm_without_running_loop_reports_failure():
    slot = TimerSlot("test")
    assert slot.arm(0.01, print) is False
    assert slot.armed is False
