"""Tests for core/wake_matcher.py."""

import pytest

from veer_voice.core.wake_matcher import WakePhraseMatcher


@pytest.mark.parametrize(
    "transcript",
    [
        "hey veer",
        "Hey Veer, what's the weather",
        "so um HEY VEER",
        "heyveer open notes",
        "hey beer what time is it",
        "hi vera",
    ],
)
def test_matches_hey_veer_variants(transcript):
    assert WakePhraseMatcher("hey veer").matches(transcript)


@pytest.mark.parametrize("transcript", ["", "   ", "what's the weather", "hey there", "veer"])
def test_rejects_other_speech(transcript):
    assert not WakePhraseMatcher("hey veer").matches(transcript)


def test_fuzzy_variants_only_for_known_names():
    matcher = WakePhraseMatcher("ok computer")
    assert matcher.matches("OK Computer play music")
    assert matcher.matches("okcomputer")
    assert not matcher.matches("hey beer")


def test_trailing_text():
    matcher = WakePhraseMatcher("hey veer")
    assert matcher.trailing_text("hey veer, what's the weather") == "what's the weather"
    assert matcher.trailing_text("Hey Veer") == ""
    assert matcher.trailing_text("nothing here") == ""
