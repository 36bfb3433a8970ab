"""List the voices offered by the speech output."""

import asyncio

from veer_voice.core import ConsoleSpeech


def main() -> bool:
    """Print available voices.

    Returns:
        True if successful, False otherwise
    """
    voices = asyncio.run(ConsoleSpeech().get_available_voices())

    print("=" * 60)
    print("AVAILABLE VOICES")
    print("=" * 60)
    if not voices:
        print("No voices found")
        return False

    for voice in voices:
        marker = " (default)" if voice.default else ""
        print(f"  {voice.name} - {voice.lang}{marker}")
    print("=" * 60)
    return True
