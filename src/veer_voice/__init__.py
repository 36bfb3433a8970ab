"""VEER voice controller - wake word, dictation and speech output coordination."""

from .controller import VoiceInteractionController

__version__ = "0.1.0"

__all__ = ["VoiceInteractionController", "__version__"]
