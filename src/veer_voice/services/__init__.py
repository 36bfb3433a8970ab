"""Voice services - wake detection, listening session, speech output, prompts."""

from .ephemeral_prompt import EphemeralPrompt, EphemeralPromptScheduler
from .listening_session import ListeningSessionController
from .speech_output import ChatMessage, SpeechOutputController, SpokenMessageLedger
from .state_machine import Phase, SessionState, StateMachine
from .wake_detector import WakeWordDetector

__all__ = [
    "ChatMessage",
    "EphemeralPrompt",
    "EphemeralPromptScheduler",
    "ListeningSessionController",
    "Phase",
    "SessionState",
    "SpeechOutputController",
    "SpokenMessageLedger",
    "StateMachine",
    "WakeWordDetector",
]
