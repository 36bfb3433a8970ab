"""State machine for the voice interaction phase."""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from threading import RLock
from typing import Callable

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Voice interaction phases."""

    IDLE = auto()  # Nothing running
    WAKE_LISTENING = auto()  # Background wake listener running
    ACTIVE_LISTENING = auto()  # Foreground recognition session
    SPEAKING = auto()  # Speech output in progress


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the session controller's state."""

    phase: Phase
    transcript: str
    auto_send_pending: bool


class StateMachine:
    """Phase state machine with transition validation and listeners."""

    def __init__(self):
        """Initialize state machine."""
        self._state = Phase.IDLE
        self._lock = RLock()
        self._listeners: list[Callable[[Phase, Phase], None]] = []

    @property
    def state(self) -> Phase:
        """Get current phase."""
        with self._lock:
            return self._state

    def transition(self, new_state: Phase) -> bool:
        """Transition to a new phase.

        Args:
            new_state: Target phase

        Returns:
            True if transition was successful, False otherwise
        """
        with self._lock:
            old_state = self._state

            if old_state is new_state:
                return True

            if not self._is_valid_transition(old_state, new_state):
                logger.warning(f"Invalid state transition: {old_state.name} -> {new_state.name}")
                return False

            self._state = new_state
            logger.info(f"State transition: {old_state.name} -> {new_state.name}")

        self._notify(old_state, new_state)
        return True

    def _is_valid_transition(self, from_state: Phase, to_state: Phase) -> bool:
        """Check if phase transition is valid.

        Valid transitions:
        - IDLE/WAKE_LISTENING -> ACTIVE_LISTENING (mic toggle or wake detection)
        - IDLE <-> WAKE_LISTENING (wake listener started/stopped)
        - IDLE/WAKE_LISTENING -> SPEAKING (speech output started)
        - ACTIVE_LISTENING -> IDLE/WAKE_LISTENING (session ended)
        - SPEAKING -> any (speech output finished or session started)
        """
        valid_transitions = {
            Phase.IDLE: [Phase.WAKE_LISTENING, Phase.ACTIVE_LISTENING, Phase.SPEAKING],
            Phase.WAKE_LISTENING: [Phase.IDLE, Phase.ACTIVE_LISTENING, Phase.SPEAKING],
            Phase.ACTIVE_LISTENING: [Phase.IDLE, Phase.WAKE_LISTENING],
            Phase.SPEAKING: [Phase.IDLE, Phase.WAKE_LISTENING, Phase.ACTIVE_LISTENING],
        }

        return to_state in valid_transitions.get(from_state, [])

    def add_listener(self, listener: Callable[[Phase, Phase], None]):
        """Register a callback invoked with (old, new) on every transition."""
        self._listeners.append(listener)

    def _notify(self, from_state: Phase, to_state: Phase):
        for listener in list(self._listeners):
            try:
                listener(from_state, to_state)
            except Exception as e:
                logger.error(
                    f"Error notifying listener for {from_state.name} -> {to_state.name}: {e}"
                )
