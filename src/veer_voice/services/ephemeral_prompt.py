"""Short-lived acknowledgement state shown after a wake detection."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..core.event_bus import EPHEMERAL_PROMPT, WAKE_FLASH, EventBus, PromptEvent, WakeFlashEvent
from ..core.timers import TimerSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EphemeralPrompt:
    text: str
    expires_at: float  # event loop time


class EphemeralPromptScheduler:
    """Holds the visible wake prompt and the wake flash, each with its own timer slot."""

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        prompt_ttl: float = 3.0,
        flash_ttl: float = 0.9,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.event_bus = event_bus
        self.prompt_ttl = prompt_ttl
        self.flash_ttl = flash_ttl
        self._loop = loop

        self.prompt: Optional[EphemeralPrompt] = None
        self.flashing = False
        self._prompt_timer = TimerSlot("ephemeral-prompt", loop)
        self._flash_timer = TimerSlot("wake-flash", loop)

    @property
    def armed(self) -> bool:
        return self._prompt_timer.armed or self._flash_timer.armed

    def show(self, text: str) -> EphemeralPrompt:
        """Show ``text``, replacing any prompt still visible."""
        loop = self._loop or asyncio.get_running_loop()
        self.prompt = EphemeralPrompt(text=text, expires_at=loop.time() + self.prompt_ttl)
        self._prompt_timer.arm(self.prompt_ttl, self._expire_prompt)
        self._publish(EPHEMERAL_PROMPT, PromptEvent(text=text))
        return self.prompt

    def flash(self):
        if not self._flash_timer.arm(self.flash_ttl, self._expire_flash):
            return
        self.flashing = True
        self._publish(WAKE_FLASH, WakeFlashEvent(active=True))

    def dismiss(self):
        self._prompt_timer.cancel()
        if self.prompt is not None:
            self._expire_prompt()

    def close(self):
        """Cancel both timers and clear the visible state."""
        self._prompt_timer.cancel()
        self._flash_timer.cancel()
        self.prompt = None
        self.flashing = False

    def _expire_prompt(self):
        self.prompt = None
        self._publish(EPHEMERAL_PROMPT, PromptEvent(text=None))

    def _expire_flash(self):
        self.flashing = False
        self._publish(WAKE_FLASH, WakeFlashEvent(active=False))

    def _publish(self, topic: str, event):
        if self.event_bus:
            self.event_bus.publish(topic, event)
