"""Single-slot cancellable timers on the asyncio event loop."""

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class TimerSlot:
    """Holds at most one pending timer.

    Arming a slot cancels whatever was armed before, so only the most
    recent expiry can ever fire.
    """

    def __init__(self, name: str, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.name = name
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, delay: float, callback: Callable[..., Any], *args: Any) -> bool:
        """Schedule ``callback(*args)`` after ``delay`` seconds, replacing any pending one.

        Returns:
            False if there is no event loop to schedule on
        """
        self.cancel()
        try:
            loop = self._loop or asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Timer '{self.name}' not armed: no running event loop")
            return False
        self._handle = loop.call_later(delay, self._fire, callback, args)
        logger.debug(f"Timer '{self.name}' armed for {delay:.3f}s")
        return True

    def cancel(self) -> bool:
        """Cancel the pending timer.

        Returns:
            True if a timer was pending, False otherwise
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        logger.debug(f"Timer '{self.name}' cancelled")
        return True

    def _fire(self, callback: Callable[..., Any], args: tuple):
        self._handle = None
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in timer '{self.name}' callback: {e}", exc_info=True)
