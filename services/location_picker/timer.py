"""Cancellable one-shot timer on the running asyncio loop"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CancellableTimer:
    """
    Arm / cancel / fire-once timer.

    At most one scheduled call exists at any time: arming always cancels the
    previous schedule first. Each arm fires the callback at most once.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        """(Re)start the countdown. Must be called from the event loop."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Cancel the pending call. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self) -> None:
        self._handle = None
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Timer callback failed: {e}", exc_info=True)
