"""
Latest-wins async resolution.

Every request gets a monotonically increasing sequence number when it is
issued. A completion is applied only if no newer request has been issued
since; anything else is a stale response and is dropped. Superseded
in-flight tasks are cancelled as well, so a slow provider call does not keep
running for a result nobody will read.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolutionSequencer(Generic[T]):
    """
    Runs async resolutions so that only the most recently issued one can land.

    Attributes:
        issued: Sequence number of the latest request (or invalidation)
        last_applied: Sequence number of the last result handed to on_result,
            0 if none has landed yet
    """

    def __init__(self, name: str, cancel_superseded: bool = True):
        """
        Args:
            name: Label used in log messages
            cancel_superseded: Cancel the previous in-flight task when a new one is issued
        """
        self.name = name
        self.cancel_superseded = cancel_superseded
        self.issued = 0
        self.last_applied = 0
        self._current: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while the latest issued request has not completed"""
        return self._current is not None and not self._current.done()

    def is_current(self, seq: int) -> bool:
        return seq == self.issued

    def start(
        self,
        factory: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> int:
        """
        Issue a new resolution and return its sequence number.

        on_result / on_error run on the loop only if the request is still the
        latest one when it completes.
        """
        self.issued += 1
        seq = self.issued

        if self.cancel_superseded and self.pending:
            self._current.cancel()

        task = asyncio.create_task(self._run(seq, factory, on_result, on_error))
        self._current = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return seq

    def invalidate(self) -> None:
        """Make every outstanding request stale (and cancel it if configured to)."""
        self.issued += 1
        if self.cancel_superseded and self.pending:
            self._current.cancel()
        self._current = None

    async def _run(self, seq, factory, on_result, on_error) -> None:
        try:
            result = await factory()
        except asyncio.CancelledError:
            logger.debug(f"{self.name} #{seq} cancelled")
            raise
        except Exception as e:
            if not self.is_current(seq):
                logger.debug(f"{self.name} #{seq} failed after being superseded: {e}")
                return
            if on_error is None:
                logger.error(f"{self.name} #{seq} failed: {e}", exc_info=True)
                return
            on_error(e)
            return

        if not self.is_current(seq):
            logger.debug(f"Dropping stale {self.name} #{seq} (latest is #{self.issued})")
            return

        self.last_applied = seq
        on_result(result)

    async def wait(self) -> None:
        """Wait until every task started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Invalidate and cancel everything, then wait for the tasks to unwind."""
        self.invalidate()
        for task in list(self._tasks):
            task.cancel()
        await self.wait()
