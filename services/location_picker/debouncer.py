"""Debounced search over a rapidly changing text input"""

import logging
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from core.config import settings
from services.geocoding.errors import GeocodingError
from .sequencing import ResolutionSequencer
from .timer import CancellableTimer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchDebouncer(Generic[T]):
    """
    Turns keystrokes into at most one search per quiet period.

    Holds the query state: current text, result list and the searching flag.
    `on_change` is called after each change to that state.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[List[T]]],
        on_change: Optional[Callable[[], None]] = None,
        interval: float = settings.SEARCH_DEBOUNCE_SECONDS,
        min_length: int = settings.SEARCH_MIN_QUERY_LENGTH,
        name: str = "search",
    ):
        self.search = search
        self.on_change = on_change
        self.min_length = min_length

        self.text = ""
        self.results: List[T] = []
        self.searching = False

        self._timer = CancellableTimer(interval, self._fire)
        self._requests: ResolutionSequencer[List[T]] = ResolutionSequencer(name)

    @property
    def timer_armed(self) -> bool:
        return self._timer.armed

    def update(self, text: str) -> None:
        """Record a new input value and (re)schedule the search."""
        self.text = text
        self._timer.cancel()

        if len(text.strip()) < self.min_length:
            # a late response must not repopulate the list for a short query
            self._requests.invalidate()
            self.results = []
            self.searching = False
        else:
            self._timer.arm()
        self._notify()

    def clear(self) -> None:
        """Drop the query, the results and anything pending or in flight."""
        self._timer.cancel()
        self._requests.invalidate()
        self.text = ""
        self.results = []
        self.searching = False
        self._notify()

    def accept(self, text: str) -> None:
        """
        Take a chosen value as the text without searching for it.

        Any pending timer or in-flight search is dropped; the current results
        are kept. Listeners are not notified, the caller reports the change.
        """
        self._timer.cancel()
        self._requests.invalidate()
        self.text = text
        self.searching = False

    async def aclose(self) -> None:
        """Teardown: nothing may fire or land after this returns."""
        self._timer.cancel()
        await self._requests.aclose()
        self.searching = False

    async def wait_idle(self) -> None:
        """Wait for in-flight searches to complete (no-op if none)."""
        await self._requests.wait()

    def _fire(self) -> None:
        # read the text now, not when the timer was armed
        query = self.text.strip()
        if len(query) < self.min_length:
            return

        logger.debug(f"Debounced search fired for '{query}'")
        self.searching = True
        self._requests.start(
            lambda: self.search(query),
            self._on_results,
            self._on_error,
        )
        self._notify()

    def _on_results(self, results: List[T]) -> None:
        self.results = list(results)
        self.searching = False
        self._notify()

    def _on_error(self, error: Exception) -> None:
        if isinstance(error, GeocodingError):
            logger.warning(f"Search failed for '{self.text.strip()}': {error}")
        else:
            logger.error(f"Unexpected search error for '{self.text.strip()}': {error}", exc_info=True)
        self.results = []
        self.searching = False
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
