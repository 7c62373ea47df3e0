"""
Map-based location picker session.

Reconciles the three input signals (search text, map clicks, manual field
edits) into one LocationSelection. The debouncer and the resolver never talk
to each other; this class owns both and decides which one wins.
"""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel

from core.config import settings
from services.geocoding.models import Coordinates, Location
from .debouncer import SearchDebouncer
from .record import LocationSelection, SelectionError, SelectionState
from .resolver import LocationResolver

logger = logging.getLogger(__name__)

SELECTED_ZOOM = 15
OVERVIEW_ZOOM = 6


class ResultItem(BaseModel):
    index: int
    primary_name: str
    display_name: str


class PickerSnapshot(BaseModel):
    """Everything a client needs to render the picker"""
    state: SelectionState
    location: Optional[Location] = None
    position: Optional[Coordinates] = None
    map_center: Coordinates
    zoom: int
    query: str
    searching: bool
    results: List[ResultItem]


class LocationPicker:
    """One editing session of the location picker."""

    def __init__(
        self,
        geocoder,
        initial_location: Optional[Location] = None,
        on_confirm: Optional[Callable[[Location], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
        debounce_interval: float = settings.SEARCH_DEBOUNCE_SECONDS,
        min_query_length: int = settings.SEARCH_MIN_QUERY_LENGTH,
        default_center: Optional[Coordinates] = None,
    ):
        """
        Args:
            geocoder: Object with async `search(query)` and `reverse(lat, lng)`
            initial_location: Location being edited, if any
            on_confirm: Receives the confirmed Location
            on_close: Called once when the session ends (confirm or cancel)
        """
        self.on_confirm = on_confirm
        self.on_close = on_close
        self.default_center = default_center or Coordinates(
            latitude=settings.DEFAULT_MAP_LAT, longitude=settings.DEFAULT_MAP_LON
        )
        self.closed = False
        self._listeners: List[Callable[[PickerSnapshot], None]] = []

        self.selection = LocationSelection(initial_location)
        self.search = SearchDebouncer(
            geocoder.search,
            on_change=self._changed,
            interval=debounce_interval,
            min_length=min_query_length,
        )
        self.resolver = LocationResolver(geocoder.reverse, self.selection, on_change=self._changed)

    def subscribe(self, listener: Callable[[PickerSnapshot], None]) -> Callable[[], None]:
        """Register a state listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> PickerSnapshot:
        position = self.selection.position
        return PickerSnapshot(
            state=self.selection.state,
            location=self.selection.location,
            position=position,
            map_center=position or self.default_center,
            zoom=SELECTED_ZOOM if position else OVERVIEW_ZOOM,
            query=self.search.text,
            searching=self.search.searching,
            results=[
                ResultItem(index=i, primary_name=r.primary_name, display_name=r.display_name)
                for i, r in enumerate(self.search.results)
            ],
        )

    # --- input signals ---

    def set_query(self, text: str) -> None:
        if not self._accepting("set_query"):
            return
        self.search.update(text)

    def click_map(self, latitude: float, longitude: float) -> Optional[Coordinates]:
        if not self._accepting("click_map"):
            return None
        return self.resolver.resolve_from_point(latitude, longitude)

    def select_result(self, index: int) -> Optional[Location]:
        """
        Choose one of the current search results.

        Raises:
            SelectionError: no result at that index
            InvalidCoordinates: the result's coordinates are unusable (state kept)
        """
        if not self._accepting("select_result"):
            return None
        if not 0 <= index < len(self.search.results):
            raise SelectionError(f"No search result at index {index}")

        location = self.resolver.resolve_from_search_result(self.search.results[index])
        self.search.clear()
        return location

    def edit_field(self, field: str, value: str) -> Optional[Location]:
        """Manual edit of one text field; wins over any reverse geocode still in flight."""
        if not self._accepting("edit_field"):
            return None
        self.resolver.invalidate()
        location = self.selection.edit(field, value)
        self._changed()
        return location

    # --- outbound ---

    def confirm(self) -> Optional[Location]:
        """
        Hand the current Location to on_confirm and end the session.

        Raises:
            SelectionError: nothing has been selected yet
        """
        if not self._accepting("confirm"):
            return None
        if self.selection.location is None:
            raise SelectionError("Nothing selected to confirm")

        self.resolver.invalidate()
        self.search.clear()
        location = self.selection.confirm()
        logger.info(
            f"Location confirmed: {location.place or '-'}, {location.district or '-'}, "
            f"{location.state or '-'} {location.pincode}"
        )
        self._changed()
        if self.on_confirm is not None:
            self.on_confirm(location)
        self._finish()
        return location

    def cancel(self) -> None:
        """Clear query, results and selection back to EMPTY and end the session."""
        if not self._accepting("cancel"):
            return
        self.resolver.invalidate()
        self.search.clear()
        self.selection.clear()
        self._changed()
        self._finish()

    async def wait_idle(self) -> None:
        """Wait for in-flight searches and reverse geocodes to settle."""
        await self.search.wait_idle()
        await self.resolver.wait_idle()

    async def aclose(self) -> None:
        """Teardown: cancel timers and in-flight requests."""
        self.closed = True
        await self.search.aclose()
        await self.resolver.aclose()

    def _accepting(self, action: str) -> bool:
        if self.closed:
            logger.warning(f"Ignoring {action} on a closed location picker")
            return False
        return True

    def _finish(self) -> None:
        self.closed = True
        if self.on_close is not None:
            self.on_close()

    def _changed(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Picker listener failed: {e}", exc_info=True)
