"""Pincode input with debounced lookup and suggestion selection"""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel

from core.config import settings
from services.geocoding.models import Location, PincodeSuggestion
from .debouncer import SearchDebouncer
from .record import SelectionError

logger = logging.getLogger(__name__)

PINCODE_LENGTH = 6


def sanitize_pincode(raw: str) -> str:
    """Digits only, at most six of them"""
    return "".join(ch for ch in raw if ch.isdigit())[:PINCODE_LENGTH]


class PincodeSnapshot(BaseModel):
    value: str
    searching: bool
    show_suggestions: bool
    suggestions: List[PincodeSuggestion]


class PincodeInput:
    """
    Pincode field state. Lookups go through the same debouncer as the map
    search, so typing six digits costs one request instead of four.
    """

    def __init__(
        self,
        lookup,
        value: str = "",
        on_change: Optional[Callable[[PincodeSnapshot], None]] = None,
        on_location_data: Optional[Callable[[Location], None]] = None,
        debounce_interval: float = settings.SEARCH_DEBOUNCE_SECONDS,
        min_length: int = settings.SEARCH_MIN_QUERY_LENGTH,
    ):
        """
        Args:
            lookup: Object with async `lookup(pincode) -> list[PincodeSuggestion]`
            value: Initial field value
            on_change: Receives a snapshot after every state change
            on_location_data: Receives the Location built from a chosen suggestion
        """
        self.value = sanitize_pincode(value)
        self.on_change = on_change
        self.on_location_data = on_location_data
        self.min_length = min_length
        self.show_suggestions = False
        self.debouncer: SearchDebouncer[PincodeSuggestion] = SearchDebouncer(
            lookup.lookup,
            on_change=self._debouncer_changed,
            interval=debounce_interval,
            min_length=min_length,
            name="pincode lookup",
        )

    @property
    def suggestions(self) -> List[PincodeSuggestion]:
        return self.debouncer.results

    def snapshot(self) -> PincodeSnapshot:
        return PincodeSnapshot(
            value=self.value,
            searching=self.debouncer.searching,
            show_suggestions=self.show_suggestions and bool(self.suggestions),
            suggestions=list(self.suggestions),
        )

    def set_value(self, raw: str) -> str:
        """Sanitize and store the typed value; returns the stored value."""
        self.value = sanitize_pincode(raw)
        if len(self.value) < self.min_length:
            self.show_suggestions = False
        self.debouncer.update(self.value)
        return self.value

    def select(self, index: int) -> Location:
        """
        Use a suggestion. Its pincode (or the typed value when it has none)
        becomes the field value.

        Raises:
            SelectionError: no suggestion at that index
        """
        if not 0 <= index < len(self.suggestions):
            raise SelectionError(f"No pincode suggestion at index {index}")

        location = self.suggestions[index].to_location(self.value)
        # a lookup for the typed prefix must not reopen the list
        self.debouncer.accept(location.pincode)
        self.value = location.pincode
        self.show_suggestions = False
        self._notify()
        if self.on_location_data is not None:
            self.on_location_data(location)
        return location

    def focus(self) -> None:
        if len(self.value) >= self.min_length:
            self.show_suggestions = True
            self._notify()

    def blur(self) -> None:
        self.show_suggestions = False
        self._notify()

    async def wait_idle(self) -> None:
        await self.debouncer.wait_idle()

    async def aclose(self) -> None:
        await self.debouncer.aclose()

    def _debouncer_changed(self) -> None:
        # fresh results open the list, like the form does after a lookup
        if self.debouncer.results and not self.debouncer.searching:
            self.show_suggestions = True
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.snapshot())
