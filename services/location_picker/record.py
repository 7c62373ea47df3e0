"""Selection state shared by the search and resolution paths"""

from enum import Enum
from typing import Optional

from services.geocoding.models import Coordinates, Location

EDITABLE_FIELDS = ("pincode", "state", "district", "place")


class SelectionState(str, Enum):
    EMPTY = "empty"
    POINT_ONLY = "point_only"
    RESOLVED = "resolved"
    CONFIRMED = "confirmed"


class SelectionError(Exception):
    """Raised on an invalid selection transition (e.g. confirming nothing)."""


class LocationSelection:
    """
    The one mutable record of what the user has picked.

    `location` is replaced wholesale on every change, never patched in place.
    """

    def __init__(self, initial: Optional[Location] = None):
        self.location: Optional[Location] = initial
        self.position: Optional[Coordinates] = None
        self.state = SelectionState.EMPTY

        if initial is not None:
            if not initial.coordinates.is_origin:
                self.position = initial.coordinates
            self.state = SelectionState.RESOLVED

    def select_point(self, latitude: float, longitude: float) -> Coordinates:
        """Move the selection point. Text fields are kept until a resolution replaces them."""
        self._ensure_open()
        base = self.location or Location()
        self.location = base.with_coordinates(latitude, longitude)
        self.position = self.location.coordinates
        self.state = SelectionState.POINT_ONLY
        return self.position

    def resolve(self, location: Location) -> None:
        self._ensure_open()
        self.location = location
        self.position = location.coordinates
        self.state = SelectionState.RESOLVED

    def settle(self) -> None:
        """A resolution attempt ended without new fields; keep what we have."""
        self._ensure_open()
        if self.state == SelectionState.POINT_ONLY:
            self.state = SelectionState.RESOLVED

    def edit(self, field: str, value: str) -> Location:
        self._ensure_open()
        if field not in EDITABLE_FIELDS:
            raise SelectionError(f"Field '{field}' is not editable")
        base = self.location or Location()
        self.location = base.model_copy(update={field: value})
        self.state = SelectionState.RESOLVED
        return self.location

    def confirm(self) -> Location:
        if self.location is None:
            raise SelectionError("Nothing selected to confirm")
        self._ensure_open()
        self.state = SelectionState.CONFIRMED
        return self.location

    def clear(self) -> None:
        self.location = None
        self.position = None
        self.state = SelectionState.EMPTY

    def _ensure_open(self) -> None:
        if self.state == SelectionState.CONFIRMED:
            raise SelectionError("Selection already confirmed")
