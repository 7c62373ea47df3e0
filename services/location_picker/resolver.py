"""
Location resolution: map clicks and chosen search results -> Location.

Field precedence (kept exactly, it mirrors how Nominatim names
administrative levels differently per country):
    pincode  <- postcode
    district <- state_district, county
    place    <- city, town, village, suburb
    state    <- state
"""

import logging
from typing import Awaitable, Callable, Dict, Optional

from services.geocoding.errors import GeocodingError
from services.geocoding.models import AddressParts, Coordinates, Location, SearchResult
from .record import LocationSelection
from .sequencing import ResolutionSequencer

logger = logging.getLogger(__name__)


def _first(*values: Optional[str]) -> str:
    for value in values:
        if value:
            return value
    return ""


def location_fields(address: AddressParts) -> Dict[str, str]:
    """Text fields of a Location derived from a provider address bag"""
    return {
        "pincode": _first(address.postcode),
        "district": _first(address.state_district, address.county),
        "place": _first(address.city, address.town, address.village, address.suburb),
        "state": _first(address.state),
    }


class LocationResolver:
    """Writes resolved locations into a LocationSelection."""

    def __init__(
        self,
        reverse: Callable[[float, float], Awaitable[AddressParts]],
        selection: LocationSelection,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.reverse = reverse
        self.selection = selection
        self.on_change = on_change
        self._requests: ResolutionSequencer[AddressParts] = ResolutionSequencer("reverse geocode")

    @property
    def pending(self) -> bool:
        return self._requests.pending

    def resolve_from_point(self, latitude: float, longitude: float) -> Coordinates:
        """
        Select a point and start reverse geocoding it.

        The point is applied immediately; text fields follow when (and if)
        the provider answers. Returns the selected coordinates.
        """
        point = self.selection.select_point(latitude, longitude)
        self._notify()

        self._requests.start(
            lambda: self.reverse(point.latitude, point.longitude),
            lambda address: self._apply_address(point, address),
            self._on_reverse_error,
        )
        return point

    def resolve_from_search_result(self, result: SearchResult) -> Location:
        """
        Build the Location for an already-fetched search result. No network call.

        Raises:
            InvalidCoordinates: lat/lon text is not usable; selection is left untouched
        """
        coordinates = result.parse_coordinates()

        # a reverse geocode for an earlier click must not land on top of this
        self._requests.invalidate()

        location = Location(coordinates=coordinates, **location_fields(result.address))
        self.selection.resolve(location)
        self._notify()
        return location

    def invalidate(self) -> None:
        """Drop any in-flight reverse geocode."""
        self._requests.invalidate()

    async def wait_idle(self) -> None:
        await self._requests.wait()

    async def aclose(self) -> None:
        await self._requests.aclose()

    def _apply_address(self, point: Coordinates, address: AddressParts) -> None:
        location = Location(coordinates=point, **location_fields(address))
        self.selection.resolve(location)
        logger.debug(f"Resolved {point.latitude},{point.longitude} -> {location.place or '(no place)'}")
        self._notify()

    def _on_reverse_error(self, error: Exception) -> None:
        if isinstance(error, GeocodingError):
            logger.warning(f"Reverse geocoding failed: {error}")
        else:
            logger.error(f"Unexpected reverse geocoding error: {error}", exc_info=True)
        self.selection.settle()
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
