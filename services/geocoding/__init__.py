"""Geocoding service package"""

from .errors import GeocodingError, InvalidCoordinates, MalformedResponse, NetworkFailure
from .models import AddressParts, Coordinates, Location, PincodeSuggestion, SearchResult
from .nominatim import NominatimClient, close_nominatim_client, get_nominatim_client
from .service import PincodeGeocodingService

__all__ = [
    "AddressParts",
    "Coordinates",
    "Location",
    "PincodeSuggestion",
    "SearchResult",
    "GeocodingError",
    "InvalidCoordinates",
    "MalformedResponse",
    "NetworkFailure",
    "NominatimClient",
    "PincodeGeocodingService",
    "close_nominatim_client",
    "get_nominatim_client",
]
