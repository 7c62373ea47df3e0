"""Exceptions for geocoding operations."""


class GeocodingError(Exception):
    """Base class for provider failures. Callers treat these as "no update"."""


class NetworkFailure(GeocodingError):
    """Raised when a provider call is rejected, times out or returns a non-2xx status."""


class MalformedResponse(GeocodingError):
    """Raised when a provider response is missing fields or cannot be decoded."""


class InvalidCoordinates(ValueError):
    """Raised when a selected result carries non-numeric or out-of-range coordinates."""
