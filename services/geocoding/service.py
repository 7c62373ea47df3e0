"""Pincode lookup service using Google Maps API"""

import asyncio
import logging
import os
from typing import List

from geopy.exc import GeopyError
from geopy.geocoders import GoogleV3

from .errors import MalformedResponse, NetworkFailure
from .models import Coordinates, PincodeSuggestion

logger = logging.getLogger(__name__)


class PincodeGeocodingService:
    """
    Resolves (partial) postal codes to candidate places using Google Maps API
    """

    def __init__(
        self,
        google_api_key: str | None = None,
        timeout: int = 10,
        country: str = "India",
    ):
        """
        Initialize pincode geocoding service

        Args:
            google_api_key: Google Maps API key (or set GOOGLE_MAPS_API_KEY env var)
            timeout: Request timeout in seconds
            country: Country name appended to every pincode query
        """
        self.timeout = timeout
        self.country = country

        api_key = google_api_key or os.getenv("GOOGLE_MAPS_API_KEY")
        if not api_key:
            raise ValueError(
                "Google Maps API key required. Set GOOGLE_MAPS_API_KEY "
                "environment variable or pass google_api_key parameter"
            )
        self.geocoder = GoogleV3(api_key=api_key, timeout=timeout)
        self.provider = "google"

    async def lookup(self, pincode: str) -> List[PincodeSuggestion]:
        """
        Find places matching a pincode (or its prefix)

        geopy is synchronous, so the request runs in a worker thread.

        Raises:
            NetworkFailure: Google rejected the request or timed out
            MalformedResponse: a result could not be parsed
        """
        query = f"{pincode}, {self.country}"
        try:
            locations = await asyncio.to_thread(
                self.geocoder.geocode, query, exactly_one=False, timeout=self.timeout
            )
        except GeopyError as e:
            raise NetworkFailure(f"Pincode lookup failed for {pincode}: {e}") from e

        if not locations:
            return []

        return [self._parse_google_result(location) for location in locations]

    def _parse_google_result(self, location) -> PincodeSuggestion:
        """Map Google address components onto pincode/place/district/state"""
        raw = location.raw
        try:
            formatted_address = raw.get("formatted_address") or location.address
            place = ""
            district = ""
            state = ""
            postal_code = ""

            for component in raw.get("address_components", []):
                types = component.get("types", [])
                if "postal_code" in types:
                    postal_code = component["long_name"]
                if "locality" in types or "sublocality" in types:
                    place = component["long_name"]
                if "administrative_area_level_3" in types:
                    if not district:
                        district = component["long_name"]
                if "administrative_area_level_2" in types:
                    district = component["long_name"]
                if "administrative_area_level_1" in types:
                    state = component["long_name"]

            return PincodeSuggestion(
                formatted_address=formatted_address,
                place=place or formatted_address.split(",")[0],
                district=district or state,
                state=state,
                pincode=postal_code,
                coordinates=Coordinates(
                    latitude=location.latitude,
                    longitude=location.longitude,
                ),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Unexpected Google geocoding result: {e}") from e
