"""
Async client for OpenStreetMap Nominatim.
Forward search (free text -> candidates) and reverse geocoding (point -> address).
"""

import asyncio
import logging
import time
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from core.config import settings
from .errors import MalformedResponse, NetworkFailure
from .models import AddressParts, SearchResult

logger = logging.getLogger(__name__)

FALLBACK_USER_AGENT = "location-picker/1.0"

_search_results_adapter = TypeAdapter(List[SearchResult])


class NominatimClient:
    """Client for the Nominatim search and reverse endpoints."""

    def __init__(
        self,
        base_url: str = settings.NOMINATIM_BASE_URL,
        timeout: float = settings.GEOCODING_TIMEOUT,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        country_codes: str = settings.SEARCH_COUNTRY_CODES,
        limit: int = settings.SEARCH_RESULT_LIMIT,
        min_interval: float = settings.NOMINATIM_MIN_INTERVAL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Nominatim client.

        Args:
            base_url: Nominatim server root
            timeout: Request timeout in seconds
            user_agent: Identifying User-Agent (Nominatim usage policy requires one)
            referer: Optional Referer header
            country_codes: Comma-separated ISO codes to scope forward search
            limit: Maximum number of search candidates
            min_interval: Minimum seconds between outbound requests
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.country_codes = country_codes
        self.limit = limit
        self.min_interval = min_interval

        user_agent = user_agent or settings.NOMINATIM_USER_AGENT
        if not user_agent:
            logger.warning(
                "NOMINATIM_USER_AGENT not set; using fallback UA. "
                "This may violate Nominatim usage policy."
            )
            user_agent = FALLBACK_USER_AGENT

        headers = {"User-Agent": user_agent}
        referer = referer or settings.NOMINATIM_REFERER
        if referer:
            headers["Referer"] = referer

        self.client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)
        self._throttle_lock = asyncio.Lock()
        self._last_request_ts = 0.0

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def _throttled_get(self, path: str, params: dict):
        """GET with a simple client-wide rate limit, returning decoded JSON."""
        async with self._throttle_lock:
            delta = time.monotonic() - self._last_request_ts
            if delta < self.min_interval:
                await asyncio.sleep(self.min_interval - delta)
            self._last_request_ts = time.monotonic()

        try:
            response = await self.client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkFailure(f"Nominatim {path} request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(f"Nominatim {path} returned invalid JSON") from e

    async def search(self, query: str) -> List[SearchResult]:
        """
        Forward geocode free text.

        Args:
            query: Text to search for

        Returns:
            Up to `limit` candidates in provider order

        Raises:
            NetworkFailure, MalformedResponse
        """
        params = {
            "format": "json",
            "q": query,
            "countrycodes": self.country_codes,
            "limit": str(self.limit),
            "addressdetails": "1",
        }
        data = await self._throttled_get("/search", params)

        try:
            results = _search_results_adapter.validate_python(data)
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected search payload for '{query}': {e}") from e

        logger.debug(f"Nominatim search '{query}' returned {len(results)} results")
        return results[:self.limit]

    async def reverse(self, latitude: float, longitude: float) -> AddressParts:
        """
        Reverse geocode a point.

        Args:
            latitude: Latitude in decimal degrees
            longitude: Longitude in decimal degrees

        Returns:
            AddressParts for the point

        Raises:
            NetworkFailure, MalformedResponse
        """
        params = {
            "format": "json",
            "lat": str(latitude),
            "lon": str(longitude),
            "addressdetails": "1",
        }
        data = await self._throttled_get("/reverse", params)

        if not isinstance(data, dict):
            raise MalformedResponse("Reverse payload is not an object")
        if "error" in data:
            raise MalformedResponse(f"Nominatim reverse error: {data['error']}")

        address = data.get("address")
        if not isinstance(address, dict):
            raise MalformedResponse(f"No address for {latitude},{longitude}")

        try:
            return AddressParts.model_validate(address)
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected address payload: {e}") from e


# Global client instance
_nominatim_client: Optional[NominatimClient] = None


def get_nominatim_client() -> NominatimClient:
    """Get or create the global Nominatim client instance."""
    global _nominatim_client

    if _nominatim_client is None:
        _nominatim_client = NominatimClient()

    return _nominatim_client


async def close_nominatim_client():
    """Close the global Nominatim client."""
    global _nominatim_client

    if _nominatim_client is not None:
        await _nominatim_client.close()
        _nominatim_client = None
