"""Geocoding endpoints: search, reverse and pincode lookup"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from core.config import settings
from services.geocoding import (
    GeocodingError,
    Location,
    NominatimClient,
    PincodeGeocodingService,
    PincodeSuggestion,
    SearchResult,
    get_nominatim_client,
)
from services.location_picker import location_fields, sanitize_pincode

router = APIRouter(prefix="/geocoding", tags=["geocoding"])
logger = logging.getLogger(__name__)

# Global pincode service (created on first use)
_pincode_service = None


def get_geocoder() -> NominatimClient:
    """Get the shared Nominatim client"""
    return get_nominatim_client()


def get_pincode_service() -> PincodeGeocodingService:
    """Get pincode geocoding service instance"""
    global _pincode_service
    if _pincode_service is None:
        if not settings.GOOGLE_MAPS_API_KEY:
            raise HTTPException(
                status_code=503,
                detail="Pincode lookup not configured. GOOGLE_MAPS_API_KEY required."
            )
        _pincode_service = PincodeGeocodingService(
            google_api_key=settings.GOOGLE_MAPS_API_KEY,
            timeout=int(settings.GEOCODING_TIMEOUT),
            country=settings.PINCODE_COUNTRY,
        )
    return _pincode_service


def _provider_error(e: GeocodingError) -> HTTPException:
    logger.warning(f"Geocoding provider error: {e}")
    return HTTPException(status_code=502, detail=f"Geocoding provider error: {e}")


@router.get("/search", response_model=List[SearchResult])
async def search_locations(
    q: str = Query(..., description="Free-text place search"),
    geocoder: NominatimClient = Depends(get_geocoder),
):
    """
    Forward geocoding: free text -> up to 5 candidates in the configured country

    Example: /geocoding/search?q=Mumbai
    """
    query = q.strip()
    if len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
        raise HTTPException(
            status_code=422,
            detail=f"Query must be at least {settings.SEARCH_MIN_QUERY_LENGTH} characters"
        )

    try:
        return await geocoder.search(query)
    except GeocodingError as e:
        raise _provider_error(e)


@router.get("/reverse", response_model=Location)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90, description="Latitude in decimal degrees"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude in decimal degrees"),
    geocoder: NominatimClient = Depends(get_geocoder),
):
    """
    Reverse geocoding: point -> Location with pincode/district/place/state

    Example: /geocoding/reverse?lat=19.076&lon=72.8777
    """
    try:
        address = await geocoder.reverse(lat, lon)
    except GeocodingError as e:
        raise _provider_error(e)

    location = Location(**location_fields(address))
    return location.with_coordinates(lat, lon)


@router.get("/pincode/{pincode}", response_model=List[PincodeSuggestion])
async def lookup_pincode(
    pincode: str,
    service: PincodeGeocodingService = Depends(get_pincode_service),
):
    """
    Pincode lookup: (partial) postal code -> candidate places

    Example: /geocoding/pincode/400001
    """
    digits = sanitize_pincode(pincode)
    if len(digits) < settings.SEARCH_MIN_QUERY_LENGTH:
        raise HTTPException(
            status_code=422,
            detail=f"Pincode must contain at least {settings.SEARCH_MIN_QUERY_LENGTH} digits"
        )

    try:
        return await service.lookup(digits)
    except GeocodingError as e:
        raise _provider_error(e)
