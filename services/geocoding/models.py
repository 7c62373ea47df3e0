"""Pydantic models for geocoding"""

import math

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidCoordinates


class Coordinates(BaseModel):
    """Geographic coordinates"""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(0.0, ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(0.0, ge=-180, le=180, description="Longitude in decimal degrees")

    @field_validator("latitude", "longitude")
    @classmethod
    def round_precision(cls, v: float) -> float:
        """Round to 6 decimal places (~11cm precision)"""
        return round(v, 6)

    @property
    def is_origin(self) -> bool:
        return self.latitude == 0 and self.longitude == 0


class AddressParts(BaseModel):
    """Address component bag as returned by Nominatim (search and reverse)"""

    model_config = ConfigDict(extra="ignore")

    postcode: str | None = None
    state: str | None = None
    state_district: str | None = None
    county: str | None = None
    city: str | None = None
    town: str | None = None
    village: str | None = None
    suburb: str | None = None


class Location(BaseModel):
    """The canonical selected place.

    Immutable: every update produces a new record so a resolution either
    replaces all derived fields or none of them.
    """

    model_config = ConfigDict(frozen=True)

    pincode: str = ""
    state: str = ""
    district: str = ""
    place: str = ""
    coordinates: Coordinates = Field(default_factory=Coordinates)

    def with_coordinates(self, latitude: float, longitude: float) -> "Location":
        return self.model_copy(
            update={"coordinates": Coordinates(latitude=latitude, longitude=longitude)}
        )


class SearchResult(BaseModel):
    """One forward-geocoding candidate. lat/lon stay as text until selected."""

    display_name: str
    lat: str
    lon: str
    address: AddressParts = Field(default_factory=AddressParts)

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def numbers_as_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def primary_name(self) -> str:
        """First segment of the display name, used as the list heading"""
        return self.display_name.split(",")[0].strip()

    def parse_coordinates(self) -> Coordinates:
        """
        Parse lat/lon text into Coordinates.

        Raises:
            InvalidCoordinates: text is not a finite number or is out of range
        """
        try:
            latitude = float(self.lat)
            longitude = float(self.lon)
        except (TypeError, ValueError) as e:
            raise InvalidCoordinates(
                f"Search result '{self.display_name}' has non-numeric coordinates "
                f"(lat={self.lat!r}, lon={self.lon!r})"
            ) from e

        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            raise InvalidCoordinates(
                f"Search result '{self.display_name}' has non-finite coordinates"
            )

        try:
            return Coordinates(latitude=latitude, longitude=longitude)
        except ValidationError as e:
            raise InvalidCoordinates(
                f"Search result '{self.display_name}' has out-of-range coordinates "
                f"({latitude}, {longitude})"
            ) from e


class PincodeSuggestion(BaseModel):
    """A pincode lookup candidate with its administrative names already mapped"""

    formatted_address: str
    pincode: str = ""
    place: str = ""
    district: str = ""
    state: str = ""
    coordinates: Coordinates

    def to_location(self, typed_pincode: str = "") -> Location:
        """Build a Location; an empty suggestion pincode falls back to what was typed"""
        return Location(
            pincode=self.pincode or typed_pincode,
            state=self.state,
            district=self.district,
            place=self.place,
            coordinates=self.coordinates,
        )
