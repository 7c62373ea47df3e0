import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Settings:
    # Nominatim (forward search + reverse geocoding)
    NOMINATIM_BASE_URL: str = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
    NOMINATIM_USER_AGENT: str = os.getenv("NOMINATIM_USER_AGENT", "")
    NOMINATIM_REFERER: str = os.getenv("NOMINATIM_REFERER", "")
    NOMINATIM_MIN_INTERVAL: float = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.0"))
    GEOCODING_TIMEOUT: float = float(os.getenv("GEOCODING_TIMEOUT", "10"))

    # Search behaviour
    SEARCH_COUNTRY_CODES: str = os.getenv("SEARCH_COUNTRY_CODES", "in")
    SEARCH_RESULT_LIMIT: int = int(os.getenv("SEARCH_RESULT_LIMIT", "5"))
    SEARCH_DEBOUNCE_SECONDS: float = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.5"))
    SEARCH_MIN_QUERY_LENGTH: int = int(os.getenv("SEARCH_MIN_QUERY_LENGTH", "3"))

    # Google Maps API (pincode lookup)
    GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    PINCODE_COUNTRY: str = os.getenv("PINCODE_COUNTRY", "India")

    # Map view before anything is selected (centre of India)
    DEFAULT_MAP_LAT: float = float(os.getenv("DEFAULT_MAP_LAT", "20.5937"))
    DEFAULT_MAP_LON: float = float(os.getenv("DEFAULT_MAP_LON", "78.9629"))

    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
