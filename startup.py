"""
Startup script for deployment
Handles:
- Configuration sanity checks (Nominatim usage policy, Google key)
- Uvicorn server launch
"""

import os
import sys

from core.config import settings


def check_configuration() -> bool:
    """
    Report configuration problems before the server starts.

    Returns True when every optional feature is configured.
    """
    complete = True

    if not settings.NOMINATIM_USER_AGENT:
        print("⚠️  WARNING: NOMINATIM_USER_AGENT not set")
        print("⚠️  Nominatim requires an identifying User-Agent; a generic fallback will be used")
        complete = False
    else:
        print(f"✓ Nominatim User-Agent: {settings.NOMINATIM_USER_AGENT}")

    if not settings.GOOGLE_MAPS_API_KEY:
        print("⚠️  WARNING: GOOGLE_MAPS_API_KEY not set")
        print("⚠️  Pincode lookup (/geocoding/pincode, /ws/pincode) will be unavailable!")
        complete = False
    else:
        print("✓ Google Maps API key configured")

    print(f"✓ Search debounce: {settings.SEARCH_DEBOUNCE_SECONDS}s, "
          f"min query length: {settings.SEARCH_MIN_QUERY_LENGTH}, "
          f"country: {settings.SEARCH_COUNTRY_CODES}")
    return complete


def main():
    """Main startup sequence"""
    print("=" * 60)
    print("🚀 Location Picker API - Startup")
    print("=" * 60)

    # Step 1: Check configuration
    print("\n[1/2] Checking configuration...")
    if check_configuration():
        print("✓ All features configured")
    else:
        print("⚠️  Starting with reduced features (see warnings above)")

    # Step 2: Launch uvicorn
    print("\n[2/2] Starting uvicorn server...")
    print("=" * 60)

    port = int(os.getenv("PORT", "8000"))

    # Import and run uvicorn
    import uvicorn

    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=port,
            log_level=settings.LOG_LEVEL.lower(),
            access_log=True
        )
    except KeyboardInterrupt:
        print("\n⏹️  Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
