"""Configuration constants for location resolution and geodata queries."""
import os

from domain.geo import TOP_K
from domain.models import SEARCH_RADIUS_M, Coordinate

# Geodata backend (Overpass API)
OVERPASS_URL = "https://overpass-api.de/api/interpreter"
OVERPASS_SERVER_TIMEOUT_S = 25  # [timeout:...] sent inside the query
QUERY_TIMEOUT_S = 30.0  # HTTP read timeout, a bit above the server-side limit

# IP geolocation fallback
IP_LOOKUP_URL = "https://ipapi.co/json/"
IP_LOOKUP_TIMEOUT_S = 5.0

# Device geolocation
DEVICE_TIMEOUT_S = 10.0

# Default location when every other tier fails (Bratislava)
DEFAULT_LOCATION = Coordinate(48.1486, 17.1077)
DEFAULT_LOCATION_NAME = "Bratislava"

# Search radius (SEARCH_RADIUS_M) and nearest-list size (TOP_K) live with the domain model

# Display
OPENING_HOURS_PLACEHOLDER = "Not available"

# HTTP
USER_AGENT = "donation-map/0.1 (+https://www.openstreetmap.org/copyright)"

# Directions
DIRECTIONS_URL = "https://www.google.com/maps/dir/{origin}/{destination}"

# Logging
LOG_LEVEL = os.getenv("DONATION_MAP_LOG_LEVEL", "INFO")
