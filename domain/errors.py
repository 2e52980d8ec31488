"""Error types for location resolution and geodata queries."""


class DonationMapError(Exception):
    """Base error for the donation map."""
    pass


class LocationUnavailable(DonationMapError):
    """No location tier produced a usable coordinate."""
    pass


class GeoQueryFailed(DonationMapError):
    """Geodata query failed (network, HTTP status or malformed response)."""
    pass


class InvalidCoordinate(DonationMapError, ValueError):
    """Latitude/longitude pair is not finite or out of range."""
    pass
