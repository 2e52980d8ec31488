"""Location resolution and donation container lookup."""

from location.feature_classifier import classify, classify_all
from location.geo_query import GeoQueryService, QueryResult
from location.ip_geolocation import IpGeolocator
from location.location_resolver import LocationResolver, LocationSource, ResolvedLocation

__all__ = [
    "classify",
    "classify_all",
    "GeoQueryService",
    "QueryResult",
    "IpGeolocator",
    "LocationResolver",
    "LocationSource",
    "ResolvedLocation",
]
