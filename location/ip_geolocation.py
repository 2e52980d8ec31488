"""Approximate location from the client's public IP address."""

import asyncio
import logging
from typing import Optional

import requests

from domain.errors import InvalidCoordinate, LocationUnavailable
from domain.models import Coordinate, validate_coordinate
from location.config import IP_LOOKUP_TIMEOUT_S, IP_LOOKUP_URL
from location.http_session import create_session

logger = logging.getLogger(__name__)


class IpGeolocator:
    """Looks up an approximate coordinate from an IP geolocation service."""

    def __init__(self, session: Optional[requests.Session] = None,
                 endpoint: str = IP_LOOKUP_URL,
                 timeout: float = IP_LOOKUP_TIMEOUT_S):
        self.session = session or create_session()
        self.endpoint = endpoint
        self.timeout = timeout

    def lookup(self) -> Coordinate:
        """
        Query the service once.

        Raises:
            LocationUnavailable: request failed or response lacks valid latitude/longitude
        """
        try:
            response = self.session.get(self.endpoint, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise LocationUnavailable(f"IP lookup failed: {e}") from e

        if not isinstance(data, dict):
            raise LocationUnavailable("IP lookup returned unexpected payload")

        lat, lng = data.get("latitude"), data.get("longitude")
        if lat is None or lng is None:
            raise LocationUnavailable("IP lookup response has no latitude/longitude")
        try:
            return validate_coordinate(lat, lng)
        except InvalidCoordinate as e:
            raise LocationUnavailable(f"IP lookup returned invalid coordinate: {e}") from e

    async def current_position(self) -> Coordinate:
        """Non-blocking lookup."""
        return await asyncio.to_thread(self.lookup)
