"""
Overpass API client for clothes/shoes donation containers.

Builds an area query around a centre point, posts it to the Overpass
interpreter and parses the returned ``elements`` into RawFeatures. Ways are
requested with ``out center`` so their representative location is the
centroid computed by the backend.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import requests

from domain.errors import GeoQueryFailed
from domain.models import Coordinate, RawFeature
from location.config import OVERPASS_SERVER_TIMEOUT_S, OVERPASS_URL, QUERY_TIMEOUT_S
from location.http_session import create_session

logger = logging.getLogger(__name__)

# Element kinds and the tag filters combined into the union query
ELEMENT_KINDS = ("node", "way")
MATERIAL_TAGS = ("recycling:clothes", "recycling:shoes")


@dataclass
class QueryResult:
    """Outcome of one geodata query."""
    features: List[RawFeature] = field(default_factory=list)
    error: Optional[GeoQueryFailed] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_overpass_query(center: Coordinate, radius_meters: float,
                         server_timeout: int = OVERPASS_SERVER_TIMEOUT_S) -> str:
    """
    Build the Overpass QL union query for donation containers.

    Args:
        center: Search centre
        radius_meters: Search radius in meters
        server_timeout: Server-side timeout in seconds

    Returns:
        Overpass QL text
    """
    around = f"(around:{int(round(radius_meters))},{center.lat},{center.lng})"
    statements = []
    for kind in ELEMENT_KINDS:
        for tag in MATERIAL_TAGS:
            statements.append(f'  {kind}["amenity"="recycling"]["{tag}"="yes"]{around};')

    return (
        f"[out:json][timeout:{server_timeout}];\n"
        "(\n"
        + "\n".join(statements) + "\n"
        ");\n"
        "out center tags;\n"
    )


def _element_location(element: dict) -> Optional[Coordinate]:
    """Point location for a node, backend centroid for a way."""
    if element.get("type") == "way":
        center = element.get("center") or {}
        lat, lon = center.get("lat"), center.get("lon")
    else:
        lat, lon = element.get("lat"), element.get("lon")

    if lat is None or lon is None:
        return None
    try:
        coord = Coordinate(float(lat), float(lon))
    except (TypeError, ValueError):
        return None
    return coord if coord.is_valid() else None


def parse_elements(elements: Iterable[dict]) -> List[RawFeature]:
    """
    Convert Overpass elements into RawFeatures.

    Elements without an id or a usable location are skipped.
    """
    features = []
    for element in elements:
        if not isinstance(element, dict):
            continue
        kind = element.get("type", "node")
        osm_id = element.get("id")
        if osm_id is None:
            logger.debug(f"Skipping element without id: {element}")
            continue

        location = _element_location(element)
        if location is None:
            logger.debug(f"Skipping {kind}/{osm_id} without usable location")
            continue

        tags = element.get("tags") or {}
        features.append(RawFeature(
            id=f"{kind}/{osm_id}",
            kind=kind,
            location=location,
            tags={str(k): str(v) for k, v in tags.items()},
        ))
    return features


class GeoQueryService:
    """Queries the Overpass API for donation containers around a point."""

    def __init__(self, session: Optional[requests.Session] = None,
                 endpoint: str = OVERPASS_URL,
                 timeout: float = QUERY_TIMEOUT_S):
        """
        Args:
            session: HTTP session (created if not given)
            endpoint: Overpass interpreter URL
            timeout: HTTP timeout in seconds
        """
        self.session = session or create_session()
        self.endpoint = endpoint
        self.timeout = timeout

    def fetch(self, center: Coordinate, radius_meters: float) -> List[RawFeature]:
        """
        Run the query synchronously (one POST round trip).

        Raises:
            GeoQueryFailed: on transport error, HTTP error status or malformed response
        """
        query = build_overpass_query(center, radius_meters)
        try:
            logger.debug(f"POST {self.endpoint} around ({center.lat}, {center.lng}) r={radius_meters}m")
            response = self.session.post(self.endpoint, data={"data": query}, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise GeoQueryFailed(f"Overpass request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GeoQueryFailed(f"Overpass returned non-JSON response: {e}") from e

        elements = payload.get("elements") if isinstance(payload, dict) else None
        if not isinstance(elements, list):
            raise GeoQueryFailed("Overpass response has no 'elements' list")

        features = parse_elements(elements)
        logger.info(f"Overpass returned {len(elements)} elements, {len(features)} with a location")
        return features

    async def query(self, center: Coordinate, radius_meters: float) -> QueryResult:
        """
        Run the query without blocking the event loop.

        Never raises for query failures; the error is carried in the result.
        """
        try:
            features = await asyncio.to_thread(self.fetch, center, radius_meters)
        except GeoQueryFailed as e:
            logger.warning(f"Geodata query failed: {e}")
            return QueryResult(features=[], error=e)
        except Exception as e:
            logger.exception("Unexpected error during geodata query")
            return QueryResult(features=[], error=GeoQueryFailed(str(e)))
        return QueryResult(features=features)
