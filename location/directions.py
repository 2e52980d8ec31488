"""External directions link."""

from typing import Optional

from domain.models import Coordinate
from location.config import DIRECTIONS_URL


def directions_url(target: Coordinate, reference: Optional[Coordinate] = None) -> str:
    """
    Build a Google Maps directions URL to the target.

    Without a reference point the origin is left empty so the map service
    asks for it.
    """
    origin = f"{reference.lat},{reference.lng}" if reference is not None else ""
    return DIRECTIONS_URL.format(origin=origin, destination=f"{target.lat},{target.lng}")
