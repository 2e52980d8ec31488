"""
Domain models for donation containers and search state.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from domain.errors import InvalidCoordinate

SEARCH_RADIUS_M = 20000  # 20 km


@dataclass(frozen=True)
class Coordinate:
    """Latitude/longitude pair in degrees."""
    lat: float
    lng: float

    def is_valid(self) -> bool:
        """Check that both values are finite and in range."""
        try:
            lat = float(self.lat)
            lng = float(self.lng)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return False
        return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0

    def as_tuple(self):
        return (self.lat, self.lng)


def validate_coordinate(lat, lng) -> Coordinate:
    """
    Build a Coordinate, rejecting malformed input.

    Raises:
        InvalidCoordinate: if lat/lng are not numbers, not finite or out of range
    """
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise InvalidCoordinate(f"Invalid coordinate: ({lat!r}, {lng!r})")
    try:
        coord = Coordinate(float(lat), float(lng))
    except (TypeError, ValueError) as e:
        raise InvalidCoordinate(f"Invalid coordinate: ({lat!r}, {lng!r})") from e
    if not coord.is_valid():
        raise InvalidCoordinate(f"Coordinate out of range: ({lat!r}, {lng!r})")
    return coord


class FeatureCategory(Enum):
    """What a donation container accepts."""
    CLOTHES = "clothes"
    SHOES = "shoes"
    CLOTHES_AND_SHOES = "clothes_and_shoes"
    CENTER = "center"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def color(self) -> str:
        """Marker colour used on the map and in the legend."""
        return _CATEGORY_COLORS[self]


_CATEGORY_LABELS = {
    FeatureCategory.CLOTHES: "Clothes Donation Container",
    FeatureCategory.SHOES: "Shoes Donation Container",
    FeatureCategory.CLOTHES_AND_SHOES: "Clothes and Shoes Donation Container",
    FeatureCategory.CENTER: "Donation Center",
}

_CATEGORY_COLORS = {
    FeatureCategory.CLOTHES: "green",
    FeatureCategory.SHOES: "blue",
    FeatureCategory.CLOTHES_AND_SHOES: "green",
    FeatureCategory.CENTER: "orange",
}


@dataclass(frozen=True)
class RawFeature:
    """Element returned by the geodata backend, before classification."""
    id: str  # "<kind>/<osm id>", e.g. "node/123"
    kind: str  # "node" or "way"
    location: Coordinate  # node position or backend-supplied way centroid
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ClassifiedFeature:
    """Donation container with a category and display fields."""
    id: str
    location: Coordinate
    category: FeatureCategory
    opening_hours: str
    name: Optional[str] = None
    operator: Optional[str] = None

    @property
    def title(self) -> str:
        return self.name or self.category.label


@dataclass(frozen=True)
class RankedFeature:
    """Classified feature with its distance from the reference point."""
    feature: ClassifiedFeature
    distance_km: float

    @property
    def id(self) -> str:
        return self.feature.id

    @property
    def location(self) -> Coordinate:
        return self.feature.location

    @property
    def category(self) -> FeatureCategory:
        return self.feature.category


@dataclass(frozen=True)
class FeatureDetails:
    """Content of the detail panel for the selected feature."""
    feature_id: str
    title: str
    category_label: str
    opening_hours: str
    location: Coordinate
    distance_km: Optional[float] = None
    operator: Optional[str] = None


@dataclass(frozen=True)
class SearchContext:
    """Area searched around the reference point."""
    center: Coordinate
    radius_meters: float = SEARCH_RADIUS_M
