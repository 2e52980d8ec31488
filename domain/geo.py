"""
Geographic utilities for distance calculation and ranking.
"""
import math
from typing import List, Sequence

import numpy as np

from domain.models import ClassifiedFeature, Coordinate, RankedFeature

EARTH_RADIUS_KM = 6371.0
TOP_K = 3


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points using Haversine formula.

    Args:
        lat1, lon1: First point (latitude, longitude)
        lat2, lon2: Second point (latitude, longitude)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(dlon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distances(reference: Coordinate, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorised haversine from one reference point to many points (km)."""
    lat1 = np.radians(reference.lat)
    lat2 = np.radians(lats)
    dlat = np.radians(lats - reference.lat)
    dlon = np.radians(lons - reference.lng)

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    # Rounding can push a a hair outside [0, 1] for antipodal points
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def rank_features(
    reference: Coordinate,
    features: Sequence[ClassifiedFeature],
    k: int = TOP_K
) -> List[RankedFeature]:
    """
    Rank features by distance from the reference point and keep the nearest.

    Args:
        reference: Point all distances are measured from
        features: Classified features, in backend order
        k: Maximum number of results

    Returns:
        Up to k RankedFeatures sorted by ascending distance; ties keep input order
    """
    if not features or k <= 0:
        return []

    lats = np.fromiter((f.location.lat for f in features), dtype=np.float64, count=len(features))
    lons = np.fromiter((f.location.lng for f in features), dtype=np.float64, count=len(features))
    distances = haversine_distances(reference, lats, lons)

    order = np.argsort(distances, kind="stable")[:k]
    return [RankedFeature(feature=features[i], distance_km=float(distances[i])) for i in order]
