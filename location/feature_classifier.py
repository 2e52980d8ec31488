"""Classify raw geodata features into donation container categories."""

from typing import Iterable, List, Optional

from domain.models import ClassifiedFeature, FeatureCategory, RawFeature
from location.config import OPENING_HOURS_PLACEHOLDER

CLOTHES_TAG = "recycling:clothes"
SHOES_TAG = "recycling:shoes"
RECYCLING_TYPE_TAG = "recycling_type"
OPENING_HOURS_TAG = "opening_hours"


def categorize(tags: dict) -> Optional[FeatureCategory]:
    """
    Decide the category from tags.

    Precedence: recycling centre first, then clothes+shoes, clothes, shoes.
    Returns None when the feature accepts neither clothes nor shoes.
    """
    if tags.get(RECYCLING_TYPE_TAG) == "centre":
        return FeatureCategory.CENTER

    accepts_clothes = tags.get(CLOTHES_TAG) == "yes"
    accepts_shoes = tags.get(SHOES_TAG) == "yes"

    if accepts_clothes and accepts_shoes:
        return FeatureCategory.CLOTHES_AND_SHOES
    if accepts_clothes:
        return FeatureCategory.CLOTHES
    if accepts_shoes:
        return FeatureCategory.SHOES
    return None


def classify(raw: RawFeature) -> Optional[ClassifiedFeature]:
    """
    Classify a raw feature.

    Args:
        raw: Feature as returned by the geodata backend

    Returns:
        ClassifiedFeature, or None if it matches no category (dropped)
    """
    category = categorize(raw.tags)
    if category is None:
        return None

    return ClassifiedFeature(
        id=raw.id,
        location=raw.location,
        category=category,
        opening_hours=raw.tags.get(OPENING_HOURS_TAG, OPENING_HOURS_PLACEHOLDER),
        name=raw.tags.get("name"),
        operator=raw.tags.get("operator"),
    )


def classify_all(raws: Iterable[RawFeature]) -> List[ClassifiedFeature]:
    """Classify in order, dropping unclassifiable features and repeated ids."""
    classified = []
    seen = set()
    for raw in raws:
        if raw.id in seen:
            continue
        feature = classify(raw)
        if feature is None:
            continue
        seen.add(raw.id)
        classified.append(feature)
    return classified
