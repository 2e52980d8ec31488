"""Unit tests for distance calculation and nearest ranking."""

import pytest

from domain.geo import haversine_distance, rank_features
from domain.models import ClassifiedFeature, Coordinate, FeatureCategory

BRATISLAVA = Coordinate(48.1486, 17.1077)


def make_feature(feature_id, lat, lng, category=FeatureCategory.CLOTHES):
    return ClassifiedFeature(
        id=feature_id,
        location=Coordinate(lat, lng),
        category=category,
        opening_hours="Not available",
    )


def test_haversine_identity():
    """Distance from a point to itself is zero."""
    for lat, lng in [(48.1486, 17.1077), (-33.86, 151.21), (89.9, -179.9)]:
        assert haversine_distance(lat, lng, lat, lng) == 0.0
    print("✓ Haversine identity test passed")


def test_haversine_symmetry():
    """Distance does not depend on argument order."""
    pairs = [
        ((48.1486, 17.1077), (40.7, -74.0)),
        ((-33.86, 151.21), (51.5, -0.12)),
        ((0.5, 179.9), (-0.5, -179.9)),
    ]
    for (lat1, lng1), (lat2, lng2) in pairs:
        forward = haversine_distance(lat1, lng1, lat2, lng2)
        backward = haversine_distance(lat2, lng2, lat1, lng1)
        assert forward == pytest.approx(backward, rel=1e-12)
    print("✓ Haversine symmetry test passed")


def test_haversine_known_distance():
    """Bratislava to Vienna is roughly 55 km."""
    distance = haversine_distance(48.1486, 17.1077, 48.2082, 16.3738)
    assert 50 < distance < 60


def test_rank_scenario_clothes_before_center():
    """Nearby clothes container ranks before a farther donation center."""
    clothes = make_feature("node/1", 48.15, 17.11, FeatureCategory.CLOTHES)
    center = make_feature("way/2", 48.20, 17.20, FeatureCategory.CENTER)

    ranked = rank_features(BRATISLAVA, [center, clothes], k=3)

    assert [r.id for r in ranked] == ["node/1", "way/2"]
    assert ranked[0].distance_km < 0.5
    assert 5 < ranked[1].distance_km < 12
    assert all(r.distance_km <= 20 for r in ranked), "Both inside the 20 km search radius"
    print("✓ Rank scenario test passed")


def test_rank_sorted_truncated_subset():
    """Ranked list is sorted, at most k long, and only contains input features."""
    features = [
        make_feature(f"node/{i}", 48.1486 + 0.01 * ((i * 7) % 5), 17.1077 + 0.01 * i)
        for i in range(10)
    ]

    ranked = rank_features(BRATISLAVA, features, k=3)

    assert len(ranked) == 3
    distances = [r.distance_km for r in ranked]
    assert distances == sorted(distances)
    assert all(r.feature in features for r in ranked)
    assert all(d >= 0 for d in distances)


def test_rank_k_larger_than_input():
    features = [make_feature("node/1", 48.15, 17.11)]
    ranked = rank_features(BRATISLAVA, features, k=3)
    assert len(ranked) == 1


def test_rank_empty_and_zero_k():
    """Empty input and k=0 give empty output, not an error."""
    assert rank_features(BRATISLAVA, [], k=3) == []
    assert rank_features(BRATISLAVA, [make_feature("node/1", 48.15, 17.11)], k=0) == []


def test_rank_ties_keep_input_order():
    """Features at the same distance stay in input order."""
    first = make_feature("node/a", 48.16, 17.12)
    second = make_feature("node/b", 48.16, 17.12)
    third = make_feature("node/c", 48.16, 17.12)

    ranked = rank_features(BRATISLAVA, [first, second, third], k=2)

    assert [r.id for r in ranked] == ["node/a", "node/b"]


def test_rank_default_k_is_three():
    features = [make_feature(f"node/{i}", 48.15 + i * 0.001, 17.11) for i in range(5)]
    assert len(rank_features(BRATISLAVA, features)) == 3


def run_all_tests():
    """Run all tests."""
    print("Running geo tests...\n")
    test_haversine_identity()
    test_haversine_symmetry()
    test_haversine_known_distance()
    test_rank_scenario_clothes_before_center()
    test_rank_sorted_truncated_subset()
    test_rank_k_larger_than_input()
    test_rank_empty_and_zero_k()
    test_rank_ties_keep_input_order()
    test_rank_default_k_is_three()
    print("\n✅ All tests passed!")


if __name__ == "__main__":
    run_all_tests()
