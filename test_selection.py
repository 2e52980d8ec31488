"""Unit tests for the marker selection state machine."""

from domain.models import ClassifiedFeature, Coordinate, FeatureCategory, SearchContext
from ui.map_coordinator import MapState
from ui.selection import SelectionController, SelectionMode, SelectionState


def make_state():
    features = [
        ClassifiedFeature("node/1", Coordinate(48.15, 17.11), FeatureCategory.CLOTHES, "Mo-Fr 08:00-18:00"),
        ClassifiedFeature("way/2", Coordinate(48.20, 17.20), FeatureCategory.CENTER, "Not available",
                          name="Sberny dvor"),
    ]
    return MapState(
        search=SearchContext(center=Coordinate(48.1486, 17.1077)),
        features={f.id: f for f in features},
    )


def test_initial_state_unselected(surface):
    controller = SelectionController(make_state(), surface)
    assert controller.current == SelectionState.unselected()
    assert not controller.current.is_selected


def test_select_highlights_and_shows_details(surface):
    controller = SelectionController(make_state(), surface)

    assert controller.select("node/1")

    assert controller.current == SelectionState(SelectionMode.SELECTED, "node/1")
    assert surface.highlighted == {"node/1"}
    assert surface.details.feature_id == "node/1"
    assert surface.details.opening_hours == "Mo-Fr 08:00-18:00"
    assert surface.details.category_label == "Clothes Donation Container"
    assert surface.details.distance_km < 0.5


def test_select_a_then_b(surface):
    """Only B is highlighted and the details show B."""
    controller = SelectionController(make_state(), surface)

    controller.select("node/1")
    controller.select("way/2")

    assert surface.highlighted == {"way/2"}
    assert ("set_highlight", "node/1", "way/2") in surface.calls
    assert surface.details.feature_id == "way/2"
    assert surface.details.title == "Sberny dvor"
    print("✓ Select A then B test passed")


def test_reselect_same_feature_keeps_single_highlight(surface):
    controller = SelectionController(make_state(), surface)

    controller.select("node/1")
    controller.select("node/1")

    assert surface.highlighted == {"node/1"}
    assert [c for c in surface.calls if c[0] == "set_highlight"] == [("set_highlight", None, "node/1")]


def test_select_unknown_feature_is_ignored(surface):
    controller = SelectionController(make_state(), surface)
    controller.select("node/1")

    assert not controller.select("node/999")

    assert controller.current.feature_id == "node/1"
    assert surface.details.feature_id == "node/1"


def test_clear_resets_details(surface):
    controller = SelectionController(make_state(), surface)
    controller.select("way/2")

    controller.clear()

    assert controller.current == SelectionState.unselected()
    assert surface.highlighted == set()
    assert surface.details is None
    assert surface.calls[-1] == ("clear_details",)


def test_features_replaced_always_unselects(surface):
    """features_replaced ends Unselected from either state."""
    state = make_state()
    controller = SelectionController(state, surface)

    controller.features_replaced()
    assert controller.current == SelectionState.unselected()

    controller.select("node/1")
    controller.features_replaced()
    assert controller.current == SelectionState.unselected()
    assert surface.details is None
