"""Marker selection state machine."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from domain.geo import haversine_distance
from domain.models import ClassifiedFeature, FeatureDetails

if TYPE_CHECKING:
    from ui.map_coordinator import MapState, MapSurface

logger = logging.getLogger(__name__)


class SelectionMode(Enum):
    """Selection mode enum."""
    UNSELECTED = "UNSELECTED"
    SELECTED = "SELECTED"


@dataclass(frozen=True)
class SelectionState:
    """Either Unselected or Selected(feature_id)."""
    mode: SelectionMode = SelectionMode.UNSELECTED
    feature_id: Optional[str] = None

    @classmethod
    def unselected(cls) -> "SelectionState":
        return cls()

    @classmethod
    def selected(cls, feature_id: str) -> "SelectionState":
        return cls(SelectionMode.SELECTED, feature_id)

    @property
    def is_selected(self) -> bool:
        return self.mode == SelectionMode.SELECTED


class SelectionController:
    """
    Tracks which single feature is selected.

    Reads the live feature set from the shared MapState and pushes highlight
    and detail-panel changes to the map surface.
    """

    def __init__(self, state: "MapState", surface: "MapSurface"):
        self.state = state
        self.surface = surface

    @property
    def current(self) -> SelectionState:
        return self.state.selection

    def select(self, feature_id: str) -> bool:
        """
        Select a feature by id.

        Returns:
            True if the feature exists in the current set and is now selected
        """
        feature = self.state.features.get(feature_id)
        if feature is None:
            logger.warning(f"Ignoring selection of unknown feature {feature_id}")
            return False

        previous = self.state.selection.feature_id if self.state.selection.is_selected else None
        self.state.selection = SelectionState.selected(feature_id)

        if previous != feature_id:
            # One surface call: previous marker is unhighlighted before the new one lights up
            self.surface.set_highlight(previous, feature_id)
        self.surface.show_details(self._details_for(feature))
        return True

    def clear(self) -> None:
        """Deselect and reset the detail panel to its placeholder."""
        previous = self.state.selection.feature_id if self.state.selection.is_selected else None
        self.state.selection = SelectionState.unselected()

        if previous is not None:
            self.surface.set_highlight(previous, None)
        self.surface.clear_details()

    def features_replaced(self) -> None:
        """A new feature set was loaded; any previous selection is stale."""
        self.clear()

    def _details_for(self, feature: ClassifiedFeature) -> FeatureDetails:
        distance = None
        if self.state.search is not None:
            center = self.state.search.center
            distance = haversine_distance(center.lat, center.lng,
                                          feature.location.lat, feature.location.lng)
        return FeatureDetails(
            feature_id=feature.id,
            title=feature.title,
            category_label=feature.category.label,
            opening_hours=feature.opening_hours,
            location=feature.location,
            distance_km=distance,
            operator=feature.operator,
        )
