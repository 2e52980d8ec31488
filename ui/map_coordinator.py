"""
Map view orchestration.

MapViewCoordinator owns the application state (reference point, current
feature set, ranked list, selection) and is the only component that pushes
changes to the map surface. All methods run on a single asyncio loop; the
GUI forwards user events into that loop.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from domain.errors import InvalidCoordinate
from domain.geo import rank_features
from domain.models import (
    ClassifiedFeature,
    Coordinate,
    FeatureDetails,
    RankedFeature,
    SearchContext,
    validate_coordinate,
)
from location.config import DEFAULT_LOCATION_NAME, SEARCH_RADIUS_M, TOP_K
from location.directions import directions_url
from location.feature_classifier import classify_all
from location.geo_query import GeoQueryService
from location.location_resolver import LocationResolver, LocationSource
from ui.selection import SelectionController, SelectionState

logger = logging.getLogger(__name__)


class MapSurface(Protocol):
    """Side effects on the map widget and its panels."""

    def show_reference(self, center: Coordinate, radius_meters: float) -> None:
        """Replace the reference marker and search-radius circle."""

    def show_features(self, features: Sequence[ClassifiedFeature]) -> None:
        """Replace all feature markers."""

    def show_nearest(self, ranked: Sequence[RankedFeature]) -> None:
        """Replace the nearest-containers list."""

    def set_highlight(self, previous_id: Optional[str], current_id: Optional[str]) -> None:
        """Unhighlight previous_id, then highlight current_id, as one update."""

    def show_details(self, details: FeatureDetails) -> None:
        ...

    def clear_details(self) -> None:
        ...

    def set_drop_pin_mode(self, enabled: bool) -> None:
        ...

    def notify(self, message: str) -> None:
        ...

    def clear_notice(self) -> None:
        """Remove a notice once a search succeeds."""

    def open_url(self, url: str) -> None:
        ...


@dataclass
class MapState:
    """Application state owned by the coordinator."""
    search: Optional[SearchContext] = None
    features: Dict[str, ClassifiedFeature] = field(default_factory=dict)
    ranked: List[RankedFeature] = field(default_factory=list)
    selection: SelectionState = field(default_factory=SelectionState.unselected)
    drop_pin_mode: bool = False
    generation: int = 0

    @property
    def reference(self) -> Optional[Coordinate]:
        return self.search.center if self.search is not None else None


class MapViewCoordinator:
    """Resolves location, queries, classifies, ranks and redraws."""

    def __init__(self,
                 surface: MapSurface,
                 query_service: Optional[GeoQueryService] = None,
                 resolver: Optional[LocationResolver] = None,
                 radius_meters: float = SEARCH_RADIUS_M,
                 top_k: int = TOP_K):
        self.surface = surface
        self.query_service = query_service or GeoQueryService()
        self.resolver = resolver or LocationResolver()
        self.radius_meters = radius_meters
        self.top_k = top_k

        self.state = MapState()
        self.selection = SelectionController(self.state, surface)
        self._pending_task: Optional[asyncio.Task] = None
        self._locate_task: Optional[asyncio.Task] = None

    async def on_location_change(self, coord: Coordinate) -> bool:
        """
        Move the reference point and refresh the containers around it.

        Args:
            coord: New reference point

        Returns:
            True if a fresh feature set was applied
        """
        try:
            center = validate_coordinate(coord.lat, coord.lng)
        except (InvalidCoordinate, AttributeError) as e:
            logger.error(f"Rejected location update {coord!r}: {e}")
            return False

        self.state.generation += 1
        generation = self.state.generation

        self.state.search = SearchContext(center=center, radius_meters=self.radius_meters)
        self.surface.show_reference(center, self.radius_meters)

        result = await self.query_service.query(center, self.radius_meters)

        if generation != self.state.generation:
            logger.debug(f"Discarding results of superseded query #{generation}")
            return False

        if not result.ok:
            # Keep the previous markers and list instead of flashing an empty state
            logger.warning(f"Keeping previous results: {result.error}")
            self.surface.notify("Could not load donation containers. Showing previous results.")
            return False

        classified = classify_all(result.features)
        ranked = rank_features(center, classified, self.top_k)

        self.state.features = {f.id: f for f in classified}
        self.state.ranked = ranked

        self.surface.show_features(classified)
        self.surface.show_nearest(ranked)
        self.surface.clear_notice()
        self.selection.features_replaced()

        logger.info(f"Showing {len(classified)} containers, nearest {len(ranked)} listed")
        return True

    def request_location_change(self, coord: Coordinate) -> asyncio.Task:
        """Schedule a location change; a pending one, or a pending locate, is superseded."""
        if self._locate_task is not asyncio.current_task():
            self._cancel_locate()
        if self._pending_task is not None and not self._pending_task.done():
            self._pending_task.cancel()
        self._pending_task = asyncio.get_running_loop().create_task(self.on_location_change(coord))
        return self._pending_task

    async def locate_user(self) -> Coordinate:
        """Resolve the user's position and search around it."""
        resolved = await self.resolver.resolve_with_source()
        task = self.request_location_change(resolved.coordinate)
        # wait() rather than await: a later location change may cancel this task
        await asyncio.wait([task])
        if resolved.source == LocationSource.DEFAULT and not task.cancelled():
            self.surface.notify(
                f"Unable to retrieve your location. Using {DEFAULT_LOCATION_NAME} as default."
            )
        return resolved.coordinate

    def request_locate(self) -> asyncio.Task:
        """Schedule locate_user; a locate still resolving is superseded."""
        self._cancel_locate()
        self._locate_task = asyncio.get_running_loop().create_task(self.locate_user())
        return self._locate_task

    def _cancel_locate(self) -> None:
        if self._locate_task is not None and not self._locate_task.done():
            logger.debug("Superseding pending locate request")
            self._locate_task.cancel()
        self._locate_task = None

    def select_feature(self, feature_id: str) -> bool:
        """Marker click."""
        return self.selection.select(feature_id)

    def clear_selection(self) -> None:
        self.selection.clear()

    def toggle_drop_pin(self) -> bool:
        """Enter or leave drop-pin mode; returns the new mode."""
        self.state.drop_pin_mode = not self.state.drop_pin_mode
        self.surface.set_drop_pin_mode(self.state.drop_pin_mode)
        return self.state.drop_pin_mode

    def on_map_click(self, coord: Coordinate) -> Optional[asyncio.Task]:
        """
        Click on the map background.

        In drop-pin mode the clicked point becomes the new reference point;
        otherwise the click deselects the current feature.
        """
        if self.state.drop_pin_mode:
            self.toggle_drop_pin()
            return self.request_location_change(coord)

        self.selection.clear()
        return None

    def open_directions(self, feature_id: str) -> Optional[str]:
        """Open directions from the reference point to a feature."""
        feature = self.state.features.get(feature_id)
        if feature is None:
            logger.warning(f"No directions for unknown feature {feature_id}")
            return None

        url = directions_url(feature.location, self.state.reference)
        self.surface.open_url(url)
        return url
