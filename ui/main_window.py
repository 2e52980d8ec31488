"""
Main window: map view wired to the coordinator worker.
"""
import logging

from PyQt5.QtWidgets import QMainWindow

from location.geo_query import GeoQueryService
from location.location_resolver import LocationResolver
from ui.map_coordinator import MapViewCoordinator
from ui.map_view import BrowserPositionSource, MapView, QtMapSurface
from ui.workers import CoordinatorWorker

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Donation container finder window."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Donation Map - Clothes & Shoes")
        self.resize(1200, 800)
        self.setStyleSheet("QMainWindow { background-color: #0f172a; } QLabel { color: #f8fafc; }")

        self.map_view = MapView(self)
        self.setCentralWidget(self.map_view)

        self.surface = QtMapSurface(self)
        self.map_view.connect_surface(self.surface)

        self.position_source = BrowserPositionSource(self.map_view.map_bridge, self)
        self.map_view.connect_position_source(self.position_source)

        self.worker = CoordinatorWorker(self._create_coordinator)
        self.worker.ready.connect(self.worker.locate_user)

        self.map_view.locateRequested.connect(self.worker.locate_user)
        self.map_view.dropPinToggled.connect(self.worker.toggle_drop_pin)
        self.map_view.featureClicked.connect(self.worker.select_feature)
        self.map_view.mapClicked.connect(self.worker.map_clicked)
        self.map_view.directionsRequested.connect(self.worker.open_directions)

        # Device location goes through the page, so start once it has loaded
        self.map_view.mapReady.connect(self.worker.start)

    def _create_coordinator(self) -> MapViewCoordinator:
        """Built on the worker thread, inside its event loop."""
        return MapViewCoordinator(
            surface=self.surface,
            query_service=GeoQueryService(),
            resolver=LocationResolver(device_source=self.position_source),
        )

    def closeEvent(self, event):
        logger.info("Shutting down")
        self.worker.stop()
        super().closeEvent(event)
