"""
MapView: QWebEngine + Leaflet map of donation containers with QWebChannel bridge.
"""
import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

from PyQt5.QtCore import QObject, QUrl, Qt, pyqtSignal, pyqtSlot
from PyQt5.QtGui import QDesktopServices
from PyQt5.QtWebChannel import QWebChannel
from PyQt5.QtWebEngineWidgets import QWebEnginePage, QWebEngineView
from PyQt5.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from domain.errors import LocationUnavailable
from domain.models import ClassifiedFeature, Coordinate, FeatureCategory, FeatureDetails, RankedFeature

logger = logging.getLogger(__name__)

DETAILS_PLACEHOLDER = "Select a container on the map to see its details."


class MapBridge(QObject):
    """Bridge object for QWebChannel communication."""

    markerClicked = pyqtSignal(str)  # feature id
    mapClicked = pyqtSignal(float, float)  # lat, lng
    directionsRequested = pyqtSignal(str)  # feature id
    devicePosition = pyqtSignal(float, float)  # lat, lng
    devicePositionFailed = pyqtSignal(str)  # error message

    @pyqtSlot(str)
    def onMarkerClicked(self, feature_id: str):
        self.markerClicked.emit(feature_id)

    @pyqtSlot(float, float)
    def onMapClicked(self, lat: float, lng: float):
        self.mapClicked.emit(lat, lng)

    @pyqtSlot(str)
    def onDirectionsRequested(self, feature_id: str):
        self.directionsRequested.emit(feature_id)

    @pyqtSlot(float, float)
    def onDevicePosition(self, lat: float, lng: float):
        self.devicePosition.emit(lat, lng)

    @pyqtSlot(str)
    def onDevicePositionError(self, message: str):
        self.devicePositionFailed.emit(message)


class QtMapSurface(QObject):
    """
    Map surface for the coordinator.

    Called from the coordinator's loop thread; every call becomes a queued
    signal handled by MapView on the GUI thread, in call order.
    """

    referenceChanged = pyqtSignal(float, float, float)  # lat, lng, radius_m
    featuresChanged = pyqtSignal(object)  # list[ClassifiedFeature]
    nearestChanged = pyqtSignal(object)  # list[RankedFeature]
    highlightChanged = pyqtSignal(object, object)  # previous id, current id (str or None)
    detailsChanged = pyqtSignal(object)  # FeatureDetails
    detailsCleared = pyqtSignal()
    dropPinModeChanged = pyqtSignal(bool)
    noticeRaised = pyqtSignal(str)
    noticeCleared = pyqtSignal()
    urlRequested = pyqtSignal(str)

    def show_reference(self, center: Coordinate, radius_meters: float) -> None:
        self.referenceChanged.emit(center.lat, center.lng, float(radius_meters))

    def show_features(self, features: Sequence[ClassifiedFeature]) -> None:
        self.featuresChanged.emit(list(features))

    def show_nearest(self, ranked: Sequence[RankedFeature]) -> None:
        self.nearestChanged.emit(list(ranked))

    def set_highlight(self, previous_id: Optional[str], current_id: Optional[str]) -> None:
        self.highlightChanged.emit(previous_id, current_id)

    def show_details(self, details: FeatureDetails) -> None:
        self.detailsChanged.emit(details)

    def clear_details(self) -> None:
        self.detailsCleared.emit()

    def set_drop_pin_mode(self, enabled: bool) -> None:
        self.dropPinModeChanged.emit(enabled)

    def notify(self, message: str) -> None:
        self.noticeRaised.emit(message)

    def clear_notice(self) -> None:
        self.noticeCleared.emit()

    def open_url(self, url: str) -> None:
        self.urlRequested.emit(url)


def _settle(future: asyncio.Future, result=None, error: Optional[Exception] = None):
    """Complete a future on its loop, unless it already timed out."""
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class BrowserPositionSource(QObject):
    """Device position from the embedded browser's geolocation API."""

    positionRequested = pyqtSignal(int)  # timeout in ms

    def __init__(self, bridge: MapBridge, parent=None):
        super().__init__(parent)
        self._lock = threading.Lock()
        self._pending = None  # (loop, future)
        bridge.devicePosition.connect(self._on_position)
        bridge.devicePositionFailed.connect(self._on_error)

    async def current_position(self, timeout: float) -> Coordinate:
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        with self._lock:
            previous, self._pending = self._pending, (loop, future)
        if previous is not None:
            prev_loop, prev_future = previous
            prev_loop.call_soon_threadsafe(
                _settle, prev_future, None, LocationUnavailable("Superseded by a newer position request")
            )
        self.positionRequested.emit(int(timeout * 1000))
        try:
            return await future
        finally:
            with self._lock:
                if self._pending is not None and self._pending[1] is future:
                    self._pending = None

    def _take_pending(self):
        with self._lock:
            pending, self._pending = self._pending, None
        return pending

    def _on_position(self, lat: float, lng: float):
        pending = self._take_pending()
        if pending is not None:
            loop, future = pending
            loop.call_soon_threadsafe(_settle, future, Coordinate(lat, lng), None)

    def _on_error(self, message: str):
        pending = self._take_pending()
        if pending is not None:
            loop, future = pending
            loop.call_soon_threadsafe(_settle, future, None, LocationUnavailable(message))


class GeolocationPage(QWebEnginePage):
    """Web page that grants the local map geolocation access."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.featurePermissionRequested.connect(self._on_permission_requested)

    def _on_permission_requested(self, origin: QUrl, feature):
        if feature == QWebEnginePage.Geolocation:
            self.setFeaturePermission(origin, feature, QWebEnginePage.PermissionGrantedByUser)
        else:
            self.setFeaturePermission(origin, feature, QWebEnginePage.PermissionDeniedByUser)


class NearestCard(QFrame):
    """Card widget for one entry of the nearest list."""

    clicked = pyqtSignal(str)  # feature id

    def __init__(self, rank: int, ranked: RankedFeature, parent=None):
        super().__init__(parent)
        self.ranked = ranked
        self.setup_ui(rank)

    def setup_ui(self, rank: int):
        self.setStyleSheet("""
            QFrame {
                background-color: #1e293b;
                border: 1px solid #334155;
                border-radius: 8px;
                padding: 8px;
            }
            QFrame:hover {
                background-color: #334155;
                border-color: #10b981;
            }
        """)
        self.setCursor(Qt.PointingHandCursor)

        layout = QVBoxLayout(self)
        layout.setSpacing(4)

        feature = self.ranked.feature
        name_label = QLabel(f"{rank}. {feature.title}")
        name_label.setStyleSheet("color: #f8fafc; font-size: 13px; font-weight: bold;")
        name_label.setWordWrap(True)
        layout.addWidget(name_label)

        info_layout = QHBoxLayout()
        distance_label = QLabel(f"{self.ranked.distance_km:.2f} km")
        distance_label.setStyleSheet("color: #10b981; font-size: 12px; font-weight: bold;")
        info_layout.addWidget(distance_label)
        info_layout.addStretch()
        category_label = QLabel(feature.category.label)
        category_label.setStyleSheet("color: #94a3b8; font-size: 11px;")
        info_layout.addWidget(category_label)
        layout.addLayout(info_layout)

    def mousePressEvent(self, event):
        self.clicked.emit(self.ranked.id)
        super().mousePressEvent(event)


class DetailPanel(QFrame):
    """Details of the selected container."""

    directionsClicked = pyqtSignal(str)  # feature id

    def __init__(self, parent=None):
        super().__init__(parent)
        self.feature_id: Optional[str] = None
        self.setStyleSheet("""
            QFrame {
                background-color: #0f172a;
                border: 1px solid #334155;
                border-radius: 6px;
            }
        """)

        layout = QVBoxLayout(self)
        self.title_label = QLabel()
        self.title_label.setStyleSheet("color: #f8fafc; font-size: 14px; font-weight: bold;")
        self.title_label.setWordWrap(True)
        layout.addWidget(self.title_label)

        self.body_label = QLabel()
        self.body_label.setStyleSheet("color: #94a3b8; font-size: 11px;")
        self.body_label.setWordWrap(True)
        layout.addWidget(self.body_label)

        self.directions_btn = QPushButton("Get Directions")
        self.directions_btn.setStyleSheet("""
            QPushButton {
                background-color: #10b981;
                color: white;
                border: none;
                border-radius: 6px;
                padding: 8px;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #059669;
            }
        """)
        self.directions_btn.clicked.connect(self._on_directions)
        layout.addWidget(self.directions_btn)

        self.clear()

    def show_details(self, details: FeatureDetails):
        self.feature_id = details.feature_id
        self.title_label.setText(details.title)
        lines = [
            details.category_label,
            f"Opening hours: {details.opening_hours}",
        ]
        if details.operator:
            lines.append(f"Operator: {details.operator}")
        if details.distance_km is not None:
            lines.append(f"Distance: {details.distance_km:.2f} km")
        self.body_label.setText("\n".join(lines))
        self.directions_btn.setVisible(True)

    def clear(self):
        self.feature_id = None
        self.title_label.setText("Details")
        self.body_label.setText(DETAILS_PLACEHOLDER)
        self.directions_btn.setVisible(False)

    def _on_directions(self):
        if self.feature_id:
            self.directionsClicked.emit(self.feature_id)


class MapView(QWidget):
    """Map view widget with locate / drop-pin controls, nearest list and detail panel."""

    mapReady = pyqtSignal()
    locateRequested = pyqtSignal()
    dropPinToggled = pyqtSignal()
    featureClicked = pyqtSignal(str)  # feature id
    mapClicked = pyqtSignal(float, float)  # lat, lng
    directionsRequested = pyqtSignal(str)  # feature id

    def __init__(self, parent=None):
        super().__init__(parent)

        self._page_ready = False
        self._pending_js = []

        self.map_bridge = MapBridge(self)
        self.map_bridge.markerClicked.connect(self.featureClicked)
        self.map_bridge.mapClicked.connect(self.mapClicked)
        self.map_bridge.directionsRequested.connect(self.directionsRequested)

        self.setup_ui()

    def setup_ui(self):
        """Setup UI components."""
        layout = QHBoxLayout(self)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(10)

        # Left: controls + map
        map_column = QVBoxLayout()

        controls = QHBoxLayout()
        self.locate_btn = QPushButton("📍 My Location")
        self.locate_btn.setToolTip("Use current location")
        self.locate_btn.clicked.connect(self.locateRequested)
        controls.addWidget(self.locate_btn)

        self.drop_pin_btn = QPushButton("Drop Pin")
        self.drop_pin_btn.setCheckable(True)
        self.drop_pin_btn.clicked.connect(self._on_drop_pin_clicked)
        controls.addWidget(self.drop_pin_btn)

        self.status_label = QLabel()
        self.status_label.setStyleSheet("color: #f59e0b; font-size: 11px;")
        self.status_label.setWordWrap(True)
        controls.addWidget(self.status_label, 1)
        map_column.addLayout(controls)

        self.map_web = QWebEngineView()
        self._init_map()
        map_column.addWidget(self.map_web, 1)
        layout.addLayout(map_column, 3)

        # Right: nearest list + details
        side_column = QVBoxLayout()

        list_label = QLabel("Nearest Containers")
        list_label.setStyleSheet("color: #f8fafc; font-size: 14px; font-weight: bold;")
        side_column.addWidget(list_label)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setStyleSheet("""
            QScrollArea {
                background-color: #0f172a;
                border: 1px solid #334155;
                border-radius: 6px;
            }
        """)
        self.list_container = QWidget()
        self.list_layout = QVBoxLayout(self.list_container)
        self.list_layout.setSpacing(8)
        scroll.setWidget(self.list_container)
        side_column.addWidget(scroll, 1)

        self.detail_panel = DetailPanel()
        self.detail_panel.directionsClicked.connect(self.directionsRequested)
        side_column.addWidget(self.detail_panel)

        side_column.addWidget(self._build_legend())
        layout.addLayout(side_column, 1)

    def _build_legend(self) -> QWidget:
        legend = QWidget()
        legend_layout = QVBoxLayout(legend)
        legend_layout.setContentsMargins(0, 0, 0, 0)
        seen = set()
        for category in FeatureCategory:
            if category.color in seen:
                continue
            seen.add(category.color)
            names = [c.label for c in FeatureCategory if c.color == category.color]
            item = QLabel(f"● {' / '.join(names)}")
            item.setStyleSheet(f"color: {category.color}; font-size: 10px;")
            item.setWordWrap(True)
            legend_layout.addWidget(item)
        return legend

    def _init_map(self):
        """Initialize Leaflet map."""
        page = GeolocationPage(self.map_web)
        self.map_web.setPage(page)

        channel = QWebChannel(page)
        channel.registerObject("bridge", self.map_bridge)
        page.setWebChannel(channel)
        page.loadFinished.connect(self._on_map_loaded)

        html_path = Path(__file__).parent.parent / "assets" / "map" / "leaflet.html"
        self.map_web.load(QUrl.fromLocalFile(str(html_path.absolute())))

    def _on_map_loaded(self, success: bool):
        if not success:
            logger.error("Failed to load map page")
            self.show_notice("Map could not be loaded.")
            return
        self._page_ready = True
        for code in self._pending_js:
            self.map_web.page().runJavaScript(code)
        self._pending_js.clear()
        self.mapReady.emit()

    def _run_js(self, code: str):
        """Run JavaScript now, or once the page has loaded."""
        if self._page_ready:
            self.map_web.page().runJavaScript(code)
        else:
            self._pending_js.append(code)

    def connect_surface(self, surface: QtMapSurface):
        """Render everything the coordinator pushes to the surface."""
        surface.referenceChanged.connect(self.show_reference)
        surface.featuresChanged.connect(self.show_features)
        surface.nearestChanged.connect(self.show_nearest)
        surface.highlightChanged.connect(self.set_highlight)
        surface.detailsChanged.connect(self.detail_panel.show_details)
        surface.detailsCleared.connect(self.detail_panel.clear)
        surface.dropPinModeChanged.connect(self.set_drop_pin_mode)
        surface.noticeRaised.connect(self.show_notice)
        surface.noticeCleared.connect(self.status_label.clear)
        surface.urlRequested.connect(self.open_url)

    def connect_position_source(self, source: BrowserPositionSource):
        source.positionRequested.connect(self.request_device_position)

    def show_reference(self, lat: float, lng: float, radius_m: float):
        self._run_js(f"window.donationMap.setReference({lat}, {lng}, {radius_m});")

    def show_features(self, features):
        payload = json.dumps([
            {
                "id": f.id,
                "lat": f.location.lat,
                "lng": f.location.lng,
                "title": f.title,
                "opening_hours": f.opening_hours,
                "color": f.category.color,
            }
            for f in features
        ])
        self._run_js(f"window.donationMap.setFeatures({payload});")

    def show_nearest(self, ranked):
        """Rebuild the nearest list."""
        while self.list_layout.count():
            item = self.list_layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        if not ranked:
            empty_label = QLabel("No donation containers found within 20 km.")
            empty_label.setStyleSheet("color: #64748b; font-size: 12px; padding: 20px;")
            empty_label.setAlignment(Qt.AlignCenter)
            empty_label.setWordWrap(True)
            self.list_layout.addWidget(empty_label)
            return

        for i, entry in enumerate(ranked, start=1):
            card = NearestCard(i, entry)
            card.clicked.connect(self.featureClicked)
            self.list_layout.addWidget(card)
        self.list_layout.addStretch()

    def set_highlight(self, previous_id, current_id):
        self._run_js(
            f"window.donationMap.setHighlight({json.dumps(previous_id)}, {json.dumps(current_id)});"
        )

    def set_drop_pin_mode(self, enabled: bool):
        self.drop_pin_btn.setChecked(enabled)
        self.drop_pin_btn.setText("Cancel Drop Pin" if enabled else "Drop Pin")
        self._run_js(f"window.donationMap.setDropPinMode({json.dumps(enabled)});")

    def request_device_position(self, timeout_ms: int):
        self._run_js(f"window.donationMap.requestPosition({int(timeout_ms)});")

    def show_notice(self, message: str):
        self.status_label.setText(message)

    def open_url(self, url: str):
        QDesktopServices.openUrl(QUrl(url))

    def _on_drop_pin_clicked(self):
        # Checked state follows the coordinator, not the click
        self.drop_pin_btn.setChecked(not self.drop_pin_btn.isChecked())
        self.dropPinToggled.emit()
