"""
Worker thread hosting the asyncio loop that owns the map state.
"""
import asyncio
import logging
import threading
from typing import Callable, Optional

from PyQt5.QtCore import QThread, pyqtSignal

from domain.models import Coordinate
from ui.map_coordinator import MapViewCoordinator
from utils.event_loop import create_loop, shutdown_loop

logger = logging.getLogger(__name__)


class CoordinatorWorker(QThread):
    """
    Runs MapViewCoordinator on its own event loop.

    GUI events are handed to the loop with call_soon_threadsafe, so every
    coordinator method runs on this one thread.
    """

    ready = pyqtSignal()

    def __init__(self, coordinator_factory: Callable[[], MapViewCoordinator]):
        super().__init__()
        self.coordinator_factory = coordinator_factory
        self.coordinator: Optional[MapViewCoordinator] = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = threading.Event()

    def run(self):
        """Event loop."""
        self.loop, executor = create_loop()
        asyncio.set_event_loop(self.loop)
        self.coordinator = self.coordinator_factory()
        self._started.set()
        self.ready.emit()

        try:
            self.loop.run_forever()
        finally:
            shutdown_loop(self.loop, executor)

    def _submit(self, method_name: str, *args):
        if not self._started.is_set() or self.loop is None:
            logger.warning(f"Coordinator not running, dropping {method_name}")
            return
        method = getattr(self.coordinator, method_name)
        self.loop.call_soon_threadsafe(method, *args)

    def locate_user(self):
        self._submit("request_locate")

    def select_feature(self, feature_id: str):
        self._submit("select_feature", feature_id)

    def toggle_drop_pin(self):
        self._submit("toggle_drop_pin")

    def map_clicked(self, lat: float, lng: float):
        self._submit("on_map_click", Coordinate(lat, lng))

    def open_directions(self, feature_id: str):
        self._submit("open_directions", feature_id)

    def stop(self):
        """Stop the loop and wait for the thread."""
        if self.loop is not None and self.loop.is_running():
            self.loop.call_soon_threadsafe(self.loop.stop)
        self.wait()
