import pytest


class RecordingSurface:
    """Map surface that records every call in order."""

    def __init__(self):
        self.calls = []
        self.features = None
        self.nearest = None
        self.details = None
        self.highlighted = set()
        self.notice = None

    def show_reference(self, center, radius_meters):
        self.calls.append(("show_reference", center, radius_meters))

    def show_features(self, features):
        self.calls.append(("show_features", list(features)))
        self.features = list(features)
        self.highlighted = set()

    def show_nearest(self, ranked):
        self.calls.append(("show_nearest", list(ranked)))
        self.nearest = list(ranked)

    def set_highlight(self, previous_id, current_id):
        self.calls.append(("set_highlight", previous_id, current_id))
        if previous_id is not None:
            self.highlighted.discard(previous_id)
        if current_id is not None:
            self.highlighted.add(current_id)

    def show_details(self, details):
        self.calls.append(("show_details", details))
        self.details = details

    def clear_details(self):
        self.calls.append(("clear_details",))
        self.details = None

    def set_drop_pin_mode(self, enabled):
        self.calls.append(("set_drop_pin_mode", enabled))

    def notify(self, message):
        self.calls.append(("notify", message))
        self.notice = message

    def clear_notice(self):
        self.calls.append(("clear_notice",))
        self.notice = None

    def open_url(self, url):
        self.calls.append(("open_url", url))

    def names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def surface():
    return RecordingSurface()
