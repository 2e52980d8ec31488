"""Unit tests for the location fallback chain."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from domain.errors import LocationUnavailable
from domain.models import Coordinate
from location.config import DEFAULT_LOCATION
from location.ip_geolocation import IpGeolocator
from location.location_resolver import LocationResolver, LocationSource, is_usable_fix


class StubDevice:
    """Device source returning a fixed coordinate, raising, or never answering."""

    def __init__(self, coord=None, error=None, hang=False):
        self.coord = coord
        self.error = error
        self.hang = hang
        self.calls = 0

    async def current_position(self, timeout):
        self.calls += 1
        if self.hang:
            await asyncio.sleep(60)
        if self.error is not None:
            raise self.error
        return self.coord


class StubIp:
    def __init__(self, coord=None, error=None):
        self.coord = coord
        self.error = error
        self.calls = 0

    async def current_position(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.coord


def resolve(resolver):
    return asyncio.run(resolver.resolve_with_source())


def test_device_fix_wins():
    """Tier 1 success returns immediately without touching the IP tier."""
    ip = StubIp(Coordinate(40.7, -74.0))
    resolver = LocationResolver(device_source=StubDevice(Coordinate(48.2, 17.1)), ip_source=ip)

    resolved = resolve(resolver)

    assert resolved.coordinate == Coordinate(48.2, 17.1)
    assert resolved.source == LocationSource.DEVICE
    assert ip.calls == 0


def test_device_timeout_falls_back_to_ip():
    """Device times out, IP lookup answers (40.7, -74.0)."""
    resolver = LocationResolver(
        device_source=StubDevice(hang=True),
        ip_source=StubIp(Coordinate(40.7, -74.0)),
        device_timeout=0.05,
    )

    resolved = resolve(resolver)

    assert resolved.coordinate == Coordinate(40.7, -74.0)
    assert resolved.source == LocationSource.IP
    print("✓ Device timeout fallback test passed")


def test_device_error_falls_back_to_ip():
    resolver = LocationResolver(
        device_source=StubDevice(error=PermissionError("denied")),
        ip_source=StubIp(Coordinate(40.7, -74.0)),
    )
    assert resolve(resolver).source == LocationSource.IP


def test_zero_device_fix_is_no_fix():
    """A (0, 0) device fix counts as a tier-1 failure."""
    resolver = LocationResolver(
        device_source=StubDevice(Coordinate(0.0, 0.0)),
        ip_source=StubIp(Coordinate(40.7, -74.0)),
    )
    assert resolve(resolver).coordinate == Coordinate(40.7, -74.0)


def test_all_tiers_fail_uses_default():
    resolver = LocationResolver(
        device_source=StubDevice(error=RuntimeError("no gps")),
        ip_source=StubIp(error=LocationUnavailable("offline")),
    )

    resolved = resolve(resolver)

    assert resolved.coordinate == Coordinate(48.1486, 17.1077)
    assert resolved.source == LocationSource.DEFAULT


def test_no_device_source_skips_tier():
    resolver = LocationResolver(device_source=None, ip_source=StubIp(Coordinate(40.7, -74.0)))
    assert resolve(resolver).source == LocationSource.IP


def test_invalid_ip_fix_uses_default():
    resolver = LocationResolver(device_source=None, ip_source=StubIp(Coordinate(123.0, 17.0)))
    assert resolve(resolver).source == LocationSource.DEFAULT


def test_resolve_returns_coordinate():
    resolver = LocationResolver(device_source=None, ip_source=StubIp(error=OSError("down")))
    assert asyncio.run(resolver.resolve()) == DEFAULT_LOCATION


def test_invalid_default_rejected():
    with pytest.raises(LocationUnavailable):
        LocationResolver(default=Coordinate(float("nan"), 17.0), ip_source=StubIp())


@pytest.mark.parametrize(
    "coord,usable",
    [
        (Coordinate(48.1, 17.1), True),
        (Coordinate(0.0, 0.0), False),
        (Coordinate(0.0, 17.1), False),
        (Coordinate(float("nan"), 17.1), False),
        (Coordinate(91.0, 17.1), False),
        (None, False),
    ],
)
def test_is_usable_fix(coord, usable):
    assert is_usable_fix(coord) is usable


def ip_session(payload=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.return_value = payload
        session.get.return_value = response
    return session


def test_ip_geolocator_parses_latitude_longitude():
    geolocator = IpGeolocator(session=ip_session({"ip": "1.2.3.4", "latitude": 40.7, "longitude": -74.0}))
    assert geolocator.lookup() == Coordinate(40.7, -74.0)


def test_ip_geolocator_missing_fields():
    geolocator = IpGeolocator(session=ip_session({"error": True, "reason": "RateLimited"}))
    with pytest.raises(LocationUnavailable):
        geolocator.lookup()


def test_ip_geolocator_network_error():
    geolocator = IpGeolocator(session=ip_session(error=requests.ConnectionError("offline")))
    with pytest.raises(LocationUnavailable):
        geolocator.lookup()


def test_resolver_with_real_ip_geolocator():
    """Device times out and the HTTP IP lookup supplies the position."""
    geolocator = IpGeolocator(session=ip_session({"latitude": 40.7, "longitude": -74.0}))
    resolver = LocationResolver(device_source=StubDevice(hang=True), ip_source=geolocator,
                                device_timeout=0.05)

    assert asyncio.run(resolver.resolve()) == Coordinate(40.7, -74.0)
