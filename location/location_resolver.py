"""
Best-effort resolution of the user's current position.

Tiers are tried in order and the first usable coordinate wins:

1. Device position (high accuracy, no cached fix, bounded wait)
2. Approximate position from the public IP address
3. Fixed default location

A failing tier is logged and skipped; ``resolve`` always returns a coordinate.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from domain.errors import LocationUnavailable
from domain.models import Coordinate
from location.config import DEFAULT_LOCATION, DEVICE_TIMEOUT_S
from location.ip_geolocation import IpGeolocator

logger = logging.getLogger(__name__)


class DevicePositionSource(Protocol):
    """Platform location API."""

    async def current_position(self, timeout: float) -> Coordinate:
        """Return a fresh high-accuracy fix or raise."""
        ...


class IpPositionSource(Protocol):
    async def current_position(self) -> Coordinate:
        ...


class LocationSource(Enum):
    """Which tier produced the coordinate."""
    DEVICE = "device"
    IP = "ip"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedLocation:
    coordinate: Coordinate
    source: LocationSource


def is_usable_fix(coord: Optional[Coordinate]) -> bool:
    """
    Check a device/IP fix.

    A component that is missing, NaN or exactly zero counts as "no fix":
    platforms report (0, 0) when they have nothing.
    """
    if coord is None or not isinstance(coord, Coordinate):
        return False
    for value in (coord.lat, coord.lng):
        if value is None:
            return False
        try:
            value = float(value)
        except (TypeError, ValueError):
            return False
        if math.isnan(value) or value == 0.0:
            return False
    return coord.is_valid()


class LocationResolver:
    """Resolves the current position through the device, IP and default tiers."""

    def __init__(self,
                 device_source: Optional[DevicePositionSource] = None,
                 ip_source: Optional[IpPositionSource] = None,
                 default: Coordinate = DEFAULT_LOCATION,
                 device_timeout: float = DEVICE_TIMEOUT_S):
        """
        Args:
            device_source: Device location provider (tier skipped if None)
            ip_source: IP geolocation provider (defaults to IpGeolocator)
            default: Last-resort coordinate
            device_timeout: Maximum wait for a device fix, in seconds

        Raises:
            LocationUnavailable: if the default coordinate is invalid
        """
        if default is None or not default.is_valid():
            raise LocationUnavailable(f"Default location is invalid: {default!r}")

        self.device_source = device_source
        self.ip_source = ip_source if ip_source is not None else IpGeolocator()
        self.default = default
        self.device_timeout = device_timeout

    async def from_device(self) -> Optional[Coordinate]:
        """Tier 1: device fix within the bounded wait."""
        if self.device_source is None:
            return None
        try:
            coord = await asyncio.wait_for(
                self.device_source.current_position(self.device_timeout),
                timeout=self.device_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Device location timed out after {self.device_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"Device location unavailable: {e}")
            return None

        if not is_usable_fix(coord):
            logger.warning(f"Device reported no usable fix: {coord!r}")
            return None
        return coord

    async def from_ip(self) -> Optional[Coordinate]:
        """Tier 2: approximate IP-based location."""
        if self.ip_source is None:
            return None
        try:
            coord = await self.ip_source.current_position()
        except Exception as e:
            logger.warning(f"IP geolocation unavailable: {e}")
            return None

        if not is_usable_fix(coord):
            logger.warning(f"IP geolocation returned no usable fix: {coord!r}")
            return None
        return coord

    async def resolve_with_source(self) -> ResolvedLocation:
        """Run the tiers in order and report which one answered."""
        coord = await self.from_device()
        if coord is not None:
            logger.info(f"Using device location ({coord.lat:.5f}, {coord.lng:.5f})")
            return ResolvedLocation(coord, LocationSource.DEVICE)

        coord = await self.from_ip()
        if coord is not None:
            logger.info(f"Using IP-based location ({coord.lat:.4f}, {coord.lng:.4f})")
            return ResolvedLocation(coord, LocationSource.IP)

        logger.info(f"Using default location ({self.default.lat}, {self.default.lng})")
        return ResolvedLocation(self.default, LocationSource.DEFAULT)

    async def resolve(self) -> Coordinate:
        """Best-effort current position; never raises."""
        resolved = await self.resolve_with_source()
        return resolved.coordinate
