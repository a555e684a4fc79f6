"""Geographic helpers on WGS-84 degree coordinates.

Functions accept any object exposing ``latitude`` and ``longitude``
attributes (Position, Anchor, PhantomLocation).
"""

from __future__ import annotations

import math
from typing import Iterable, Protocol

from aethereal_drift.models import BearingInfo

EARTH_RADIUS = 6_371_000  # meters

_DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


class Coordinate(Protocol):
    latitude: float
    longitude: float


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters (haversine)."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude))
        * math.cos(math.radians(b.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from a to b in degrees, [0, 360).

    bearing(a, a) is 0 but callers should not rely on it.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        d_lon
    )
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def tile_key(position: Coordinate, precision: int = 3) -> str:
    """Coarse spatial hash used as an anchor cache key.

    Latitude and longitude are rounded independently, so this is not a
    geohash: neighbouring cells share no prefix.
    """
    factor = 10**precision
    return f"{round(position.latitude * factor)}_{round(position.longitude * factor)}"


def has_moved_significantly(
    previous: Coordinate | None,
    current: Coordinate,
    threshold: float,
) -> bool:
    """True if there is no previous position or we moved at least threshold meters."""
    if previous is None:
        return True
    return distance(previous, current) >= threshold


def centroid(points: Iterable[Coordinate]) -> tuple[float, float]:
    """Unweighted mean of latitudes and longitudes."""
    points = list(points)
    if not points:
        raise ValueError("Cannot find centroid of no points")
    lat = sum(p.latitude for p in points) / len(points)
    lon = sum(p.longitude for p in points) / len(points)
    return lat, lon


def compass_direction(degrees: float) -> str:
    return _DIRECTIONS[round(degrees / 45) % 8]


def bearing_info(observer: Coordinate, anchor) -> BearingInfo:
    """Bearing and compass direction from observer to anchor.

    The distance is the one reported with the anchor, not recomputed.
    """
    b = bearing(observer, anchor)
    return BearingInfo(bearing=b, distance=anchor.distance, direction=compass_direction(b))


def format_coordinates(lat: float, lon: float) -> str:
    lat_dir = "N" if lat >= 0 else "S"
    lon_dir = "E" if lon >= 0 else "W"
    return f"{abs(lat):.4f}° {lat_dir}, {abs(lon):.4f}° {lon_dir}"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
