#!/usr/bin/env python3
# underzoom/geodesy.py
"""
Geodesy utilities for underzoom.
Handles conversions between longitude/latitude and the Web Mercator world
coordinate plane (size = tile_size * 2**zoom, origin at the north-west corner).
"""

import math
from dataclasses import dataclass

__all__ = [
    "GeoCoordinate",
    "WorldPoint",
    "MAX_LAT",
    "clamp",
    "clamp_lat",
    "wrap",
    "wrap_lon",
    "mercator_x_from_lng",
    "mercator_y_from_lat",
    "lng_from_mercator_x",
    "lat_from_mercator_y",
    "project",
    "unproject",
    "zoom_scale",
    "scale_zoom",
]

# Web Mercator valid latitude limit
MAX_LAT = 85.051129


def clamp(n: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, n))


def clamp_lat(lat: float) -> float:
    """Clamp latitude to Web Mercator valid range."""
    return clamp(lat, -MAX_LAT, MAX_LAT)


def wrap(n: float, lo: float, hi: float) -> float:
    """
    Wrap n into the window [lo, hi) using a true modulo.
    A result landing exactly on lo is returned as hi.
    """
    w = (n - lo) % (hi - lo) + lo
    return hi if w == lo else w


def wrap_lon(lng: float) -> float:
    """Wrap longitude to its canonical representation."""
    return wrap(lng, -180.0, 180.0)


@dataclass(frozen=True)
class GeoCoordinate:
    lng: float
    lat: float

    def wrap(self) -> "GeoCoordinate":
        return GeoCoordinate(wrap_lon(self.lng), self.lat)


@dataclass(frozen=True)
class WorldPoint:
    x: float
    y: float


def mercator_x_from_lng(lng: float) -> float:
    return (180.0 + lng) / 360.0


def mercator_y_from_lat(lat: float) -> float:
    # Callers clamp lat first; tan(pi/2) is the pole singularity.
    return (180.0 - (180.0 / math.pi * math.log(math.tan(math.pi / 4 + lat * math.pi / 360.0)))) / 360.0


def lng_from_mercator_x(x: float) -> float:
    return x * 360.0 - 180.0


def lat_from_mercator_y(y: float) -> float:
    y2 = 180.0 - y * 360.0
    return 360.0 / math.pi * math.atan(math.exp(y2 * math.pi / 180.0)) - 90.0


def project(world_size: float, coord: GeoCoordinate) -> WorldPoint:
    """
    Project a geographic coordinate into world coordinates for world_size.
    Latitude is clamped to the Mercator bound, never rejected.
    """
    lat = clamp_lat(coord.lat)
    return WorldPoint(
        mercator_x_from_lng(coord.lng) * world_size,
        mercator_y_from_lat(lat) * world_size,
    )


def unproject(world_size: float, point: WorldPoint) -> GeoCoordinate:
    """
    Inverse of project(); the returned longitude is wrapped.
    """
    coord = GeoCoordinate(
        lng_from_mercator_x(point.x / world_size),
        lat_from_mercator_y(point.y / world_size),
    )
    return coord.wrap()


def zoom_scale(zoom: float) -> float:
    return 2.0 ** zoom


def scale_zoom(scale: float) -> float:
    return math.log2(scale)
