#!/usr/bin/env python3
# underzoom/transform.py
"""
Camera constraint for the map transform.

Keeps the visible viewport inside the configured longitude/latitude ranges.
When a range would render smaller than the viewport the camera zooms in until
it fits (underzoom prevention); otherwise the center is panned back so the
range edge lines up with the viewport edge, with an optional overpan
tolerance.

Usage:
    from underzoom.transform import TransformContext, Viewport, constrain
    ctx = TransformContext(size=Viewport(800, 600), lat_range=(-10.0, 10.0))
    result = constrain(GeoCoordinate(0.0, 40.0), 2.0, ctx)
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from underzoom.geodesy import (
    GeoCoordinate,
    WorldPoint,
    clamp,
    clamp_lat,
    mercator_x_from_lng,
    mercator_y_from_lat,
    project,
    scale_zoom,
    unproject,
    wrap,
    zoom_scale,
)

log = logging.getLogger(__name__)

Range = Tuple[float, float]

# Stand-in longitude range when world copies are off and none is configured;
# keeps panning from wrapping past the map edge.
ALMOST_180 = 180.0 - 1e-10


# ----------------------------
# Settings
# ----------------------------

@dataclass(frozen=True)
class ConstrainSettings:
    extend: bool = True                  # allow the viewport past the ranges at all
    extend_scale_percent: float = 70.0   # viewport share a range must cover before zoom-to-fit
    extend_pan_percent: float = 0.0      # overpan, as a share of half the viewport


DEFAULT_SETTINGS = ConstrainSettings()
_settings = DEFAULT_SETTINGS


def get_settings() -> ConstrainSettings:
    """Return the process-wide settings used when none are passed explicitly."""
    return _settings


def set_settings(settings: Optional[ConstrainSettings] = None, **changes) -> ConstrainSettings:
    """
    Replace the process-wide settings.
    Either pass a whole ConstrainSettings, field changes, or both
    (changes are applied on top of the given or current value).
    """
    global _settings
    base = settings if settings is not None else _settings
    _settings = dataclasses.replace(base, **changes) if changes else base
    return _settings


def reset_settings() -> ConstrainSettings:
    return set_settings(DEFAULT_SETTINGS)


# ----------------------------
# Value types
# ----------------------------

@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


@dataclass(frozen=True)
class TransformContext:
    """Camera limits and screen size the constraint is evaluated against."""
    size: Viewport
    min_zoom: float = 0.0
    max_zoom: float = 22.0
    tile_size: int = 512
    render_world_copies: bool = True
    lng_range: Optional[Range] = None    # (west, east)
    lat_range: Optional[Range] = None    # (south, north)

    def __post_init__(self):
        if self.tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {self.tile_size!r}")
        if self.min_zoom > self.max_zoom:
            raise ValueError(f"min_zoom {self.min_zoom!r} is above max_zoom {self.max_zoom!r}")


@dataclass(frozen=True)
class AxisFit:
    """World-coordinate span of one range axis and the scale needed to fit it."""
    lo: float
    hi: float
    scale: float = 0.0   # 0 when the range already fits

    @property
    def extent(self) -> float:
        return self.hi - self.lo

    @property
    def mid(self) -> float:
        return (self.lo + self.hi) / 2.0


@dataclass(frozen=True)
class ConstrainResult:
    center: GeoCoordinate
    zoom: float


# ----------------------------
# Range fit
# ----------------------------

def underzoom_factor(settings: ConstrainSettings) -> float:
    """Share of the viewport a range must cover before it counts as fitting."""
    if not settings.extend:
        return 1.0
    return clamp(settings.extend_scale_percent, 0, 100) / 100.0


def _fit_scale(extent: float, viewport_extent: float, factor: float) -> float:
    target = factor * viewport_extent
    if target <= 0 or extent >= target:
        return 0.0
    if extent <= 0:
        # Zero-width range: no finite zoom fits it.
        return math.inf
    return target / extent


def fit_lat_range(lat_range: Range, world_size: float, viewport_height: float, factor: float) -> AxisFit:
    """
    Evaluate a (south, north) range against the viewport height.
    Mercator y grows southward, so north maps to the smaller y.
    """
    south, north = lat_range
    min_y = mercator_y_from_lat(clamp_lat(north)) * world_size
    max_y = mercator_y_from_lat(clamp_lat(south)) * world_size
    if max_y < min_y:
        min_y, max_y = max_y, min_y
    return AxisFit(min_y, max_y, _fit_scale(max_y - min_y, viewport_height, factor))


def fit_lng_range(lng_range: Range, world_size: float, viewport_width: float, factor: float) -> AxisFit:
    """
    Evaluate a (west, east) range against the viewport width.
    Ranges crossing the antimeridian get east shifted by one world.
    """
    west, east = lng_range
    min_x = wrap(mercator_x_from_lng(west) * world_size, 0, world_size)
    max_x = wrap(mercator_x_from_lng(east) * world_size, 0, world_size)
    # Distinct endpoints landing on the same x span the whole world.
    if max_x < min_x or (max_x == min_x and west != east):
        max_x += world_size
    return AxisFit(min_x, max_x, _fit_scale(max_x - min_x, viewport_width, factor))


def effective_lng_range(context: TransformContext) -> Optional[Range]:
    if context.lng_range is None and not context.render_world_copies:
        return (-ALMOST_180, ALMOST_180)
    return context.lng_range


def combine_scales(scale_x: float, scale_y: float, extend: bool) -> float:
    """
    Pick the zoom scale from the per-axis scales; zero entries mean the axis
    fits and are ignored.  With extend the more permissive axis wins,
    otherwise both axes must fit.
    """
    scales = [s for s in (scale_x, scale_y) if s > 0]
    if not scales:
        return 0.0
    return min(scales) if extend else max(scales)


# ----------------------------
# Resolver
# ----------------------------

def _overpan(settings: ConstrainSettings, extent: float, viewport_extent: float) -> float:
    if not settings.extend:
        return 0.0
    overpan = clamp(settings.extend_pan_percent, 0, 100) / 100.0
    # Never forbid reaching the true edge of a range only slightly larger than the viewport.
    minimum_pan = 1.0 - extent / viewport_extent
    return max(minimum_pan, overpan)


def _clamp_axis(pos: float, fit: AxisFit, viewport_extent: float, overpan: float) -> Optional[float]:
    """Return the clamped position, or None when the viewport stays inside the range."""
    half = (1.0 - overpan) * viewport_extent / 2.0
    clamped = None
    if pos - half < fit.lo:
        clamped = fit.lo + half
    if pos + half > fit.hi:
        clamped = fit.hi - half
    return clamped


def constrain(
    center: GeoCoordinate,
    zoom: float,
    context: TransformContext,
    settings: Optional[ConstrainSettings] = None,
) -> ConstrainResult:
    """
    Return the center/zoom closest to the request that keeps the viewport
    inside context.lng_range / context.lat_range.
    """
    if settings is None:
        settings = _settings

    zoom = clamp(float(zoom), context.min_zoom, context.max_zoom)
    world_size = context.tile_size * zoom_scale(zoom)
    width = context.size.width
    height = context.size.height
    factor = underzoom_factor(settings)

    lat_fit: Optional[AxisFit] = None
    lng_fit: Optional[AxisFit] = None
    if context.lat_range is not None:
        lat_fit = fit_lat_range(context.lat_range, world_size, height, factor)
    lng_range = effective_lng_range(context)
    if lng_range is not None:
        lng_fit = fit_lng_range(lng_range, world_size, width, factor)

    scale_x = lng_fit.scale if lng_fit else 0.0
    scale_y = lat_fit.scale if lat_fit else 0.0
    original = project(world_size, center)

    scale = combine_scales(scale_x, scale_y, settings.extend)
    if scale > 0:
        # Zoom in to exclude everything beyond the ranges.
        point = WorldPoint(
            lng_fit.mid if scale_x else original.x,
            lat_fit.mid if scale_y else original.y,
        )
        if math.isinf(scale):
            new_zoom = context.max_zoom
        else:
            new_zoom = min(zoom + scale_zoom(scale), context.max_zoom)
        log.debug("zoom-to-fit: scale_x=%s scale_y=%s zoom %.4f -> %.4f", scale_x, scale_y, zoom, new_zoom)
        return ConstrainResult(unproject(world_size, point), new_zoom)

    modified_x: Optional[float] = None
    modified_y: Optional[float] = None

    if lat_fit is not None and height > 0:
        overpan = _overpan(settings, lat_fit.extent, height)
        modified_y = _clamp_axis(original.y, lat_fit, height, overpan)

    if lng_fit is not None and width > 0:
        x = original.x
        if context.render_world_copies:
            x = wrap(x, lng_fit.mid - world_size / 2.0, lng_fit.mid + world_size / 2.0)
        overpan = _overpan(settings, lng_fit.extent, width)
        modified_x = _clamp_axis(x, lng_fit, width, overpan)

    if modified_x is None and modified_y is None:
        return ConstrainResult(center, zoom)

    point = WorldPoint(
        original.x if modified_x is None else modified_x,
        original.y if modified_y is None else modified_y,
    )
    log.debug("pan-within-bounds: (%.2f, %.2f) -> (%.2f, %.2f)", original.x, original.y, point.x, point.y)
    return ConstrainResult(unproject(world_size, point), zoom)


def identity(
    center: GeoCoordinate,
    zoom: Optional[float] = None,
    context: Optional[TransformContext] = None,
    settings: Optional[ConstrainSettings] = None,
) -> ConstrainResult:
    """Unconstrained pass-through with the same call shape as constrain()."""
    return ConstrainResult(center, 0.0 if zoom is None else zoom)


Constrainer = Callable[..., ConstrainResult]

CONSTRAINERS: Dict[str, Constrainer] = {
    "underzoom": constrain,
    "identity": identity,
}


def get_constrainer(name: str) -> Constrainer:
    try:
        return CONSTRAINERS[name]
    except KeyError:
        raise ValueError(f"unknown constrainer {name!r}; expected one of {sorted(CONSTRAINERS)}") from None


__all__ = [
    "AxisFit",
    "CONSTRAINERS",
    "ConstrainResult",
    "ConstrainSettings",
    "DEFAULT_SETTINGS",
    "TransformContext",
    "Viewport",
    "combine_scales",
    "constrain",
    "effective_lng_range",
    "fit_lat_range",
    "fit_lng_range",
    "get_constrainer",
    "get_settings",
    "identity",
    "reset_settings",
    "set_settings",
    "underzoom_factor",
]
