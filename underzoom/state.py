#!/usr/bin/env python3
# underzoom/state.py
"""Mutable camera state whose every change goes through the constrain hook."""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple

from underzoom.config import Config
from underzoom.geodesy import GeoCoordinate, project, unproject, zoom_scale
from underzoom.transform import (
    ConstrainSettings,
    Constrainer,
    TransformContext,
    Viewport,
    get_constrainer,
)

log = logging.getLogger(__name__)


@dataclass
class MapState:
    cfg: Config

    # Map view
    lat: float = field(init=False)
    lon: float = field(init=False)
    zoom: float = field(init=False)

    context: TransformContext = field(init=False)
    settings: ConstrainSettings = field(init=False)
    constrainer: Constrainer = field(init=False)

    # Internal lock for multi-thread updates
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self):
        m = self.cfg["map"]
        self.context = self.cfg.context()
        self.settings = self.cfg.settings()
        self.constrainer = get_constrainer(m["constrain"])
        self._apply(GeoCoordinate(float(m["center_lon"]), float(m["center_lat"])), float(m["zoom"]))

    # ------------- constraint -------------

    def _apply(self, center: GeoCoordinate, zoom: float) -> None:
        """Run the request through the constrainer and store the result. Caller holds no lock."""
        result = self.constrainer(center, zoom, self.context, self.settings)
        self.lat = result.center.lat
        self.lon = result.center.lng
        self.zoom = result.zoom
        log.debug("camera lat=%.6f lon=%.6f zoom=%.4f", self.lat, self.lon, self.zoom)

    def use_constrainer(self, name: str) -> None:
        with self._lock:
            self.constrainer = get_constrainer(name)
            self._apply(GeoCoordinate(self.lon, self.lat), self.zoom)

    # ------------- setters -------------

    def set_center(self, lat: float, lon: float) -> None:
        with self._lock:
            self._apply(GeoCoordinate(lon, lat), self.zoom)

    def set_zoom(self, zoom: float) -> None:
        with self._lock:
            self._apply(GeoCoordinate(self.lon, self.lat), zoom)

    def zoom_delta(self, dz: float) -> None:
        with self._lock:
            self._apply(GeoCoordinate(self.lon, self.lat), self.zoom + dz)

    def pan_pixels(self, dx: float, dy: float) -> None:
        """Move the center by (dx, dy) world-coordinate units at the current zoom."""
        with self._lock:
            world_size = self.context.tile_size * zoom_scale(self.zoom)
            p = project(world_size, GeoCoordinate(self.lon, self.lat))
            target = unproject(world_size, dataclasses.replace(p, x=p.x + dx, y=p.y + dy))
            self._apply(target, self.zoom)

    def resize(self, width: float, height: float) -> None:
        with self._lock:
            self.context = dataclasses.replace(self.context, size=Viewport(width, height))
            self._apply(GeoCoordinate(self.lon, self.lat), self.zoom)

    def set_ranges(self, lng_range: Optional[Tuple[float, float]], lat_range: Optional[Tuple[float, float]]) -> None:
        with self._lock:
            self.context = dataclasses.replace(self.context, lng_range=lng_range, lat_range=lat_range)
            self._apply(GeoCoordinate(self.lon, self.lat), self.zoom)

    # ------------- export -------------

    def snapshot(self) -> Tuple[float, float, float]:
        """Return (lat, lon, zoom)."""
        with self._lock:
            return self.lat, self.lon, self.zoom
