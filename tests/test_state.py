"""Tests for the camera state that routes changes through the constrain hook."""

import math

import pytest

from underzoom.config import Config
from underzoom.geodesy import mercator_y_from_lat
from underzoom.state import MapState
from underzoom.transform import identity


def make_state(tmp_path, **sections):
    cfg = Config(path=str(tmp_path / "c.json"))
    cfg.update(sections)
    return MapState(cfg)


def test_unconstrained_state_uses_configured_camera(tmp_path):
    state = make_state(tmp_path)
    lat, lon, zoom = state.snapshot()
    assert lat == pytest.approx(42.3601)
    assert lon == pytest.approx(-71.0589)
    assert zoom == 4.0


def test_initial_camera_is_constrained(tmp_path):
    state = make_state(
        tmp_path,
        map={"center_lat": 40.0, "center_lon": 0.0, "zoom": 2, "lat_range": [-10, 10]},
        viewport={"height": 1000},
    )
    extent = (mercator_y_from_lat(-10.0) - mercator_y_from_lat(10.0)) * 2048.0
    assert state.zoom == pytest.approx(2.0 + math.log2(700.0 / extent))
    assert state.lat == pytest.approx(0.0, abs=1e-9)


def test_set_zoom_below_fit_is_pushed_back(tmp_path):
    state = make_state(tmp_path, map={"lat_range": [-10, 10], "center_lat": 0, "center_lon": 0})
    fitted = state.zoom
    assert fitted > 4.0
    state.set_zoom(0.0)
    assert state.zoom == pytest.approx(fitted)
    state.zoom_delta(-5.0)
    assert state.zoom == pytest.approx(fitted)


def test_identity_constrainer_leaves_camera_alone(tmp_path):
    state = make_state(tmp_path, map={"lat_range": [-10, 10], "center_lat": 40, "zoom": 1})
    state.use_constrainer("identity")
    state.set_center(60.0, 100.0)
    state.set_zoom(0.5)
    assert state.constrainer is identity
    assert state.snapshot() == (60.0, 100.0, 0.5)


def test_pan_pixels_moves_center(tmp_path):
    state = make_state(tmp_path, map={"center_lat": 0, "center_lon": 0, "zoom": 0})
    state.pan_pixels(128.0, 0.0)
    assert state.lon == pytest.approx(90.0)
    assert state.lat == pytest.approx(0.0, abs=1e-9)


def test_pan_pixels_stops_at_range_edge(tmp_path):
    state = make_state(
        tmp_path,
        map={"center_lat": 0, "center_lon": 0, "zoom": 4, "lng_range": [-20, 20]},
        viewport={"width": 800, "height": 600},
        constrain={"extend": False},
    )
    state.pan_pixels(1000.0, 0.0)
    assert state.lon == pytest.approx(20.0 - 400.0 * 360.0 / 8192.0)


def test_resize_and_set_ranges_reapply_constraint(tmp_path):
    state = make_state(tmp_path, map={"center_lat": 0, "center_lon": 0, "zoom": 3})
    assert state.zoom == 3.0

    state.set_ranges(None, (-10.0, 10.0))
    zoom_small_screen = state.zoom
    assert zoom_small_screen > 3.0

    state.resize(2048.0, 2000.0)
    assert state.zoom > zoom_small_screen
