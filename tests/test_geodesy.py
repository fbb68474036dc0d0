"""Tests for the Web Mercator projection helpers."""

import pytest

from underzoom.geodesy import (
    MAX_LAT,
    GeoCoordinate,
    WorldPoint,
    clamp_lat,
    project,
    scale_zoom,
    unproject,
    wrap,
    wrap_lon,
    zoom_scale,
)


@pytest.mark.parametrize(
    "n, expected",
    [
        (190.0, -170.0),
        (-190.0, 170.0),
        (45.0, 45.0),
        (-180.0, 180.0),
        (180.0, 180.0),
        (540.0, 180.0),
        (-900.0, 180.0),
    ],
)
def test_wrap_longitude_window(n, expected):
    assert wrap(n, -180.0, 180.0) == pytest.approx(expected)


def test_wrap_handles_negative_input_as_true_modulo():
    assert wrap(-5.0, 0.0, 360.0) == pytest.approx(355.0)
    assert wrap(725.0, 0.0, 360.0) == pytest.approx(5.0)


def test_wrap_result_on_lower_edge_becomes_upper_edge():
    assert wrap(0.0, 0.0, 512.0) == 512.0
    assert wrap(1024.0, 0.0, 512.0) == 512.0


def test_geo_coordinate_wrap_keeps_latitude():
    assert GeoCoordinate(190.0, 10.0).wrap() == GeoCoordinate(-170.0, 10.0)
    assert wrap_lon(-170.0) == -170.0


def test_clamp_lat_bounds():
    assert clamp_lat(-100.0) == -MAX_LAT
    assert clamp_lat(91.0) == MAX_LAT
    assert clamp_lat(12.5) == 12.5


def test_project_origin_and_corners():
    p = project(512.0, GeoCoordinate(0.0, 0.0))
    assert p.x == pytest.approx(256.0)
    assert p.y == pytest.approx(256.0)

    nw = project(512.0, GeoCoordinate(-180.0, MAX_LAT))
    assert nw.x == pytest.approx(0.0)
    assert nw.y == pytest.approx(0.0, abs=1e-3)


def test_project_clamps_latitude_beyond_pole():
    assert project(1024.0, GeoCoordinate(0.0, 90.0)) == project(1024.0, GeoCoordinate(0.0, MAX_LAT))
    assert project(1024.0, GeoCoordinate(0.0, -95.0)) == project(1024.0, GeoCoordinate(0.0, -MAX_LAT))


def test_project_scales_linearly_with_world_size():
    c = GeoCoordinate(13.4, 52.5)
    small = project(512.0, c)
    big = project(4096.0, c)
    assert big.x == pytest.approx(small.x * 8)
    assert big.y == pytest.approx(small.y * 8)


@pytest.mark.parametrize(
    "lng, lat",
    [(0.0, 0.0), (-71.0589, 42.3601), (151.2, -33.87), (179.5, 85.0), (-179.5, -85.0)],
)
def test_unproject_inverts_project(lng, lat):
    world_size = 512.0 * zoom_scale(7)
    back = unproject(world_size, project(world_size, GeoCoordinate(lng, lat)))
    assert back.lng == pytest.approx(lng, abs=1e-6)
    assert back.lat == pytest.approx(lat, abs=1e-6)


def test_unproject_wraps_longitude():
    coord = unproject(512.0, WorldPoint(512.0 + 128.0, 256.0))
    assert coord.lng == pytest.approx(-90.0)
    assert coord.lat == pytest.approx(0.0, abs=1e-9)


def test_zoom_scale_and_scale_zoom_are_inverse():
    assert zoom_scale(3) == 8.0
    assert scale_zoom(8.0) == pytest.approx(3.0)
    assert scale_zoom(zoom_scale(2.75)) == pytest.approx(2.75)
