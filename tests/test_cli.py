"""Tests for the command-line entry point."""

import json
import math

import pytest

from underzoom import cli
from underzoom.geodesy import mercator_y_from_lat


def run_json(capsys, tmp_path, *argv):
    code = cli.main([*argv, "--json", "--config", str(tmp_path / "missing.json")])
    assert code == 0
    return json.loads(capsys.readouterr().out)


def test_unconstrained_request_is_echoed(capsys, tmp_path):
    out = run_json(capsys, tmp_path, "-71.0589", "42.3601", "5")
    assert out == {"center": {"lng": -71.0589, "lat": 42.3601}, "zoom": 5.0}


def test_lat_range_zooms_in(capsys, tmp_path):
    out = run_json(
        capsys, tmp_path, "0", "0", "2",
        "--lat-range", "-10", "10", "--height", "1000", "--tile-size", "512",
    )
    extent = (mercator_y_from_lat(-10.0) - mercator_y_from_lat(10.0)) * 2048.0
    assert out["zoom"] == pytest.approx(2.0 + math.log2(700.0 / extent))
    assert out["center"]["lat"] == pytest.approx(0.0, abs=1e-9)


def test_hard_clamp_flag(capsys, tmp_path):
    out = run_json(
        capsys, tmp_path, "90.3125", "0", "4",
        "--lng-range", "-20", "20", "--width", "800", "--height", "600", "--no-extend",
    )
    assert out["zoom"] == 4.0
    assert out["center"]["lng"] == pytest.approx(20.0 - 400.0 * 360.0 / 8192.0)


def test_identity_flag_skips_constraint(capsys, tmp_path):
    out = run_json(capsys, tmp_path, "0", "40", "1", "--lat-range", "-10", "10", "--identity")
    assert out == {"center": {"lng": 0.0, "lat": 40.0}, "zoom": 1.0}


def test_zoom_defaults_to_config(capsys, tmp_path):
    out = run_json(capsys, tmp_path, "10", "10")
    assert out["zoom"] == 4.0


def test_overrides_from_args():
    args = cli.build_parser().parse_args(
        ["1", "2", "--lng-range", "170", "-170", "--no-world-copies", "--pan-percent", "30"]
    )
    assert cli.overrides_from_args(args) == {
        "map": {"lng_range": [170.0, -170.0], "render_world_copies": False},
        "constrain": {"extend_pan_percent": 30.0},
    }


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert "underzoom v" in capsys.readouterr().out
