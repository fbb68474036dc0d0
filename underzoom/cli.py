#!/usr/bin/env python3
# underzoom/cli.py
"""
Entry point for underzoom.
Loads configuration, applies command-line overrides and prints the
constrained camera for one requested center/zoom.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import HTML

from underzoom.config import Config
from underzoom.geodesy import GeoCoordinate
from underzoom.logging_conf import setup_logging
from underzoom.transform import get_constrainer
from underzoom.version import version_info

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="underzoom",
        description="Constrain a map camera (center + zoom) to longitude/latitude ranges.",
    )
    ap.add_argument("lng", type=float, help="Requested center longitude")
    ap.add_argument("lat", type=float, help="Requested center latitude")
    ap.add_argument("zoom", type=float, nargs="?", default=None, help="Requested zoom (default: config map.zoom)")
    ap.add_argument("--config", default=None, help="Config JSON path (default: per-user config)")
    ap.add_argument("--width", type=float, default=None, help="Viewport width")
    ap.add_argument("--height", type=float, default=None, help="Viewport height")
    ap.add_argument("--tile-size", type=int, default=None)
    ap.add_argument("--min-zoom", type=float, default=None)
    ap.add_argument("--max-zoom", type=float, default=None)
    ap.add_argument("--lng-range", type=float, nargs=2, metavar=("WEST", "EAST"), default=None)
    ap.add_argument("--lat-range", type=float, nargs=2, metavar=("SOUTH", "NORTH"), default=None)
    ap.add_argument("--no-world-copies", action="store_true", help="Disable world-copy rendering")
    ap.add_argument("--no-extend", action="store_true", help="Hard clamp: no overshoot or overpan")
    ap.add_argument("--scale-percent", type=float, default=None, help="extend_scale_percent (0-100)")
    ap.add_argument("--pan-percent", type=float, default=None, help="extend_pan_percent (0-100)")
    ap.add_argument("--identity", action="store_true", help="Use the unconstrained pass-through")
    ap.add_argument("--json", action="store_true", help="Print the result as JSON")
    ap.add_argument("--log-level", default=None, help="Override logging.level")
    ap.add_argument("--version", action="version", version=version_info())
    return ap


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command-line options into a partial config."""
    m: Dict[str, Any] = {}
    vp: Dict[str, Any] = {}
    cs: Dict[str, Any] = {}
    if args.width is not None:
        vp["width"] = args.width
    if args.height is not None:
        vp["height"] = args.height
    if args.tile_size is not None:
        m["tile_size"] = args.tile_size
    if args.min_zoom is not None:
        m["min_zoom"] = args.min_zoom
    if args.max_zoom is not None:
        m["max_zoom"] = args.max_zoom
    if args.lng_range is not None:
        m["lng_range"] = list(args.lng_range)
    if args.lat_range is not None:
        m["lat_range"] = list(args.lat_range)
    if args.no_world_copies:
        m["render_world_copies"] = False
    if args.identity:
        m["constrain"] = "identity"
    if args.no_extend:
        cs["extend"] = False
    if args.scale_percent is not None:
        cs["extend_scale_percent"] = args.scale_percent
    if args.pan_percent is not None:
        cs["extend_pan_percent"] = args.pan_percent

    out: Dict[str, Any] = {}
    if m:
        out["map"] = m
    if vp:
        out["viewport"] = vp
    if cs:
        out["constrain"] = cs
    return out


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = Config.load(args.config, create_if_missing=False)
    cfg.update(overrides_from_args(args))
    setup_logging(cfg, args.log_level)

    zoom = args.zoom if args.zoom is not None else cfg["map"]["zoom"]
    request = GeoCoordinate(args.lng, args.lat)
    constrainer = get_constrainer(cfg["map"]["constrain"])
    result = constrainer(request, zoom, cfg.context(), cfg.settings())
    log.info("%s: (%.6f, %.6f, z%.4f) -> (%.6f, %.6f, z%.4f)",
             cfg["map"]["constrain"], request.lng, request.lat, zoom,
             result.center.lng, result.center.lat, result.zoom)

    if args.json:
        print(json.dumps({
            "center": {"lng": result.center.lng, "lat": result.center.lat},
            "zoom": result.zoom,
        }))
        return 0

    changed = (result.center != request) or (result.zoom != zoom)
    tag = "ansiyellow" if changed else "ansigreen"
    print_formatted_text(HTML(
        f"<b>center</b> lng={result.center.lng:.6f} lat={result.center.lat:.6f} "
        f"<b>zoom</b> {result.zoom:.4f}  <{tag}>{'constrained' if changed else 'unchanged'}</{tag}>"
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
