#!/usr/bin/env python3
# underzoom/config.py
"""
Config loader/saver and defaults for underzoom.

Goals:
- Single JSON file per user.
- Safe atomic writes.
- Deep-merge of user config over defaults.
- Basic validation with sane fallbacks.
- No external deps.

Usage:
    from underzoom.config import Config, DEFAULT_CONFIG
    cfg = Config.load()                 # ~/.config/underzoom/underzoom.json or OS-specific
    cfg["map"]["lat_range"] = [-60, 75]
    ctx = cfg.context()
    cfg.save()
"""

from __future__ import annotations

import copy
import json
import logging
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from underzoom.transform import CONSTRAINERS, ConstrainSettings, TransformContext, Viewport

log = logging.getLogger(__name__)

# ----------------------------
# Defaults
# ----------------------------

DEFAULT_CONFIG: Dict[str, Any] = {
    "map": {
        "center_lat": 42.3601,           # Boston as neutral starting point
        "center_lon": -71.0589,
        "zoom": 4.0,
        "min_zoom": 0.0,
        "max_zoom": 22.0,
        "tile_size": 512,
        "render_world_copies": True,
        "lng_range": None,                # [west, east] or None
        "lat_range": None,                # [south, north] or None
        "constrain": "underzoom",         # underzoom | identity
    },
    "viewport": {
        "width": 1024.0,                  # world-coordinate units (CSS px)
        "height": 768.0,
    },
    "constrain": {
        "extend": True,
        "extend_scale_percent": 70.0,
        "extend_pan_percent": 0.0,
    },
    "logging": {
        "level": "INFO",
        "file": None,                     # path or None
        "rotate_bytes": 5 * 1024 * 1024,
        "rotate_keep": 3,
    },
}

# ----------------------------
# Helpers
# ----------------------------

def _os_config_home() -> str:
    """Return per-OS config base directory."""
    if platform.system() == "Windows":
        base = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
        return os.path.join(base, "Underzoom")
    if platform.system() == "Darwin":
        return os.path.join(os.path.expanduser("~/Library/Application Support"), "Underzoom")
    return os.path.join(os.path.expanduser("~/.config"), "underzoom")

def _default_config_path() -> str:
    """Resolve default config path, honoring UNDERZOOM_CONFIG env override."""
    env = os.environ.get("UNDERZOOM_CONFIG")
    if env:
        return os.path.expanduser(env)
    return os.path.join(_os_config_home(), "underzoom.json")

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Return deep-merged copy of dicts: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def _atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_cfg_", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise

def _coerce_num(v: Any, default: float, minmax: Optional[Tuple[float, float]] = None) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        return float(default)
    if x != x:  # NaN
        return float(default)
    if minmax:
        lo, hi = minmax
        if x < lo: x = lo
        if x > hi: x = hi
    return x

def _coerce_int(v: Any, default: int, minmax: Optional[Tuple[int, int]] = None) -> int:
    try:
        x = int(v)
    except (TypeError, ValueError):
        return int(default)
    if minmax:
        lo, hi = minmax
        if x < lo: x = lo
        if x > hi: x = hi
    return x

def _coerce_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("1", "true", "yes", "on"): return True
        if s in ("0", "false", "no", "off"): return False
    return default

def _coerce_range(v: Any, minmax: Tuple[float, float]) -> Optional[list]:
    """Return [lo, hi] as floats, or None when v is not a usable pair."""
    if not isinstance(v, (list, tuple)) or len(v) != 2:
        return None
    try:
        a, b = float(v[0]), float(v[1])
    except (TypeError, ValueError):
        return None
    if a != a or b != b:
        return None
    lo, hi = minmax
    return [min(hi, max(lo, a)), min(hi, max(lo, b))]

# ----------------------------
# Validation
# ----------------------------

def _validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return validated copy with fallbacks applied."""
    c = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), copy.deepcopy(cfg or {}))
    for section, defaults in DEFAULT_CONFIG.items():
        if not isinstance(c.get(section), dict):
            c[section] = copy.deepcopy(defaults)
    dm = DEFAULT_CONFIG["map"]

    # map
    m = c["map"]
    m["center_lat"] = _coerce_num(m.get("center_lat"), dm["center_lat"], (-90.0, 90.0))
    m["center_lon"] = _coerce_num(m.get("center_lon"), dm["center_lon"], (-180.0, 180.0))
    m["min_zoom"]   = _coerce_num(m.get("min_zoom"), dm["min_zoom"], (0.0, 24.0))
    m["max_zoom"]   = _coerce_num(m.get("max_zoom"), dm["max_zoom"], (0.0, 24.0))
    if m["min_zoom"] > m["max_zoom"]:
        m["min_zoom"], m["max_zoom"] = m["max_zoom"], m["min_zoom"]
    m["zoom"]       = _coerce_num(m.get("zoom"), dm["zoom"], (m["min_zoom"], m["max_zoom"]))
    m["tile_size"]  = _coerce_int(m.get("tile_size"), dm["tile_size"], (1, 4096))
    m["render_world_copies"] = _coerce_bool(m.get("render_world_copies"), dm["render_world_copies"])
    m["lng_range"]  = _coerce_range(m.get("lng_range"), (-180.0, 180.0))
    m["lat_range"]  = _coerce_range(m.get("lat_range"), (-90.0, 90.0))
    if m.get("constrain") not in CONSTRAINERS:
        m["constrain"] = dm["constrain"]

    # viewport
    vp = c["viewport"]
    vp["width"]  = _coerce_num(vp.get("width"), DEFAULT_CONFIG["viewport"]["width"], (0.0, 100000.0))
    vp["height"] = _coerce_num(vp.get("height"), DEFAULT_CONFIG["viewport"]["height"], (0.0, 100000.0))

    # constrain
    dc = DEFAULT_CONFIG["constrain"]
    cs = c["constrain"]
    cs["extend"] = _coerce_bool(cs.get("extend"), dc["extend"])
    cs["extend_scale_percent"] = _coerce_num(cs.get("extend_scale_percent"), dc["extend_scale_percent"], (0.0, 100.0))
    cs["extend_pan_percent"]   = _coerce_num(cs.get("extend_pan_percent"), dc["extend_pan_percent"], (0.0, 100.0))

    # logging
    lg = c["logging"]
    if lg.get("level") not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
        lg["level"] = DEFAULT_CONFIG["logging"]["level"]
    lf = lg.get("file")
    lg["file"] = str(lf) if lf else None
    lg["rotate_bytes"] = _coerce_int(lg.get("rotate_bytes"), DEFAULT_CONFIG["logging"]["rotate_bytes"], (256 * 1024, 50 * 1024 * 1024))
    lg["rotate_keep"]  = _coerce_int(lg.get("rotate_keep"), DEFAULT_CONFIG["logging"]["rotate_keep"], (0, 50))

    return c

# ----------------------------
# Public API
# ----------------------------

@dataclass
class Config:
    """Thin wrapper around a nested dict with load/save/merge."""
    data: Dict[str, Any] = field(default_factory=lambda: _validate({}))
    path: str = field(default_factory=_default_config_path)

    # --- Mapping-style access
    def __getitem__(self, k: str) -> Any:
        return self.data[k]

    def __setitem__(self, k: str, v: Any) -> None:
        self.data[k] = v

    def get(self, k: str, default: Any = None) -> Any:
        return self.data.get(k, default)

    # --- Ops
    @classmethod
    def load(cls, path: Optional[str] = None, create_if_missing: bool = True) -> "Config":
        cfg_path = os.path.expanduser(path) if path else _default_config_path()
        if not os.path.exists(cfg_path):
            cfg = _validate(DEFAULT_CONFIG)
            if create_if_missing:
                _atomic_write_json(cfg_path, cfg)
            return cls(cfg, cfg_path)

        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                user_cfg = json.load(f)
            if not isinstance(user_cfg, dict):
                raise ValueError("top-level JSON value is not an object")
        except (OSError, ValueError) as exc:
            # Corrupt file. Backup and regenerate.
            backup = cfg_path + ".corrupt.bak"
            log.warning("Config %s unreadable (%s); backing up to %s", cfg_path, exc, backup)
            shutil.copyfile(cfg_path, backup)
            user_cfg = {}

        return cls(_validate(_deep_merge(DEFAULT_CONFIG, user_cfg)), cfg_path)

    def save(self) -> None:
        """Persist to JSON atomically."""
        full = _validate(self.data)
        _atomic_write_json(self.path, full)
        self.data = full  # sync in-memory with normalized values

    def update(self, partial: Dict[str, Any]) -> None:
        """Deep-merge a partial config then validate."""
        merged = _deep_merge(self.data, partial)
        self.data = _validate(merged)

    def diff(self) -> Dict[str, Any]:
        """Return only the values that differ from the defaults."""
        return _diff(_validate(DEFAULT_CONFIG), self.data)

    # --- Conversions into the constraint's value types
    def settings(self) -> ConstrainSettings:
        cs = self.data["constrain"]
        return ConstrainSettings(
            extend=cs["extend"],
            extend_scale_percent=cs["extend_scale_percent"],
            extend_pan_percent=cs["extend_pan_percent"],
        )

    def context(self) -> TransformContext:
        m = self.data["map"]
        vp = self.data["viewport"]
        return TransformContext(
            size=Viewport(vp["width"], vp["height"]),
            min_zoom=m["min_zoom"],
            max_zoom=m["max_zoom"],
            tile_size=m["tile_size"],
            render_world_copies=m["render_world_copies"],
            lng_range=tuple(m["lng_range"]) if m["lng_range"] else None,
            lat_range=tuple(m["lat_range"]) if m["lat_range"] else None,
        )


def _diff(base: Dict[str, Any], cur: Dict[str, Any]) -> Dict[str, Any]:
    """Return nested dictionary of keys where cur differs from base."""
    out: Dict[str, Any] = {}
    for k in cur.keys() | base.keys():
        if k not in base:
            out[k] = cur[k]
            continue
        if k not in cur:
            continue
        vb = base[k]
        vc = cur[k]
        if isinstance(vb, dict) and isinstance(vc, dict):
            d = _diff(vb, vc)
            if d:
                out[k] = d
        elif vb != vc:
            out[k] = vc
    return out

__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "_default_config_path",
]
