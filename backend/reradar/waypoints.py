"""
waypoints.py
~~~~~~~~~~~~
Read the user's saved waypoints from ``waypoints.json`` in their config
directory.

* Directory: ``$RERADAR_CONFIG_DIR``, else ``$XDG_CONFIG_HOME``, else
  ``~/.config``.
* File shape: ``[{"name": str, "latitude": float, "longitude": float}, …]``.
* Read-only. A missing or broken file is logged and yields ``[]``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Final, TypedDict

LOG = logging.getLogger("waypoints")

FILE_NAME: Final = "waypoints.json"


class Waypoint(TypedDict):
    name: str
    latitude: float
    longitude: float


def config_dir() -> Path:
    """Per-user configuration directory (not created)."""
    for var in ("RERADAR_CONFIG_DIR", "XDG_CONFIG_HOME"):
        value = os.getenv(var)
        if value:
            return Path(value).expanduser()
    return Path.home() / ".config"


def _coerce(entry: Any) -> Waypoint | None:
    if not isinstance(entry, dict):
        return None
    try:
        return Waypoint(
            name=str(entry.get("name") or ""),
            latitude=float(entry["latitude"]),
            longitude=float(entry["longitude"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def read_waypoints(path: Path | None = None) -> list[Waypoint]:
    """
    Return every valid waypoint stored in *path* (default: user config).

    Entries without numeric coordinates are dropped.
    """
    path = path or config_dir() / FILE_NAME
    LOG.info("[waypoints] loading from %s", path)

    if not path.exists():
        LOG.warning("[waypoints] %s does not exist", path)
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOG.warning("[waypoints] cannot read %s: %s", path, exc)
        return []

    if not isinstance(data, list):
        LOG.warning("[waypoints] %s is not a JSON list", path)
        return []

    waypoints = [wp for wp in map(_coerce, data) if wp is not None]
    if len(waypoints) != len(data):
        LOG.warning("[waypoints] skipped %d malformed entries", len(data) - len(waypoints))
    return waypoints


__all__ = ["Waypoint", "config_dir", "read_waypoints"]
