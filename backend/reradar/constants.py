# backend/reradar/constants.py

"""
Global constants used across modules: protocol fallbacks, unit conversions
and the handful of environment-driven settings.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

load_dotenv()

USER_AGENT: Final = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36 reradar/0.4"
)

# ── Display fallbacks ────────────────────────────────────────────────────
NOT_AVAILABLE: Final = "N/A"
PRIVATE_OWNER: Final = "private owner"
ROUTE_SEPARATOR: Final = "->"

# ── Units ────────────────────────────────────────────────────────────────
EARTH_RADIUS_NM: Final[float] = 3440.069
NM_TO_METERS: Final[int] = 1852

# ── Environment ──────────────────────────────────────────────────────────
HOST: Final = os.getenv("RERADAR_HOST", "127.0.0.1")
PORT: Final = int(os.getenv("RERADAR_PORT", "8642"))
HTTP_TIMEOUT_SEC: Final = float(os.getenv("RERADAR_HTTP_TIMEOUT", "10"))
LOG_LEVEL: Final = os.getenv("RERADAR_LOG_LEVEL", "INFO").upper()
