"""
geo.py
~~~~~~
Great-circle helpers.

* :func:`haversine_nm` – observer-to-aircraft distance in nautical miles.
* :func:`bounds_from_point` – square search zone around a point, in the
  ``"north,south,west,east"`` form the Flightradar24 feed expects.

Coordinates are **not** validated here; out-of-range values go straight
through the trigonometry. Request validation lives in the dispatcher.
"""

from __future__ import annotations

import math

from geopy.distance import great_circle

from .constants import EARTH_RADIUS_NM


def haversine_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great‑circle distance (NM) between *lat1/lon1* and *lat2/lon2*."""

    φ1, φ2 = map(math.radians, (lat1, lat2))
    dφ = math.radians(lat2 - lat1)
    dλ = math.radians(lon2 - lon1)
    a = math.sin(dφ / 2) ** 2 + math.cos(φ1) * math.cos(φ2) * math.sin(dλ / 2) ** 2
    a = min(a, 1.0)  # rounding can overshoot at the antipode
    return 2 * EARTH_RADIUS_NM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bounds_from_point(lat: float, lon: float, radius_m: float) -> str:
    """
    Return the bounding zone of a circle of *radius_m* metres around a point.

    Each edge is the great-circle destination at bearing 0/180/270/90 from
    the centre, formatted to 3 decimals as ``"north,south,west,east"``.
    """
    reach = great_circle(meters=radius_m)
    north = reach.destination((lat, lon), bearing=0).latitude
    south = reach.destination((lat, lon), bearing=180).latitude
    west = reach.destination((lat, lon), bearing=270).longitude
    east = reach.destination((lat, lon), bearing=90).longitude
    return f"{north:.3f},{south:.3f},{west:.3f},{east:.3f}"


__all__ = ["bounds_from_point", "haversine_nm"]
