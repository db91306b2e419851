# path: tcat-route-api/app/utils/geo.py

from __future__ import annotations

import math


EARTH_RADIUS_M = 6371000.0


def haversine_m(a_lon: float, a_lat: float, b_lon: float, b_lat: float) -> float:
    # Great-circle distance; close enough to what the map layer reports.
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lon - a_lon)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(s))


def rounded_distance(distance: float) -> str:
    """
    Distances of 10 or more are shown without decimals, shorter ones with one.
    """
    if distance >= 10.0:
        return f"{distance:.0f}"
    return f"{distance:.1f}"
