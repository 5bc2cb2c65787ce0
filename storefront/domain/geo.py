from __future__ import annotations

import math
from typing import Optional, Tuple

LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: LatLon, b: LatLon) -> float:
    """Great-circle distance in kilometres between two ``(lat, lon)`` points."""
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def format_distance(a: Optional[LatLon], b: Optional[LatLon]) -> str:
    if a is None or b is None:
        return "-"
    km = haversine_km(a, b)
    if km < 1.0:
        return f"{int(round(km * 1000))} m"
    return f"{km:.1f} km"
