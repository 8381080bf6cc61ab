"""
Great-circle helpers for proximity search
Distances are in kilometres
"""
from math import radians, degrees, sin, cos, asin, sqrt, atan2
from typing import Tuple

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box(latitude: float, longitude: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Return (min_lat, max_lat, min_lon, max_lon) enclosing a circle of radius_km.
    The box is a coarse SQL prefilter; callers still check haversine_km against the radius.
    """
    angular = radius_km / EARTH_RADIUS_KM
    min_lat = latitude - degrees(angular)
    max_lat = latitude + degrees(angular)

    # Circle covers a pole: every longitude qualifies
    if min_lat <= -90.0 or max_lat >= 90.0:
        return max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0

    ratio = sin(angular) / cos(radians(latitude))
    if ratio >= 1.0:
        return min_lat, max_lat, -180.0, 180.0

    lon_delta = degrees(asin(ratio))
    min_lon = longitude - lon_delta
    max_lon = longitude + lon_delta

    # Crossing the antimeridian; fall back to the full longitude band
    if min_lon < -180.0 or max_lon > 180.0:
        return min_lat, max_lat, -180.0, 180.0

    return min_lat, max_lat, min_lon, max_lon
