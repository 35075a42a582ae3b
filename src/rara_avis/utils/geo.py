"""
Geographic helpers for Rara Avis.

The explorer works at a scale where planar approximations in degrees
are good enough for comparisons. Headings use the great-circle forward
azimuth so steering stays sensible over long escape legs.
"""

import math
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0088
KM_PER_DEGREE = 111.0


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """
    Check that a latitude/longitude pair is usable for distance math.
    
    None, NaN, infinities and out-of-range values are rejected.
    
    Example:
        >>> is_valid_coordinate(51.5, -0.12)
        True
        >>> is_valid_coordinate(None, 10.0)
        False
        >>> is_valid_coordinate(float('nan'), 10.0)
        False
    """
    if lat is None or lng is None:
        return False
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def parse_coordinate(value: Any) -> Optional[float]:
    """
    Coerce a provider coordinate (string, number, None) into a float.
    
    Returns None when the value cannot be used.
    
    Example:
        >>> parse_coordinate("12.5")
        12.5
        >>> parse_coordinate("") is None
        True
    """
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def longitude_delta(lng1: float, lng2: float) -> float:
    """
    Signed eastward longitude difference from lng1 to lng2, in (-180, 180].
    
    Example:
        >>> round(longitude_delta(179.95, -179.95), 2)
        0.1
    """
    delta = (lng2 - lng1) % 360.0
    return delta - 360.0 if delta > 180.0 else delta


def squared_planar_distance(lat1: float, lng1: float,
                            lat2: float, lng2: float) -> float:
    """Squared distance in degrees, treating lat/lng as a flat plane."""
    dx = longitude_delta(lng1, lng2)
    dy = lat2 - lat1
    return dx * dx + dy * dy


def planar_distance_deg(lat1: float, lng1: float,
                        lat2: float, lng2: float) -> float:
    """Euclidean distance in degrees."""
    return math.sqrt(squared_planar_distance(lat1, lng1, lat2, lng2))


def approx_distance_km(lat1: float, lng1: float,
                       lat2: float, lng2: float) -> float:
    """
    Equirectangular distance estimate in kilometres.
    
    Accurate to a few percent for the short ranges the soundscape uses
    (tens of kilometres).
    
    Example:
        >>> round(approx_distance_km(0.0, 0.0, 1.0, 0.0))
        111
    """
    mean_lat = math.radians((lat1 + lat2) / 2.0)
    dx = math.radians(longitude_delta(lng1, lng2)) * math.cos(mean_lat)
    dy = math.radians(lat2 - lat1)
    return EARTH_RADIUS_KM * math.sqrt(dx * dx + dy * dy)


def forward_azimuth(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Initial great-circle bearing from point 1 to point 2.
    
    Returns:
        Bearing in degrees, normalized to [0, 360)
        
    Example:
        >>> round(forward_azimuth(0.0, 0.0, 0.0, 10.0))
        90
        >>> round(forward_azimuth(0.0, 0.0, 10.0, 0.0))
        0
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lng2 - lng1)
    
    y = math.sin(d_lambda) * math.cos(phi2)
    x = (math.cos(phi1) * math.sin(phi2) -
         math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda))
    
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360.0) % 360.0


def km_to_degrees(km: float) -> float:
    """Rough conversion of a ground distance to degrees of arc."""
    return km / KM_PER_DEGREE


def wrap_longitude(lng: float) -> float:
    """
    Wrap a longitude into [-180, 180).
    
    Example:
        >>> wrap_longitude(190.0)
        -170.0
    """
    return ((lng + 180.0) % 360.0) - 180.0
