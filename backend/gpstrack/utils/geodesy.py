"""
Geodesy utilities.

Great-circle distances on a spherical Earth and the aviation-style
protection-level estimate derived from dilution of precision.
"""

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from gpstrack.models.track import TrackPoint


EARTH_RADIUS_M = 6371000.0  # mean Earth radius

PROTECTION_FACTOR = 5.33  # K factor for 99.99999 % integrity
USER_RANGE_ACCURACY_M = 2.0  # typical GPS URA


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate great-circle distance between two points.

    Works on scalars or numpy arrays of equal shape.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(np.subtract(lat2, lat1))
    dlon = np.radians(np.subtract(lon2, lon1))

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance(p1: TrackPoint, p2: TrackPoint) -> float:
    """Haversine distance in meters between two track points."""
    return float(haversine_distance(p1.lat, p1.lon, p2.lat, p2.lon))


def _coordinates(points: Sequence[TrackPoint]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    lat = np.array([p.lat for p in points], dtype=np.float64)
    lon = np.array([p.lon for p in points], dtype=np.float64)
    return lat, lon


def segment_distances(points: Sequence[TrackPoint]) -> NDArray[np.float64]:
    """Distance of each consecutive pair; length is ``len(points) - 1``."""
    if len(points) < 2:
        return np.zeros(0, dtype=np.float64)
    lat, lon = _coordinates(points)
    return haversine_distance(lat[:-1], lon[:-1], lat[1:], lon[1:])


def total_distance(points: Sequence[TrackPoint]) -> float:
    """Sum of great-circle distances over consecutive points."""
    return float(np.sum(segment_distances(points)))


def cumulative_distances(points: Sequence[TrackPoint]) -> NDArray[np.float64]:
    """
    Running distance from the first point, one value per point.

    Used as the x-axis of elevation profiles.
    """
    if not points:
        return np.zeros(0, dtype=np.float64)
    return np.concatenate(([0.0], np.cumsum(segment_distances(points))))


def elevation_gain(points: Sequence[TrackPoint]) -> float:
    """
    Sum of positive elevation deltas between consecutive points.

    A pair is skipped when either side has no elevation; the gap is not
    bridged, so a rise across a missing sample does not count.
    """
    gain = 0.0
    for prev, cur in zip(points, points[1:]):
        if prev.elevation is None or cur.elevation is None:
            continue
        diff = cur.elevation - prev.elevation
        if diff > 0:
            gain += diff
    return gain


def protection_level(dop: Optional[float]) -> Optional[float]:
    """
    Protection level in meters: DOP x protection factor x URA.

    Returns None when the DOP is absent or zero.
    """
    if not dop:
        return None
    return dop * PROTECTION_FACTOR * USER_RANGE_ACCURACY_M


def is_valid_coordinate(lat: Optional[float], lon: Optional[float], strict: bool = True) -> bool:
    """True when both coordinates are present, finite and (if strict) in range."""
    if lat is None or lon is None:
        return False
    if not (np.isfinite(lat) and np.isfinite(lon)):
        return False
    if strict:
        return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
    return True
