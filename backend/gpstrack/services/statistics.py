"""
Summary statistics for a track.

Every metric is computed over the points that actually carry the value;
an absent field is never treated as zero.
"""

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from gpstrack.models.track import MetricRange, Statistics, TrackPoint
from gpstrack.utils.geodesy import elevation_gain, protection_level, total_distance


def _present(points: Sequence[TrackPoint], field: str) -> NDArray[np.float64]:
    values = [getattr(p, field) for p in points]
    return np.array([v for v in values if v is not None], dtype=np.float64)


def _metric_range(values: NDArray[np.float64]) -> Optional[MetricRange]:
    if values.size == 0:
        return None
    return MetricRange(
        min=float(np.min(values)),
        avg=float(np.mean(values)),
        max=float(np.max(values)),
    )


def _protection_range(dop: Optional[MetricRange]) -> Optional[MetricRange]:
    if dop is None:
        return None
    return MetricRange(
        min=protection_level(dop.min),
        avg=protection_level(dop.avg),
        max=protection_level(dop.max),
    )


def _duration(points: Sequence[TrackPoint]) -> Optional[float]:
    first, last = points[0].time, points[-1].time
    if first is None or last is None:
        return None
    return (last - first).total_seconds()


def compute_statistics(points: Sequence[TrackPoint]) -> Optional[Statistics]:
    """
    Compute summary statistics for a point sequence.

    Returns None for an empty sequence. Average speed is the mean of the
    positive recorded speeds; when there are none it falls back to
    distance / duration, and is None when the duration is unknown or zero.
    """
    if not points:
        return None

    distance = total_distance(points)
    duration = _duration(points)

    speeds = _present(points, "speed")
    moving = speeds[speeds > 0]
    if moving.size:
        avg_speed: Optional[float] = float(np.mean(moving))
        max_speed = float(np.max(moving))
    else:
        avg_speed = distance / duration if duration else None
        max_speed = 0.0

    elevations = _present(points, "elevation")
    if elevations.size:
        min_elevation = float(np.min(elevations))
        max_elevation = float(np.max(elevations))
    else:
        min_elevation = max_elevation = 0.0

    hdop = _metric_range(_present(points, "hdop"))
    vdop = _metric_range(_present(points, "vdop"))

    return Statistics(
        distance=distance,
        duration=duration,
        avg_speed=avg_speed,
        max_speed=max_speed,
        min_elevation=min_elevation,
        max_elevation=max_elevation,
        elevation_gain=elevation_gain(points),
        point_count=len(points),
        satellites=_metric_range(_present(points, "satellites")),
        hdop=hdop,
        vdop=vdop,
        pdop=_metric_range(_present(points, "pdop")),
        hpl=_protection_range(hdop),
        vpl=_protection_range(vdop),
    )
