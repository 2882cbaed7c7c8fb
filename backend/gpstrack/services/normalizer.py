"""
Normalizer for parsed track points.

Filters unusable points, orders them by time and wraps them in a Track.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from gpstrack.models.track import Track, TrackFormat, TrackPoint
from gpstrack.services.errors import EmptyTrack
from gpstrack.utils.geodesy import is_valid_coordinate


logger = logging.getLogger(__name__)

STRICT_COORDS = os.getenv("GPSTRACK_STRICT_COORDS", "1") not in ("0", "false", "False")


def normalize_track(
    points: Iterable[TrackPoint],
    name: str,
    fmt: TrackFormat,
    sort_by_time: bool = True,
    source_file: Optional[Path] = None,
    track_id: Optional[str] = None,
) -> Track:
    """
    Convert parsed points into a validated Track.

    - drops points whose lat/lon are absent, non-finite or out of range
    - sorts by time (stable) when every remaining point has a timestamp
    - raises EmptyTrack when nothing usable remains
    """
    points = list(points)
    usable = [p for p in points if is_valid_coordinate(p.lat, p.lon, strict=STRICT_COORDS)]
    dropped = len(points) - len(usable)
    if dropped:
        logger.info(f"Dropped {dropped} points without usable coordinates from {name}")

    if not usable:
        raise EmptyTrack(f"No usable track points found in {name}")

    if sort_by_time and all(p.time is not None for p in usable):
        usable.sort(key=lambda p: p.time)

    has_orientation = any(p.pitch is not None or p.roll is not None for p in usable)

    return Track(
        name=name,
        format=fmt,
        points=tuple(usable),
        has_orientation=has_orientation,
        id=track_id or _generate_id(name, fmt, usable),
        source_file=source_file,
    )


def _generate_id(name: str, fmt: TrackFormat, points: list[TrackPoint]) -> str:
    first, last = points[0], points[-1]
    id_string = (
        f"{name}_{fmt.value}_{len(points)}_"
        f"{first.lat:.7f},{first.lon:.7f}_{last.lat:.7f},{last.lon:.7f}_{first.time}"
    )
    return hashlib.sha256(id_string.encode()).hexdigest()[:16]


def file_track_id(filepath: Path) -> str:
    """Generate a consistent ID from a file's name, size and mtime."""
    stat = filepath.stat()
    id_string = f"{filepath.name}_{stat.st_size}_{stat.st_mtime}"
    return hashlib.sha256(id_string.encode()).hexdigest()[:16]
