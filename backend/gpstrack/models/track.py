"""
Normalized track data model.

All incoming positioning logs are normalized into this structure:
- one ``TrackPoint`` per fix, WGS84 decimal degrees
- ``None`` for every field the source did not record (never 0 or NaN)
- points ordered by time whenever every point carries a timestamp
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from gpstrack.models.raw import Vector3


class TrackFormat(Enum):
    """Source format a track was parsed from."""

    GPX = "gpx"
    NMEA = "nmea"
    FLIGHTCELL = "flightcell"


@dataclass(frozen=True)
class TrackPoint:
    """One positioning sample."""

    lat: float
    lon: float
    elevation: Optional[float] = None   # meters
    time: Optional[datetime] = None     # UTC
    speed: Optional[float] = None       # m/s (FlightCell: native log unit)
    course: Optional[float] = None      # degrees true
    heading: Optional[float] = None     # degrees
    hdop: Optional[float] = None
    vdop: Optional[float] = None
    pdop: Optional[float] = None
    satellites: Optional[int] = None
    fix_quality: Optional[int] = None

    # Attitude (only after merge with a flight-data log)
    pitch: Optional[float] = None
    roll: Optional[float] = None
    gyro: Optional[Vector3] = None
    accel: Optional[Vector3] = None


@dataclass(frozen=True)
class Track:
    """
    Ordered sequence of track points plus metadata.

    Instances are only built through ``normalize_track`` which guarantees
    at least one point with finite coordinates.
    """

    name: str
    format: TrackFormat
    points: tuple[TrackPoint, ...]
    has_orientation: bool = False
    id: str = ""
    source_file: Optional[Path] = None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def start_time(self) -> Optional[datetime]:
        return self.points[0].time if self.points else None

    def get_time_range(self) -> Optional[tuple[datetime, datetime]]:
        """First and last timestamps, or None when either is missing."""
        if not self.points:
            return None
        first, last = self.points[0].time, self.points[-1].time
        if first is None or last is None:
            return None
        return (first, last)

    def get_bounding_box(self) -> tuple[float, float, float, float]:
        """(min_lat, min_lon, max_lat, max_lon)"""
        if not self.points:
            return (0.0, 0.0, 0.0, 0.0)
        lats = [p.lat for p in self.points]
        lons = [p.lon for p in self.points]
        return (min(lats), min(lons), max(lats), max(lons))


@dataclass(frozen=True)
class MetricRange:
    """min / avg / max triple over the present values of one metric."""

    min: Optional[float]
    avg: Optional[float]
    max: Optional[float]


@dataclass(frozen=True)
class Statistics:
    """Summary metrics derived from one track."""

    distance: float                 # meters
    duration: Optional[float]       # seconds, None when timestamps are missing
    avg_speed: Optional[float]
    max_speed: float
    min_elevation: float
    max_elevation: float
    elevation_gain: float
    point_count: int

    satellites: Optional[MetricRange] = None
    hdop: Optional[MetricRange] = None
    vdop: Optional[MetricRange] = None
    pdop: Optional[MetricRange] = None
    hpl: Optional[MetricRange] = None   # meters
    vpl: Optional[MetricRange] = None   # meters


@dataclass
class TrackSummary:
    """Lightweight summary of a track for listing."""

    id: str
    name: str
    format: str
    source_file: Optional[str]
    start_time: Optional[str]
    duration_s: Optional[float]
    point_count: int
    has_orientation: bool

    @classmethod
    def from_track(cls, track: Track) -> "TrackSummary":
        time_range = track.get_time_range()
        duration = (time_range[1] - time_range[0]).total_seconds() if time_range else None
        return cls(
            id=track.id,
            name=track.name,
            format=track.format.value,
            source_file=str(track.source_file) if track.source_file else None,
            start_time=track.start_time.isoformat() if track.start_time else None,
            duration_s=duration,
            point_count=len(track.points),
            has_orientation=track.has_orientation,
        )
