"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Track Schemas
# ============================================================================

class TrackSummaryResponse(BaseModel):
    """Summary of a track for listing."""
    id: str
    name: str
    format: str
    source_file: Optional[str] = None
    start_time: Optional[str] = None
    duration_s: Optional[float] = None
    point_count: int
    has_orientation: bool


class TrackMetadataResponse(TrackSummaryResponse):
    """Full metadata for a track."""
    bounding_box: tuple[float, float, float, float]  # (min_lat, min_lon, max_lat, max_lon)
    time_range: Optional[tuple[str, str]] = None


class TrackPointResponse(BaseModel):
    """Single track point. Absent fields are null."""
    lat: float
    lon: float
    elevation: Optional[float] = None
    time: Optional[str] = None
    speed: Optional[float] = None
    course: Optional[float] = None
    heading: Optional[float] = None
    hdop: Optional[float] = None
    vdop: Optional[float] = None
    pdop: Optional[float] = None
    satellites: Optional[int] = None
    fix_quality: Optional[int] = None
    pitch: Optional[float] = None
    roll: Optional[float] = None
    gyro: Optional[tuple[Optional[float], Optional[float], Optional[float]]] = None
    accel: Optional[tuple[Optional[float], Optional[float], Optional[float]]] = None


class TrackPointsResponse(BaseModel):
    """All points of a track."""
    track_id: str
    points: list[TrackPointResponse]


class TrackUploadRequest(BaseModel):
    """Upload of a log as text."""
    filename: str = Field(..., min_length=1)
    content: str
    attitude_content: Optional[str] = None  # FlightCell flight-data log


# ============================================================================
# Statistics Schemas
# ============================================================================

class MetricRangeResponse(BaseModel):
    """min / avg / max of one metric."""
    min: Optional[float] = None
    avg: Optional[float] = None
    max: Optional[float] = None


class StatisticsResponse(BaseModel):
    """Summary statistics of a track."""
    distance: float
    duration: Optional[float] = None
    avg_speed: Optional[float] = None
    max_speed: float
    min_elevation: float
    max_elevation: float
    elevation_gain: float
    point_count: int
    satellites: Optional[MetricRangeResponse] = None
    hdop: Optional[MetricRangeResponse] = None
    vdop: Optional[MetricRangeResponse] = None
    pdop: Optional[MetricRangeResponse] = None
    hpl: Optional[MetricRangeResponse] = None
    vpl: Optional[MetricRangeResponse] = None


# ============================================================================
# Visualization Schemas
# ============================================================================

class SegmentColorsResponse(BaseModel):
    """One color per segment between consecutive points."""
    track_id: str
    scheme: str
    colors: list[str]  # "#rrggbb"


class ProfileResponse(BaseModel):
    """Chart series for a track."""
    track_id: str
    distance_m: list[float]
    elapsed_s: list[Optional[float]]
    elevation: list[Optional[float]]
    speed: list[Optional[float]]
    hdop: list[Optional[float]]


# ============================================================================
# Folder Management Schemas
# ============================================================================

class SetFolderRequest(BaseModel):
    """Request to set the data folder."""
    path: str


class FolderInfoResponse(BaseModel):
    """Information about the current data folder."""
    path: Optional[str]
    track_count: int


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    code: Optional[str] = None
