"""
API routes for tracks.
"""

import math
from pathlib import Path
from typing import Optional

import pandas as pd
from fastapi import APIRouter, HTTPException, Query, Response

from gpstrack.api.schemas import (
    ErrorResponse,
    FolderInfoResponse,
    MetricRangeResponse,
    ProfileResponse,
    SegmentColorsResponse,
    SetFolderRequest,
    StatisticsResponse,
    TrackMetadataResponse,
    TrackPointResponse,
    TrackPointsResponse,
    TrackSummaryResponse,
    TrackUploadRequest,
)
from gpstrack.models.track import MetricRange, Track, TrackPoint, TrackSummary
from gpstrack.services.gpx_parser import export_gpx
from gpstrack.services.profile import build_profile
from gpstrack.services.repository import get_repository
from gpstrack.services.statistics import compute_statistics
from gpstrack.utils.colors import ColorScheme, segment_colors


router = APIRouter(prefix="/tracks", tags=["tracks"])

PARSE_ERROR_RESPONSES = {
    415: {"model": ErrorResponse, "description": "Unsupported log format"},
    422: {"model": ErrorResponse, "description": "Log could not be parsed"},
}


def _nan_to_none(value) -> Optional[float]:
    """Convert NaN to None for JSON serialization."""
    if value is None or math.isnan(value):
        return None
    return float(value)


def _clean_series(series: pd.Series) -> list[Optional[float]]:
    """Convert a pandas series to a list, replacing NaN with None."""
    return [_nan_to_none(x) for x in series]


def _get_track_or_404(track_id: str) -> Track:
    track = get_repository().get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail=f"Track not found: {track_id}")
    return track


def _summary_response(summary: TrackSummary) -> TrackSummaryResponse:
    return TrackSummaryResponse(
        id=summary.id,
        name=summary.name,
        format=summary.format,
        source_file=summary.source_file,
        start_time=summary.start_time,
        duration_s=summary.duration_s,
        point_count=summary.point_count,
        has_orientation=summary.has_orientation,
    )


def _build_metadata_response(track: Track) -> TrackMetadataResponse:
    summary = TrackSummary.from_track(track)
    time_range = track.get_time_range()
    return TrackMetadataResponse(
        **_summary_response(summary).model_dump(),
        bounding_box=track.get_bounding_box(),
        time_range=(time_range[0].isoformat(), time_range[1].isoformat()) if time_range else None,
    )


def _point_response(point: TrackPoint) -> TrackPointResponse:
    return TrackPointResponse(
        lat=point.lat,
        lon=point.lon,
        elevation=point.elevation,
        time=point.time.isoformat() if point.time else None,
        speed=point.speed,
        course=point.course,
        heading=point.heading,
        hdop=point.hdop,
        vdop=point.vdop,
        pdop=point.pdop,
        satellites=point.satellites,
        fix_quality=point.fix_quality,
        pitch=point.pitch,
        roll=point.roll,
        gyro=tuple(point.gyro) if point.gyro else None,
        accel=tuple(point.accel) if point.accel else None,
    )


def _range_response(metric: Optional[MetricRange]) -> Optional[MetricRangeResponse]:
    if metric is None:
        return None
    return MetricRangeResponse(min=metric.min, avg=metric.avg, max=metric.max)


@router.get("", response_model=list[TrackSummaryResponse])
async def list_tracks():
    """
    List all available tracks.

    Returns summaries sorted by start time (newest first).
    """
    repo = get_repository()
    return [_summary_response(s) for s in repo.list_tracks()]


@router.post(
    "",
    response_model=TrackMetadataResponse,
    status_code=201,
    responses=PARSE_ERROR_RESPONSES,
)
async def upload_track(request: TrackUploadRequest):
    """
    Parse an uploaded log and add it to the track list.

    The format is detected from the filename and content. For FlightCell
    GPS logs, ``attitude_content`` may carry the matching flight-data log.
    """
    repo = get_repository()
    track = repo.add_track(request.content, request.filename, request.attitude_content)
    return _build_metadata_response(track)


@router.get("/{track_id}", response_model=TrackMetadataResponse)
async def get_track_metadata(track_id: str):
    """Get metadata for a specific track."""
    return _build_metadata_response(_get_track_or_404(track_id))


@router.delete("/{track_id}", status_code=204)
async def delete_track(track_id: str):
    """Remove an uploaded track."""
    if not get_repository().remove_track(track_id):
        raise HTTPException(status_code=404, detail=f"Uploaded track not found: {track_id}")
    return Response(status_code=204)


@router.get("/{track_id}/points", response_model=TrackPointsResponse)
async def get_track_points(track_id: str):
    """
    Get every point of a track.

    Warning: This can be a large response for long logs.
    """
    track = _get_track_or_404(track_id)
    return TrackPointsResponse(
        track_id=track.id,
        points=[_point_response(p) for p in track.points],
    )


@router.get("/{track_id}/statistics", response_model=StatisticsResponse)
async def get_track_statistics(track_id: str):
    """Get summary statistics for a track."""
    track = _get_track_or_404(track_id)
    stats = compute_statistics(track.points)

    return StatisticsResponse(
        distance=stats.distance,
        duration=stats.duration,
        avg_speed=stats.avg_speed,
        max_speed=stats.max_speed,
        min_elevation=stats.min_elevation,
        max_elevation=stats.max_elevation,
        elevation_gain=stats.elevation_gain,
        point_count=stats.point_count,
        satellites=_range_response(stats.satellites),
        hdop=_range_response(stats.hdop),
        vdop=_range_response(stats.vdop),
        pdop=_range_response(stats.pdop),
        hpl=_range_response(stats.hpl),
        vpl=_range_response(stats.vpl),
    )


@router.get("/{track_id}/colors", response_model=SegmentColorsResponse)
async def get_segment_colors(
    track_id: str,
    scheme: str = Query("speed", description="speed, elevation or accuracy"),
):
    """Get one gradient color per segment for map rendering."""
    try:
        color_scheme = ColorScheme(scheme)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown color scheme: {scheme}")

    track = _get_track_or_404(track_id)
    return SegmentColorsResponse(
        track_id=track.id,
        scheme=color_scheme.value,
        colors=[c.hex for c in segment_colors(track.points, color_scheme)],
    )


@router.get("/{track_id}/profile", response_model=ProfileResponse)
async def get_track_profile(track_id: str):
    """Get elevation/speed series against distance and elapsed time."""
    track = _get_track_or_404(track_id)
    df = build_profile(track)

    return ProfileResponse(
        track_id=track.id,
        distance_m=df["distance_m"].tolist(),
        elapsed_s=_clean_series(df["elapsed_s"]),
        elevation=_clean_series(df["elevation"]),
        speed=_clean_series(df["speed"]),
        hdop=_clean_series(df["hdop"]),
    )


@router.get("/{track_id}/export.gpx")
async def export_track_gpx(track_id: str):
    """Download a track as GPX 1.1."""
    track = _get_track_or_404(track_id)
    filename = f"{Path(track.name).stem or 'track'}.gpx"
    return Response(
        content=export_gpx(track),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# Folder Management Routes
# ============================================================================

folder_router = APIRouter(prefix="/folder", tags=["folder"])


@folder_router.get("", response_model=FolderInfoResponse)
async def get_folder_info():
    """Get information about the current data folder."""
    repo = get_repository()

    return FolderInfoResponse(
        path=str(repo.data_folder) if repo.data_folder else None,
        track_count=repo.track_count,
    )


@folder_router.post("", response_model=FolderInfoResponse)
async def set_folder(request: SetFolderRequest):
    """
    Set the data folder to scan for track logs.

    This will clear the current cache and re-scan.
    """
    repo = get_repository()

    path = Path(request.path)
    if not path.exists():
        raise HTTPException(status_code=400, detail=f"Folder does not exist: {request.path}")
    if not path.is_dir():
        raise HTTPException(status_code=400, detail=f"Path is not a directory: {request.path}")

    repo.set_data_folder(path)

    return FolderInfoResponse(
        path=str(path),
        track_count=repo.track_count,
    )


@folder_router.post("/rescan", response_model=FolderInfoResponse)
async def rescan_folder():
    """Rescan the current data folder for new logs."""
    repo = get_repository()

    if repo.data_folder is None:
        raise HTTPException(status_code=400, detail="No data folder set")

    repo.rescan()

    return FolderInfoResponse(
        path=str(repo.data_folder),
        track_count=repo.track_count,
    )
