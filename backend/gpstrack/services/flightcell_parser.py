"""
FlightCell log adapter.

A FlightCell unit writes two JSON-lines logs: a GPS log and a flight-data
log with gyro, accelerometer and attitude. Each is parsed on its own; the
attitude samples are then joined onto GPS points by whole second.
"""

import asyncio
import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from gpstrack.models.raw import AttitudeSample, Vector3
from gpstrack.models.track import Track, TrackFormat, TrackPoint
from gpstrack.services.errors import EmptyTrack, IncompleteSample
from gpstrack.services.normalizer import file_track_id, normalize_track
from gpstrack.utils.parsing import parse_iso8601, read_text, safe_float, safe_int


logger = logging.getLogger(__name__)

DEFAULT_TRACK_NAME = "FlightCell Track"

GPS_KEYS = ("latitude", "longitude", "altitude")
FLIGHT_KEYS = ("gyro", "accel", "pitch")


def _first_record(text: str) -> Optional[dict]:
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            return None
        return record if isinstance(record, dict) else None
    return None


def detect_log_type(text: str) -> str:
    """
    Classify a FlightCell log by its first JSON line.

    Returns "gps", "flight" or "unknown".
    """
    record = _first_record(text)
    if record is None:
        return "unknown"
    if all(record.get(key) is not None for key in GPS_KEYS):
        return "gps"
    if all(record.get(key) is not None for key in FLIGHT_KEYS):
        return "flight"
    return "unknown"


def is_flightcell_log(text: str) -> bool:
    return detect_log_type(text) != "unknown"


def _json_lines(text: str, name: str) -> Iterator[tuple[int, dict]]:
    """Yield (line number, record); malformed lines are logged and skipped."""
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"{name}:{line_no}: skipping malformed JSON line: {e}")
            continue
        if not isinstance(record, dict):
            logger.warning(f"{name}:{line_no}: skipping non-object JSON line")
            continue
        yield line_no, record


def parse_gps_timestamp(date_str: Any, time_str: Any) -> datetime:
    """
    Compose a UTC timestamp from 'DD/MM/YY' and 'HH:MM:SS[.fff]'.

    The sub-second part is dropped.
    """
    if not isinstance(date_str, str) or not isinstance(time_str, str):
        raise IncompleteSample("missing date or time")
    try:
        day, month, year = (int(part) for part in date_str.split("/"))
        parsed = datetime.strptime(time_str[:8], "%H:%M:%S")
        return datetime(
            2000 + year, month, day,
            parsed.hour, parsed.minute, parsed.second,
            tzinfo=timezone.utc,
        )
    except ValueError as e:
        raise IncompleteSample(f"bad date/time {date_str!r} {time_str!r}") from e


def _gps_point(record: dict) -> TrackPoint:
    lat = safe_float(record.get("latitude"))
    lon = safe_float(record.get("longitude"))
    if lat is None or lon is None:
        raise IncompleteSample("missing latitude/longitude")

    return TrackPoint(
        lat=lat,
        lon=lon,
        elevation=safe_float(record.get("altitude")),
        time=parse_gps_timestamp(record.get("date"), record.get("time")),
        speed=safe_float(record.get("speed")),  # native unit, as logged
        heading=safe_float(record.get("heading")),
        hdop=safe_float(record.get("hdop")),
        pdop=safe_float(record.get("pdop")),
        satellites=safe_int(record.get("satellites")),
        fix_quality=safe_int(record.get("fix_type")),
    )


def parse_flightcell_gps(text: str, name: str = "gps.log") -> list[TrackPoint]:
    """Parse a FlightCell GPS log into points in file order."""
    points = []
    for line_no, record in _json_lines(text, name):
        try:
            points.append(_gps_point(record))
        except IncompleteSample as e:
            logger.warning(f"{name}:{line_no}: skipping GPS record: {e}")
    return points


def _vector(values: Any) -> Vector3:
    if not isinstance(values, (list, tuple)) or len(values) < 3:
        raise IncompleteSample(f"expected 3-axis vector, got {values!r}")
    return Vector3(safe_float(values[0]), safe_float(values[1]), safe_float(values[2]))


def _attitude_sample(record: dict) -> AttitudeSample:
    epoch_ms = safe_int(record.get("epoch_milli_secs"))
    timestamp = parse_iso8601(record.get("timestamp"))
    if timestamp is None and epoch_ms is not None:
        timestamp = datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)
    if timestamp is None:
        raise IncompleteSample("missing timestamp")

    return AttitudeSample(
        time=timestamp,
        epoch_ms=epoch_ms,
        gyro=_vector(record.get("gyro")),
        accel=_vector(record.get("accel")),
        pitch=safe_float(record.get("pitch")),
        roll=safe_float(record.get("roll")),
    )


def parse_flightcell_flight(text: str, name: str = "flight.log") -> list[AttitudeSample]:
    """Parse a FlightCell flight-data log into attitude samples."""
    samples = []
    for line_no, record in _json_lines(text, name):
        try:
            samples.append(_attitude_sample(record))
        except IncompleteSample as e:
            logger.warning(f"{name}:{line_no}: skipping flight record: {e}")
    return samples


def merge_flightcell(
    points: Iterable[TrackPoint],
    samples: Iterable[AttitudeSample],
) -> list[TrackPoint]:
    """
    Copy attitude onto GPS points sharing the same whole second.

    When several samples fall in one second the last one wins. Points with
    no matching sample are kept with pitch and roll unset.
    """
    by_second: dict[int, AttitudeSample] = {}
    for sample in samples:
        by_second[sample.epoch_second] = sample

    merged = []
    matched = 0
    for point in points:
        sample = None
        if point.time is not None:
            sample = by_second.get(int(point.time.timestamp() // 1))
        if sample is None:
            merged.append(replace(point, pitch=None, roll=None))
            continue
        matched += 1
        merged.append(replace(
            point,
            pitch=sample.pitch,
            roll=sample.roll,
            gyro=sample.gyro,
            accel=sample.accel,
        ))

    logger.info(f"Merged attitude onto {matched} of {len(merged)} GPS points")
    return merged


def parse_flightcell(
    gps_text: str,
    flight_text: Optional[str] = None,
    name: str = DEFAULT_TRACK_NAME,
    source_file: Optional[Path] = None,
    track_id: Optional[str] = None,
) -> Track:
    """
    Parse a GPS log, optionally merged with its flight-data log, into a Track.
    """
    points = parse_flightcell_gps(gps_text, name)
    if not points:
        if detect_log_type(gps_text) == "flight":
            raise EmptyTrack(f"{name} is a flight-data log with no GPS positions")
        raise EmptyTrack(f"No GPS points found in FlightCell log {name}")

    if flight_text is not None:
        points = merge_flightcell(points, parse_flightcell_flight(flight_text, name))

    return normalize_track(
        points,
        name,
        TrackFormat.FLIGHTCELL,
        source_file=source_file,
        track_id=track_id,
    )


async def load_flightcell_files(
    gps_path: Path,
    flight_path: Optional[Path] = None,
    name: Optional[str] = None,
) -> Track:
    """
    Load a GPS log and its flight-data log concurrently, then merge.

    Both parses complete before the merge runs.
    """
    gps_path = Path(gps_path)
    flight_path = Path(flight_path) if flight_path is not None else None
    gps_task = asyncio.to_thread(
        lambda: parse_flightcell_gps(read_text(gps_path), gps_path.name)
    )
    if flight_path is None:
        points = await gps_task
        samples = None
    else:
        flight_task = asyncio.to_thread(
            lambda: parse_flightcell_flight(read_text(flight_path), flight_path.name)
        )
        points, samples = await asyncio.gather(gps_task, flight_task)

    name = name or gps_path.name
    if not points:
        raise EmptyTrack(f"No GPS points found in FlightCell log {name}")
    if samples is not None:
        points = merge_flightcell(points, samples)
    return normalize_track(
        points,
        name,
        TrackFormat.FLIGHTCELL,
        source_file=gps_path,
        track_id=file_track_id(gps_path),
    )
