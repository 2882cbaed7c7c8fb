"""
GPX reader and writer.

Reads every <trkpt> of a GPX document (any namespace, any version) into a
Track, and writes a Track back out as GPX 1.1.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Optional
from xml.sax.saxutils import escape as xml_escape

from gpstrack.models.track import Track, TrackFormat, TrackPoint
from gpstrack.services.errors import EmptyTrack, IncompleteSample, MalformedInput
from gpstrack.services.normalizer import normalize_track
from gpstrack.utils.parsing import parse_iso8601, safe_float, safe_int


logger = logging.getLogger(__name__)


# TrackPoint field -> GPX element local name
CHILD_ELEMENTS = {
    "elevation": "ele",
    "time": "time",
    "speed": "speed",
    "course": "course",
    "hdop": "hdop",
    "vdop": "vdop",
    "pdop": "pdop",
    "satellites": "sat",
}


def _local_name(tag: str) -> str:
    """Strip the '{namespace}' prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _find_text(element: ET.Element, name: str) -> Optional[str]:
    """Text of the first descendant with the given local name."""
    for child in element.iter():
        if child is element:
            continue
        if _local_name(child.tag) == name:
            return child.text
    return None


def _parse_trkpt(trkpt: ET.Element) -> TrackPoint:
    lat = safe_float(trkpt.get("lat"))
    lon = safe_float(trkpt.get("lon"))
    if lat is None or lon is None:
        raise IncompleteSample("trkpt without lat/lon attributes")

    texts = {field: _find_text(trkpt, tag) for field, tag in CHILD_ELEMENTS.items()}

    return TrackPoint(
        lat=lat,
        lon=lon,
        elevation=safe_float(texts["elevation"]),
        time=parse_iso8601(texts["time"]),
        speed=safe_float(texts["speed"]),
        course=safe_float(texts["course"]),
        hdop=safe_float(texts["hdop"]),
        vdop=safe_float(texts["vdop"]),
        pdop=safe_float(texts["pdop"]),
        satellites=safe_int(texts["satellites"]),
    )


def parse_gpx(text: str, name: str = "track.gpx") -> Track:
    """
    Parse GPX text into a Track.

    Trackpoints keep document order. Raises MalformedInput when the XML is
    not well-formed and EmptyTrack when it holds no usable trackpoints.
    """
    try:
        root = ET.fromstring(text.lstrip("\ufeff").strip())
    except ET.ParseError as e:
        raise MalformedInput(f"Could not parse GPX file {name}: {e}") from e

    trkpts = [el for el in root.iter() if _local_name(el.tag) == "trkpt"]
    if not trkpts:
        raise EmptyTrack(f"No trackpoints found in GPX file {name}")

    points = []
    for index, trkpt in enumerate(trkpts):
        try:
            points.append(_parse_trkpt(trkpt))
        except IncompleteSample as e:
            logger.warning(f"Skipping trackpoint {index} in {name}: {e}")

    return normalize_track(points, name, TrackFormat.GPX, sort_by_time=False)


def export_gpx(track: Track, creator: str = "GPS Track Engine") -> str:
    """
    Serialize a track as GPX 1.1.

    Only fields the point actually carries are written.
    """
    lines = ['<?xml version="1.0" encoding="UTF-8"?>']
    lines.append(
        f'<gpx version="1.1" creator="{xml_escape(creator)}" '
        'xmlns="http://www.topografix.com/GPX/1/1">'
    )
    lines.append("  <trk>")
    lines.append(f"    <name>{xml_escape(track.name)}</name>")
    lines.append("    <trkseg>")

    for point in track.points:
        lines.append(f'      <trkpt lat="{_num(point.lat)}" lon="{_num(point.lon)}">')
        if point.elevation is not None:
            lines.append(f"        <ele>{_num(point.elevation)}</ele>")
        if point.time is not None:
            lines.append(f"        <time>{_format_time(point)}</time>")
        if point.speed is not None:
            lines.append(f"        <speed>{_num(point.speed)}</speed>")
        if point.course is not None:
            lines.append(f"        <course>{_num(point.course)}</course>")
        if point.satellites is not None:
            lines.append(f"        <sat>{point.satellites}</sat>")
        if point.hdop is not None:
            lines.append(f"        <hdop>{_num(point.hdop)}</hdop>")
        if point.vdop is not None:
            lines.append(f"        <vdop>{_num(point.vdop)}</vdop>")
        if point.pdop is not None:
            lines.append(f"        <pdop>{_num(point.pdop)}</pdop>")
        lines.append("      </trkpt>")

    lines.append("    </trkseg>")
    lines.append("  </trk>")
    lines.append("</gpx>")
    return "\n".join(lines) + "\n"


def _format_time(point: TrackPoint) -> str:
    iso = point.time.isoformat()
    if iso.endswith("+00:00"):
        iso = iso[:-6] + "Z"
    return iso


def _num(value: float) -> str:
    return repr(float(value))
