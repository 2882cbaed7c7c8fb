"""
Format detection and adapter registry.

Picks a parser by file extension first, then by sniffing the start of the
content, and hands the text to it. Every adapter returns a normalized Track.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Protocol

from gpstrack.models.track import Track
from gpstrack.services.errors import UnsupportedFormat
from gpstrack.services.flightcell_parser import (
    is_flightcell_log,
    parse_flightcell,
)
from gpstrack.services.gpx_parser import parse_gpx
from gpstrack.services.nmea_parser import parse_nmea
from gpstrack.services.normalizer import file_track_id
from gpstrack.utils.parsing import read_text


logger = logging.getLogger(__name__)

# Bytes of content inspected when the extension is not conclusive
SNIFF_LENGTH = 4096

class TrackAdapter(Protocol):
    """Adapter interface for positioning log formats."""

    name: str
    extensions: tuple[str, ...]

    def can_parse(self, filename: str, head: str) -> bool:
        ...

    def sniff(self, head: str) -> bool:
        ...

    def parse(self, text: str, name: str) -> Track:
        ...


class _ExtensionAdapter:
    """Shared extension matching for the concrete adapters."""

    name = ""
    extensions: tuple[str, ...] = ()

    def can_parse(self, filename: str, head: str) -> bool:
        return Path(filename).suffix.lower() in self.extensions

    def sniff(self, head: str) -> bool:
        return False


class GpxAdapter(_ExtensionAdapter):
    name = "gpx"
    extensions = (".gpx",)

    def sniff(self, head: str) -> bool:
        head = head.lstrip("\ufeff").lstrip()
        return head.startswith("<?xml") or "<gpx" in head[:SNIFF_LENGTH]

    def parse(self, text: str, name: str) -> Track:
        return parse_gpx(text, name)


class NmeaAdapter(_ExtensionAdapter):
    name = "nmea"
    extensions = (".jps", ".nmea")

    def sniff(self, head: str) -> bool:
        for line in head.splitlines():
            line = line.strip()
            if line:
                return line.startswith("$")
        return False

    def parse(self, text: str, name: str) -> Track:
        return parse_nmea(text, name)


class FlightCellAdapter(_ExtensionAdapter):
    name = "flightcell"
    extensions = (".log",)

    def can_parse(self, filename: str, head: str) -> bool:
        # .log files must also hold FlightCell JSON lines
        return super().can_parse(filename, head) and is_flightcell_log(head)

    def sniff(self, head: str) -> bool:
        return is_flightcell_log(head)

    def parse(self, text: str, name: str, attitude_text: Optional[str] = None) -> Track:
        return parse_flightcell(text, attitude_text, name)


ADAPTERS: list[TrackAdapter] = [
    GpxAdapter(),
    NmeaAdapter(),
    FlightCellAdapter(),
]


def _select_adapter(filename: str, text: str) -> TrackAdapter:
    head = text[:SNIFF_LENGTH]
    for adapter in ADAPTERS:
        if adapter.can_parse(filename, head):
            return adapter
    for adapter in ADAPTERS:
        if adapter.sniff(head):
            logger.debug(f"Detected {adapter.name} content in {filename}")
            return adapter
    raise UnsupportedFormat(f"Unsupported file format: {filename}")


def load_track_text(
    text: str,
    filename: str,
    attitude_text: Optional[str] = None,
) -> Track:
    """
    Parse log text whose format is inferred from ``filename`` and content.

    ``attitude_text`` is the companion flight-data log and only applies to
    FlightCell GPS logs.
    """
    adapter = _select_adapter(filename, text)
    logger.info(f"Parsing {filename} as {adapter.name}")
    if isinstance(adapter, FlightCellAdapter):
        return adapter.parse(text, filename, attitude_text)
    return adapter.parse(text, filename)


def load_track_file(path: Path, attitude_path: Optional[Path] = None) -> Track:
    """Load one log file (plus optional FlightCell flight-data log) from disk."""
    path = Path(path)
    attitude_text = read_text(Path(attitude_path)) if attitude_path else None
    track = load_track_text(read_text(path), path.name, attitude_text)
    return replace(track, source_file=path, id=file_track_id(path))
