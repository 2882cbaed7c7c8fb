"""
Track Repository - manages loading and caching of positioning tracks.

Tracks come from two places: log files found in a data folder, and logs
uploaded through the API. Both are served through the same id lookup.
"""

import logging
from pathlib import Path
from typing import Optional

from gpstrack.models.track import Track, TrackSummary
from gpstrack.services.errors import ParseError
from gpstrack.services.flightcell_parser import detect_log_type
from gpstrack.services.loader import SNIFF_LENGTH, load_track_file, load_track_text
from gpstrack.services.normalizer import file_track_id


logger = logging.getLogger(__name__)

TRACK_EXTENSIONS = (".gpx", ".jps", ".nmea", ".log")


class TrackRepository:
    """
    Repository for managing tracks.

    Reads log files from a folder and caches parsed tracks in memory.
    FlightCell flight-data logs are not tracks on their own; they are merged
    into the GPS log of the same folder when the folder holds exactly one.
    """

    def __init__(self, data_folder: Optional[Path] = None):
        self._data_folder: Optional[Path] = data_folder
        self._cache: dict[str, Track] = {}
        self._index: dict[str, tuple[Path, Optional[Path]]] = {}  # id -> (log, attitude log)
        self._uploads: dict[str, Track] = {}

        if data_folder is not None:
            self.scan_folder(data_folder)

    @property
    def data_folder(self) -> Optional[Path]:
        return self._data_folder

    @property
    def track_count(self) -> int:
        return len(self._index) + len(self._uploads)

    def set_data_folder(self, folder: Path) -> int:
        """
        Set the data folder and scan it for logs.

        Returns:
            Number of track files found
        """
        self._data_folder = folder
        self._cache.clear()
        self._index.clear()
        return self.scan_folder(folder)

    def rescan(self) -> int:
        """Re-index the current data folder, dropping cached file tracks."""
        if self._data_folder is None:
            return 0
        return self.set_data_folder(self._data_folder)

    def scan_folder(self, folder: Path) -> int:
        """
        Scan a folder for track logs and build the index.

        Returns:
            Number of track files found
        """
        if not folder.exists():
            logger.warning(f"Data folder does not exist: {folder}")
            return 0

        logs = []
        gps_logs = set()
        attitude_logs = []
        for path in sorted(folder.iterdir()):
            if not path.is_file() or path.suffix.lower() not in TRACK_EXTENSIONS:
                continue
            log_type = _log_type(path) if path.suffix.lower() == ".log" else None
            if log_type == "flight":
                attitude_logs.append(path)
                continue
            if log_type == "gps":
                gps_logs.add(path)
            logs.append(path)

        attitude = attitude_logs[0] if len(attitude_logs) == 1 else None
        if len(attitude_logs) > 1:
            logger.warning(
                f"{len(attitude_logs)} flight-data logs in {folder}; not merging attitude"
            )

        for path in logs:
            track_id = file_track_id(path)
            pair = attitude if path in gps_logs else None
            self._index[track_id] = (path, pair)
            logger.debug(f"Indexed track: {track_id} -> {path.name}")

        logger.info(f"Scanned {len(logs)} track files in {folder}")
        return len(logs)

    def list_tracks(self) -> list[TrackSummary]:
        """
        List all available tracks, newest first.

        Files that fail to parse are logged and left out.
        """
        summaries = [TrackSummary.from_track(t) for t in self._uploads.values()]

        for track_id in list(self._index):
            track = self.get_track(track_id)
            if track is not None:
                summaries.append(TrackSummary.from_track(track))

        summaries.sort(key=lambda s: (s.start_time or "", s.name), reverse=True)
        return summaries

    def get_track(self, track_id: str) -> Optional[Track]:
        """Get a track by id, loading and caching it on first use."""
        if track_id in self._uploads:
            return self._uploads[track_id]
        if track_id in self._cache:
            return self._cache[track_id]
        if track_id not in self._index:
            return None

        path, attitude_path = self._index[track_id]
        try:
            return self._load_track(track_id, path, attitude_path)
        except (ParseError, OSError) as e:
            logger.error(f"Failed to load track {path}: {e}")
            return None

    def add_track(
        self,
        text: str,
        filename: str,
        attitude_text: Optional[str] = None,
    ) -> Track:
        """
        Parse uploaded log text and keep the track.

        Raises ParseError subclasses when the log is unusable.
        """
        track = load_track_text(text, filename, attitude_text)
        self._uploads[track.id] = track
        logger.info(f"Added uploaded track {track.id} ({filename}, {len(track)} points)")
        return track

    def remove_track(self, track_id: str) -> bool:
        """Forget an uploaded track. File tracks cannot be removed."""
        return self._uploads.pop(track_id, None) is not None

    def clear_cache(self) -> None:
        """Clear the in-memory cache of file tracks."""
        self._cache.clear()
        logger.info("Track cache cleared")

    def _load_track(
        self,
        track_id: str,
        path: Path,
        attitude_path: Optional[Path],
    ) -> Track:
        track = load_track_file(path, attitude_path)
        self._cache[track_id] = track
        logger.debug(f"Loaded and cached track: {track_id}")
        return track


def _log_type(path: Path) -> str:
    try:
        with open(path, "r", encoding="utf-8-sig", errors="replace") as f:
            return detect_log_type(f.read(SNIFF_LENGTH))
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return "unknown"


# Global repository instance (set up by app initialization)
_repository: Optional[TrackRepository] = None


def get_repository() -> TrackRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = TrackRepository()
    return _repository


def init_repository(data_folder: Path) -> TrackRepository:
    """Initialize the global repository with a data folder."""
    global _repository
    _repository = TrackRepository(data_folder)
    return _repository
