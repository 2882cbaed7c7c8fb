"""
NMEA-0183 / JPS adapter.

Receivers emit one navigation fix as several independently-timed sentences
(GGA position, VTG velocity, GSA dilution of precision, ZDA date). This
module correlates them back into one TrackPoint per epoch:

- GGA opens (or updates) the fix for its epoch and makes it current
- VTG and GSA apply to the current fix
- ZDA dates the current fix when its time matches, and every fix opened after it
- fixes are finalized once all lines are consumed

Checksums are stripped but not validated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Callable, Optional

from gpstrack.models.track import Track, TrackFormat, TrackPoint
from gpstrack.services.errors import IncompleteSample
from gpstrack.services.normalizer import normalize_track
from gpstrack.utils.parsing import safe_float, safe_int


logger = logging.getLogger(__name__)

KMH_TO_MS = 1 / 3.6
KNOTS_TO_MS = 1852.0 / 3600.0

# GSA: $--GSA,mode,fix,12 x satellite id,pdop,hdop,vdop[,system id]
GSA_FIELD_COUNT = 18

EpochKey = tuple[Optional[date], time]


@dataclass
class FixBuilder:
    """Mutable accumulator for one epoch; private to a single parse."""

    time_of_day: time
    context_date: Optional[date] = None  # last ZDA date seen before this fix opened
    zda_date: Optional[date] = None      # ZDA that arrived while this fix was current

    lat: Optional[float] = None
    lon: Optional[float] = None
    elevation: Optional[float] = None
    satellites: Optional[int] = None
    fix_quality: Optional[int] = None
    hdop: Optional[float] = None
    vdop: Optional[float] = None
    pdop: Optional[float] = None
    course: Optional[float] = None
    speed: Optional[float] = None

    def apply(self, values: dict) -> None:
        """Set every present value, keeping what is already known otherwise."""
        for key, value in values.items():
            if value is not None:
                setattr(self, key, value)

    def fill(self, values: dict) -> None:
        """Set present values only where the fix has none yet."""
        for key, value in values.items():
            if value is not None and getattr(self, key) is None:
                setattr(self, key, value)

    def to_point(self, day: date) -> TrackPoint:
        return TrackPoint(
            lat=self.lat,
            lon=self.lon,
            elevation=self.elevation,
            time=datetime.combine(day, self.time_of_day, tzinfo=timezone.utc),
            speed=self.speed,
            course=self.course,
            hdop=self.hdop,
            vdop=self.vdop,
            pdop=self.pdop,
            satellites=self.satellites,
            fix_quality=self.fix_quality,
        )


def _field(fields: list[str], index: int) -> str:
    return fields[index].strip() if index < len(fields) else ""


def parse_nmea_time(text: str) -> time:
    """Parse hhmmss[.sss] into a time of day."""
    if len(text) < 6:
        raise IncompleteSample(f"bad time of day: {text!r}")
    hours = safe_int(text[0:2])
    minutes = safe_int(text[2:4])
    seconds = safe_float(text[4:])
    if hours is None or minutes is None or seconds is None:
        raise IncompleteSample(f"bad time of day: {text!r}")
    whole = int(seconds)
    micros = min(int(round((seconds - whole) * 1_000_000)), 999_999)
    try:
        return time(hours, minutes, whole, micros)
    except ValueError as e:
        raise IncompleteSample(f"bad time of day: {text!r}") from e


def parse_nmea_coordinate(value: str, direction: str) -> float:
    """
    Convert (d)ddmm.mmmm plus hemisphere into signed decimal degrees.
    """
    number = safe_float(value)
    direction = direction.upper()
    if number is None or direction not in ("N", "S", "E", "W"):
        raise IncompleteSample(f"bad coordinate: {value!r} {direction!r}")
    degrees = math.floor(number / 100)
    minutes = number - degrees * 100
    decimal = degrees + minutes / 60
    if direction in ("S", "W"):
        decimal = -decimal
    return decimal


def parse_gga(fields: list[str]) -> dict:
    """$--GGA,time,lat,N/S,lon,E/W,quality,numSats,hdop,alt,M,geoid,M,age,station"""
    return {
        "time_of_day": parse_nmea_time(_field(fields, 1)),
        "lat": parse_nmea_coordinate(_field(fields, 2), _field(fields, 3)),
        "lon": parse_nmea_coordinate(_field(fields, 4), _field(fields, 5)),
        "fix_quality": safe_int(_field(fields, 6)),
        "satellites": safe_int(_field(fields, 7)),
        "hdop": safe_float(_field(fields, 8)),
        "elevation": safe_float(_field(fields, 9)),
    }


def parse_vtg(fields: list[str]) -> dict:
    """$--VTG,courseTrue,T,courseMag,M,knots,N,kmh,K,mode"""
    course = safe_float(_field(fields, 1))
    speed_kmh = safe_float(_field(fields, 7))
    speed_knots = safe_float(_field(fields, 5))

    if speed_kmh is not None:
        speed = speed_kmh * KMH_TO_MS
    elif speed_knots is not None:
        speed = speed_knots * KNOTS_TO_MS
    else:
        speed = None

    if course is None and speed is None:
        raise IncompleteSample("VTG without course or speed")
    return {"course": course, "speed": speed}


def parse_gsa(fields: list[str]) -> dict:
    """DOP values are read from the end of the field list."""
    tail = fields[-4:-1] if len(fields) > GSA_FIELD_COUNT else fields[-3:]
    if len(tail) < 3:
        raise IncompleteSample("GSA too short")
    pdop, hdop, vdop = (safe_float(v) for v in tail)
    return {"pdop": pdop, "hdop": hdop, "vdop": vdop}


def parse_zda(fields: list[str]) -> tuple[Optional[time], date]:
    """$--ZDA,time,day,month,year,zoneHours,zoneMinutes

    Returns the time of day (None when the field is empty) and the date.
    """
    time_text = _field(fields, 1)
    time_of_day = parse_nmea_time(time_text) if time_text else None
    day = safe_int(_field(fields, 2))
    month = safe_int(_field(fields, 3))
    year = safe_int(_field(fields, 4))
    if day is None or month is None or year is None:
        raise IncompleteSample("ZDA without a full date")
    try:
        return time_of_day, date(year, month, day)
    except ValueError as e:
        raise IncompleteSample(f"bad ZDA date: {day}/{month}/{year}") from e


def _same_second(zda_time: Optional[time], fix_time: time) -> bool:
    if zda_time is None:
        return True
    return zda_time.replace(microsecond=0) == fix_time.replace(microsecond=0)


class FixCorrelator:
    """
    Reassembles fixes from a sentence stream.

    Builders are keyed by (date context, time of day); ``current_key``
    tracks the most recently opened epoch explicitly.
    """

    def __init__(self) -> None:
        self.builders: dict[EpochKey, FixBuilder] = {}
        self.current_key: Optional[EpochKey] = None
        self.last_zda_date: Optional[date] = None
        self.first_zda_date: Optional[date] = None

        self._handlers: dict[str, Callable[[list[str]], None]] = {
            "GGA": self._on_gga,
            "VTG": self._on_vtg,
            "GSA": self._on_gsa,
            "ZDA": self._on_zda,
        }

    @property
    def current(self) -> Optional[FixBuilder]:
        if self.current_key is None:
            return None
        return self.builders.get(self.current_key)

    def feed(self, sentence_type: str, fields: list[str]) -> bool:
        """Dispatch one sentence. Returns False for types we do not use."""
        handler = self._handlers.get(sentence_type)
        if handler is None:
            return False
        handler(fields)
        return True

    def _on_gga(self, fields: list[str]) -> None:
        values = parse_gga(fields)
        time_of_day = values.pop("time_of_day")
        key = (self.last_zda_date, time_of_day)
        builder = self.builders.get(key)
        if builder is None:
            builder = FixBuilder(time_of_day=time_of_day, context_date=self.last_zda_date)
            self.builders[key] = builder
        builder.apply(values)
        self.current_key = key

    def _on_vtg(self, fields: list[str]) -> None:
        values = parse_vtg(fields)
        if self.current is not None:
            self.current.apply(values)

    def _on_gsa(self, fields: list[str]) -> None:
        values = parse_gsa(fields)
        if self.current is not None:
            self.current.fill(values)

    def _on_zda(self, fields: list[str]) -> None:
        time_of_day, zda_date = parse_zda(fields)
        self.last_zda_date = zda_date
        if self.first_zda_date is None:
            self.first_zda_date = zda_date
        # A ZDA stamped for another epoch only dates the fixes that follow it.
        current = self.current
        if current is not None and _same_second(time_of_day, current.time_of_day):
            current.zda_date = zda_date

    def finalize(self, today: date) -> list[TrackPoint]:
        """
        Turn every complete builder into a TrackPoint.

        Calendar date per fix: its own ZDA, else the last ZDA before it,
        else the first ZDA after it, else ``today``. A log that crosses
        midnight without ZDA sentences keeps the earlier date.
        """
        points = []
        for builder in self.builders.values():
            if builder.lat is None or builder.lon is None:
                continue
            day = builder.zda_date or builder.context_date or self.first_zda_date or today
            points.append(builder.to_point(day))
        return points


def split_sentence(line: str) -> Optional[tuple[str, list[str]]]:
    """
    Split '$GPGGA,...*47' into ('GGA', fields) with the checksum removed.

    Returns None for lines that are not standard talker sentences.
    """
    line = line.strip()
    if not line.startswith("$"):
        return None
    body = line.split("*", 1)[0]
    fields = body.split(",")
    tag = fields[0]
    if len(tag) != 6:
        return None
    return tag[3:6].upper(), fields


def parse_nmea(text: str, name: str = "track.jps", today: Optional[date] = None) -> Track:
    """
    Parse NMEA-0183 text into a Track sorted by time.

    ``today`` is the fallback calendar date for fixes with no ZDA context;
    it defaults to the current UTC date. Raises EmptyTrack when no complete
    fix is found.
    """
    if today is None:
        today = datetime.now(timezone.utc).date()

    correlator = FixCorrelator()
    used = skipped = 0

    for line_no, line in enumerate(text.splitlines(), start=1):
        sentence = split_sentence(line)
        if sentence is None:
            continue
        sentence_type, fields = sentence
        try:
            if correlator.feed(sentence_type, fields):
                used += 1
        except IncompleteSample as e:
            skipped += 1
            logger.debug(f"{name}:{line_no}: skipping {sentence_type} sentence: {e}")

    points = correlator.finalize(today)
    logger.info(
        f"Parsed {name}: {used} sentences, {skipped} skipped, {len(points)} fixes"
    )
    return normalize_track(points, name, TrackFormat.NMEA)
