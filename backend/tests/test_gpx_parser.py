"""
Tests for the GPX reader and writer.
"""

from datetime import datetime, timezone

import pytest

from gpstrack.models.track import TrackFormat, TrackPoint
from gpstrack.services.errors import EmptyTrack, MalformedInput, ParseError
from gpstrack.services.gpx_parser import export_gpx, parse_gpx
from gpstrack.services.normalizer import normalize_track


@pytest.fixture
def sample_gpx():
    """GPX 1.1 with three points, the last one earlier than the second."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Morning ride</name>
    <trkseg>
      <trkpt lat="47.3769" lon="8.5417">
        <ele>408.5</ele>
        <time>2024-03-15T10:00:00Z</time>
        <sat>9</sat>
        <hdop>0.9</hdop>
        <vdop>1.4</vdop>
        <pdop>1.7</pdop>
        <extensions><speed>4.2</speed><course>91.0</course></extensions>
      </trkpt>
      <trkpt lat="47.3779" lon="8.5427">
        <ele>410.0</ele>
        <time>2024-03-15T10:00:20Z</time>
      </trkpt>
      <trkpt lat="47.3789" lon="8.5437">
        <time>2024-03-15T10:00:10Z</time>
      </trkpt>
    </trkseg>
  </trk>
</gpx>
"""


class TestParseGpx:
    """Tests for GPX parsing."""

    def test_point_count_and_format(self, sample_gpx):
        track = parse_gpx(sample_gpx, "ride.gpx")

        assert track.format == TrackFormat.GPX
        assert track.name == "ride.gpx"
        assert len(track.points) == 3

    def test_document_order_is_kept(self, sample_gpx):
        """Trackpoints are not re-sorted by time."""
        track = parse_gpx(sample_gpx)

        assert [p.lat for p in track.points] == [47.3769, 47.3779, 47.3789]

    def test_optional_fields(self, sample_gpx):
        first, second, third = parse_gpx(sample_gpx).points

        assert first.elevation == 408.5
        assert first.time == datetime(2024, 3, 15, 10, 0, 0, tzinfo=timezone.utc)
        assert first.satellites == 9
        assert first.hdop == 0.9
        assert first.vdop == 1.4
        assert first.pdop == 1.7
        assert first.speed == 4.2
        assert first.course == 91.0

        assert second.speed is None
        assert third.elevation is None

    def test_gpx_1_0_without_namespace(self):
        text = """<gpx version="1.0"><trk><trkseg>
            <trkpt lat="1.5" lon="2.5"><ele>3</ele><speed>0</speed></trkpt>
        </trkseg></trk></gpx>"""

        track = parse_gpx(text)

        assert len(track.points) == 1
        assert track.points[0].speed == 0.0

    def test_bom_is_tolerated(self, sample_gpx):
        track = parse_gpx("\ufeff" + sample_gpx)

        assert len(track.points) == 3

    def test_trkpt_without_lat_is_skipped(self):
        text = """<gpx><trk><trkseg>
            <trkpt lon="2.5"/>
            <trkpt lat="1.0" lon="2.0"/>
        </trkseg></trk></gpx>"""

        track = parse_gpx(text)

        assert len(track.points) == 1

    def test_malformed_xml(self):
        with pytest.raises(MalformedInput):
            parse_gpx("<gpx><trk>")

    def test_no_trackpoints(self):
        with pytest.raises(EmptyTrack):
            parse_gpx("<gpx><trk><trkseg></trkseg></trk></gpx>")

    def test_errors_are_parse_errors(self):
        """Both failures share a base class and carry a code."""
        with pytest.raises(ParseError) as exc_info:
            parse_gpx("not xml at all")

        assert exc_info.value.code == "malformed_input"


class TestExportGpx:
    """Tests for GPX export."""

    def test_round_trip(self, sample_gpx):
        track = parse_gpx(sample_gpx, "ride.gpx")

        reparsed = parse_gpx(export_gpx(track), "ride.gpx")

        for original, copy in zip(track.points, reparsed.points):
            assert copy.lat == original.lat
            assert copy.lon == original.lon
            assert copy.time == original.time
            assert copy.speed == original.speed
            assert copy.course == original.course
            assert copy.elevation == original.elevation

    def test_absent_fields_are_not_written(self):
        track = normalize_track([TrackPoint(lat=1.0, lon=2.0)], "bare", TrackFormat.NMEA)

        output = export_gpx(track)

        assert "<ele>" not in output
        assert "<time>" not in output
        assert 'lat="1.0" lon="2.0"' in output

    def test_name_is_escaped(self):
        track = normalize_track([TrackPoint(lat=1.0, lon=2.0)], "A & B <1>", TrackFormat.GPX)

        assert "<name>A &amp; B &lt;1&gt;</name>" in export_gpx(track)

    def test_utc_times_use_z_suffix(self, sample_gpx):
        output = export_gpx(parse_gpx(sample_gpx))

        assert "<time>2024-03-15T10:00:00Z</time>" in output
