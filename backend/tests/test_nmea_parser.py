"""
Tests for the NMEA-0183 / JPS parser.
"""

from datetime import date, datetime, timezone

import pytest
from numpy.testing import assert_allclose

from gpstrack.models.track import TrackFormat
from gpstrack.services.errors import EmptyTrack, IncompleteSample
from gpstrack.services.nmea_parser import (
    parse_gsa,
    parse_nmea,
    parse_nmea_coordinate,
    parse_nmea_time,
    parse_zda,
    split_sentence,
)


GGA = "$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47"
VTG = "$GPVTG,054.7,T,034.4,M,005.4,N,010.0,K*48"
GSA = "$GPGSA,A,3,04,05,,09,12,,,24,,,,,2.5,1.3,2.1*39"
ZDA = "$GPZDA,123519,15,03,2024,00,00*4A"

TODAY = date(2000, 1, 1)


def _nmea(*lines):
    return "\n".join(lines) + "\n"


class TestFieldParsing:
    """Tests for single-field helpers."""

    def test_coordinate_north_east(self):
        assert_allclose(parse_nmea_coordinate("4807.038", "N"), 48.1173, atol=1e-6)
        assert_allclose(parse_nmea_coordinate("01131.000", "E"), 11.516667, atol=1e-6)

    def test_coordinate_south_west_are_negative(self):
        assert parse_nmea_coordinate("3351.000", "S") == pytest.approx(-33.85)
        assert parse_nmea_coordinate("15112.000", "W") == pytest.approx(-151.2)

    def test_coordinate_missing(self):
        with pytest.raises(IncompleteSample):
            parse_nmea_coordinate("", "N")

    def test_time_of_day(self):
        t = parse_nmea_time("123519.50")

        assert (t.hour, t.minute, t.second, t.microsecond) == (12, 35, 19, 500000)

    def test_bad_time(self):
        with pytest.raises(IncompleteSample):
            parse_nmea_time("12")

    def test_split_sentence_strips_checksum(self):
        sentence_type, fields = split_sentence(GGA)

        assert sentence_type == "GGA"
        assert fields[-1] == ""
        assert fields[9] == "545.4"

    def test_split_rejects_non_sentences(self):
        assert split_sentence("hello") is None
        assert split_sentence("$PTNL,GGK,1,2") is None

    def test_gsa_reads_dop_from_end(self):
        _, fields = split_sentence(GSA)

        assert parse_gsa(fields) == {"pdop": 2.5, "hdop": 1.3, "vdop": 2.1}

    def test_zda_returns_time_and_date(self):
        _, fields = split_sentence(ZDA)

        time_of_day, day = parse_zda(fields)

        assert (time_of_day.hour, time_of_day.minute, time_of_day.second) == (12, 35, 19)
        assert day == date(2024, 3, 15)

    def test_zda_without_time(self):
        _, fields = split_sentence("$GPZDA,,15,03,2024,00,00")

        assert parse_zda(fields) == (None, date(2024, 3, 15))

    def test_gsa_with_system_id(self):
        _, fields = split_sentence("$GNGSA,A,3,04,05,,09,12,,,24,,,,,2.5,1.3,2.1,1*00")

        assert parse_gsa(fields) == {"pdop": 2.5, "hdop": 1.3, "vdop": 2.1}


class TestParseNmea:
    """Tests for fix correlation."""

    def test_gga_plus_vtg_scenario(self):
        """One GGA with a 10 km/h VTG gives one fully populated point."""
        track = parse_nmea(_nmea(GGA, VTG), today=TODAY)

        assert track.format == TrackFormat.NMEA
        assert len(track.points) == 1
        point = track.points[0]
        assert_allclose(point.lat, 48.1173, atol=1e-4)
        assert_allclose(point.lon, 11.5167, atol=1e-4)
        assert point.elevation == 545.4
        assert_allclose(point.speed, 2.78, atol=0.01)
        assert point.course == 54.7
        assert point.satellites == 8
        assert point.fix_quality == 1
        assert point.hdop == 0.9

    def test_time_uses_fallback_date_without_zda(self):
        track = parse_nmea(_nmea(GGA), today=TODAY)

        assert track.points[0].time == datetime(2000, 1, 1, 12, 35, 19, tzinfo=timezone.utc)

    def test_zda_supplies_the_date(self):
        track = parse_nmea(_nmea(GGA, ZDA), today=TODAY)

        assert track.points[0].time == datetime(2024, 3, 15, 12, 35, 19, tzinfo=timezone.utc)

    def test_zda_before_fix_applies_to_later_fixes(self):
        later = GGA.replace("123519", "123520")

        track = parse_nmea(_nmea(GGA, ZDA, later), today=TODAY)

        assert [p.time.date() for p in track.points] == [date(2024, 3, 15)] * 2

    def test_fix_before_first_zda_uses_it(self):
        second = GGA.replace("123519", "123520")
        zda = ZDA.replace("123519", "123520")

        track = parse_nmea(_nmea(GGA, second, zda), today=TODAY)

        assert track.points[0].time.date() == date(2024, 3, 15)

    def test_zda_first_order_across_midnight(self):
        """Receivers that send ZDA ahead of GGA date each fix by its own epoch."""
        text = _nmea(
            "$GPZDA,235958,14,03,2024,00,00",
            GGA.replace("123519", "235958"),
            "$GPZDA,235959,14,03,2024,00,00",
            GGA.replace("123519", "235959"),
            "$GPZDA,000000,15,03,2024,00,00",
            GGA.replace("123519", "000000"),
        )

        track = parse_nmea(text, today=TODAY)

        assert [p.time for p in track.points] == [
            datetime(2024, 3, 14, 23, 59, 58, tzinfo=timezone.utc),
            datetime(2024, 3, 14, 23, 59, 59, tzinfo=timezone.utc),
            datetime(2024, 3, 15, 0, 0, 0, tzinfo=timezone.utc),
        ]

    def test_zda_after_gga_across_midnight(self):
        text = _nmea(
            GGA.replace("123519", "235959"),
            "$GPZDA,235959,14,03,2024,00,00",
            GGA.replace("123519", "000000"),
            "$GPZDA,000000,15,03,2024,00,00",
        )

        track = parse_nmea(text, today=TODAY)

        assert [p.time.date() for p in track.points] == [date(2024, 3, 14), date(2024, 3, 15)]

    def test_gga_hdop_takes_precedence_over_gsa(self):
        track = parse_nmea(_nmea(GGA, GSA), today=TODAY)
        point = track.points[0]

        assert point.hdop == 0.9
        assert point.pdop == 2.5
        assert point.vdop == 2.1

    def test_knots_fallback(self):
        vtg = "$GPVTG,054.7,T,034.4,M,005.4,N,,K*48"

        track = parse_nmea(_nmea(GGA, vtg), today=TODAY)

        assert_allclose(track.points[0].speed, 5.4 * 1852 / 3600)

    def test_zero_speed_is_kept(self):
        vtg = "$GPVTG,000.0,T,,M,000.0,N,000.0,K*48"

        track = parse_nmea(_nmea(GGA, vtg), today=TODAY)

        assert track.points[0].speed == 0.0

    def test_points_sorted_by_time(self):
        early = GGA.replace("123519", "120000")
        late = GGA.replace("123519", "130000")

        track = parse_nmea(_nmea(late, GGA, early), today=TODAY)
        times = [p.time for p in track.points]

        assert times == sorted(times)
        assert len(times) == 3

    def test_vtg_applies_to_most_recent_fix(self):
        second = GGA.replace("123519", "123520")

        track = parse_nmea(_nmea(GGA, second, VTG), today=TODAY)

        assert track.points[0].speed is None
        assert track.points[1].speed is not None

    def test_repeated_gga_updates_same_fix(self):
        updated = GGA.replace("545.4", "600.0")

        track = parse_nmea(_nmea(GGA, updated), today=TODAY)

        assert len(track.points) == 1
        assert track.points[0].elevation == 600.0

    def test_noise_is_ignored(self):
        text = _nmea(
            "garbage line",
            "$GPGSV,3,1,11,03,03,111,00,04,15,270,00,06,01,010,00,13,06,292,00*74",
            "$GPGGA,123518,,N,,E,0,00,,,M,,M,,*00",
            GGA,
            "",
        )

        track = parse_nmea(text, today=TODAY)

        assert len(track.points) == 1

    def test_no_fixes_is_empty_track(self):
        with pytest.raises(EmptyTrack):
            parse_nmea(_nmea(VTG, GSA), today=TODAY)

    def test_default_date_is_today(self):
        track = parse_nmea(_nmea(GGA))

        assert track.points[0].time.date() == datetime.now(timezone.utc).date()
