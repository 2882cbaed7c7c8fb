#!/usr/bin/env python3
"""
Standalone test runner for the GPS track engine.

Does not require pytest - a quick smoke pass over parsers, statistics,
colors and the repository.
"""

import sys
import tempfile
import traceback
from datetime import date, datetime, timezone
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

import numpy as np

# Track test results
passed = 0
failed = 0
errors = []


def test(name):
    """Decorator to mark and run a test function."""
    def decorator(func):
        global passed, failed, errors
        try:
            func()
            print(f"  ✓ {name}")
            passed += 1
        except AssertionError as e:
            print(f"  ✗ {name}")
            print(f"    AssertionError: {e}")
            failed += 1
            errors.append((name, str(e)))
        except Exception as e:
            print(f"  ✗ {name}")
            print(f"    {type(e).__name__}: {e}")
            failed += 1
            errors.append((name, traceback.format_exc()))
        return func
    return decorator


def assert_close(a, b, rtol=1e-5, atol=1e-8, msg=""):
    """Assert two values are close."""
    if not np.allclose(a, b, rtol=rtol, atol=atol):
        raise AssertionError(f"{msg}: {a} != {b} (rtol={rtol}, atol={atol})")


# ============================================================================
# Geodesy Tests
# ============================================================================

print("\n=== Geodesy Tests ===")

from gpstrack.models.track import TrackPoint
from gpstrack.utils.geodesy import distance, elevation_gain, protection_level


@test("Distance: 0.01 degrees longitude at 60N ~556 m")
def test_distance():
    d = distance(TrackPoint(lat=60.0, lon=5.0), TrackPoint(lat=60.0, lon=5.01))
    assert_close(d, 556.0, rtol=0.05, msg="Distance")


@test("Distance: identical points are 0")
def test_distance_zero():
    p = TrackPoint(lat=48.0, lon=11.0)
    assert distance(p, p) == 0.0


@test("Elevation gain: only rises count")
def test_gain():
    points = [TrackPoint(lat=0.0, lon=0.0, elevation=e) for e in (100.0, 90.0, 120.0)]
    assert_close(elevation_gain(points), 30.0, msg="Gain")


@test("Protection level: HDOP 1 -> 10.66 m")
def test_protection_level():
    assert_close(protection_level(1.0), 10.66, msg="HPL")
    assert protection_level(None) is None


# ============================================================================
# Parser Tests
# ============================================================================

print("\n=== Parser Tests ===")

from gpstrack.services.gpx_parser import parse_gpx
from gpstrack.services.nmea_parser import parse_nmea
from gpstrack.services.flightcell_parser import parse_flightcell

SAMPLE_NMEA = """$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47
$GPVTG,054.7,T,034.4,M,005.4,N,010.0,K*48
"""

SAMPLE_GPX = """<?xml version="1.0"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><trkseg>
    <trkpt lat="47.0" lon="8.0"><ele>400</ele><time>2024-03-15T10:00:00Z</time></trkpt>
    <trkpt lat="47.001" lon="8.0"><ele>405</ele><time>2024-03-15T10:00:10Z</time></trkpt>
  </trkseg></trk>
</gpx>
"""

SAMPLE_FLIGHTCELL_GPS = (
    '{"date":"15/03/24","time":"10:00:00.000","latitude":47.0,"longitude":8.0,"altitude":400}\n'
)
SAMPLE_FLIGHTCELL_FLIGHT = (
    '{"timestamp":"2024-03-15T10:00:00.500Z","gyro":[0,0,0],"accel":[0,0,1],'
    '"pitch":2.5,"roll":-1.0}\n'
)


@test("NMEA: GGA + VTG make one fix")
def test_nmea_fix():
    track = parse_nmea(SAMPLE_NMEA, today=date(2024, 3, 15))
    assert len(track.points) == 1
    point = track.points[0]
    assert_close(point.lat, 48.1173, atol=1e-4, msg="Latitude")
    assert_close(point.lon, 11.5167, atol=1e-4, msg="Longitude")
    assert_close(point.speed, 2.78, atol=0.01, msg="Speed")


@test("GPX: two trackpoints")
def test_gpx():
    track = parse_gpx(SAMPLE_GPX)
    assert len(track.points) == 2
    assert track.points[0].time == datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)


@test("FlightCell: attitude merged by second")
def test_flightcell():
    track = parse_flightcell(SAMPLE_FLIGHTCELL_GPS, SAMPLE_FLIGHTCELL_FLIGHT)
    assert track.has_orientation
    assert track.points[0].pitch == 2.5


# ============================================================================
# Statistics Tests
# ============================================================================

print("\n=== Statistics Tests ===")

from gpstrack.services.statistics import compute_statistics


@test("Statistics: empty input")
def test_stats_empty():
    assert compute_statistics([]) is None


@test("Statistics: GPX track")
def test_stats_gpx():
    stats = compute_statistics(parse_gpx(SAMPLE_GPX).points)
    assert stats.point_count == 2
    assert stats.duration == 10.0
    assert_close(stats.elevation_gain, 5.0, msg="Gain")


# ============================================================================
# Repository Tests
# ============================================================================

print("\n=== Repository Tests ===")

from gpstrack.services.repository import TrackRepository
from gpstrack.utils.sample_data import generate_test_data_set


@test("Repository: scan generated folder")
def test_repo_scan():
    with tempfile.TemporaryDirectory() as tmp:
        tmp_path = Path(tmp)
        generate_test_data_set(tmp_path, seed=1)
        repo = TrackRepository(tmp_path)
        # The flight-data log is paired, not listed
        assert repo.track_count == 3
        assert len(repo.list_tracks()) == 3


@test("Repository: cache works")
def test_repo_cache():
    with tempfile.TemporaryDirectory() as tmp:
        tmp_path = Path(tmp)
        generate_test_data_set(tmp_path, seed=1)
        repo = TrackRepository(tmp_path)
        track_id = repo.list_tracks()[0].id
        assert repo.get_track(track_id) is repo.get_track(track_id)


# ============================================================================
# Summary
# ============================================================================

print("\n" + "=" * 50)
print(f"RESULTS: {passed} passed, {failed} failed")
print("=" * 50)

if errors:
    print("\nFailures:")
    for name, error in errors:
        print(f"\n--- {name} ---")
        print(error)

sys.exit(0 if failed == 0 else 1)
