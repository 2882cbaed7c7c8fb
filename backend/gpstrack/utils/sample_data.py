"""
Sample data generator for testing.

Generates realistic-looking positioning logs in every supported format:
GPX, NMEA-0183 (.jps) and FlightCell GPS + flight-data JSON lines.
"""

import json
from datetime import datetime, timedelta, timezone
from functools import reduce
from pathlib import Path
from typing import Optional

import numpy as np


KNOTS_PER_MS = 3600.0 / 1852.0


def _generate_loop(
    n_samples: int,
    center_lat: float,
    center_lon: float,
    radius_m: float,
    base_alt_m: float,
    interval_s: float,
    rng: np.random.Generator,
) -> dict[str, np.ndarray]:
    """
    Closed loop around a center point with a gentle climb and descent.

    Returns per-sample arrays: lat, lon, alt, speed (m/s), heading, hdop, vdop,
    pdop, satellites and elapsed seconds.
    """
    t_param = np.linspace(0, 2 * np.pi, n_samples)

    # Slightly squashed circle so speed varies around the loop
    x_local = radius_m * np.cos(t_param)
    y_local = 0.6 * radius_m * np.sin(t_param)
    x_local += rng.normal(0, 0.5, n_samples)
    y_local += rng.normal(0, 0.5, n_samples)

    meters_per_deg_lat = 111000
    meters_per_deg_lon = 111000 * np.cos(np.radians(center_lat))
    lat = center_lat + y_local / meters_per_deg_lat
    lon = center_lon + x_local / meters_per_deg_lon

    alt = base_alt_m + 15.0 * np.sin(t_param) + rng.normal(0, 0.3, n_samples)

    dx = np.diff(x_local, prepend=x_local[0])
    dy = np.diff(y_local, prepend=y_local[0])
    speed = np.sqrt(dx**2 + dy**2) / interval_s
    speed[0] = speed[1]
    heading = np.degrees(np.arctan2(dx, dy)) % 360

    hdop = np.clip(rng.normal(1.0, 0.2, n_samples), 0.6, 3.0)
    vdop = np.clip(hdop * 1.5 + rng.normal(0, 0.1, n_samples), 0.8, 5.0)
    pdop = np.sqrt(hdop**2 + vdop**2)
    satellites = rng.integers(7, 13, n_samples)

    return {
        "lat": lat,
        "lon": lon,
        "alt": alt,
        "speed": speed,
        "heading": heading,
        "hdop": hdop,
        "vdop": vdop,
        "pdop": pdop,
        "satellites": satellites,
        "elapsed": np.arange(n_samples) * interval_s,
    }


def _write(output_path: Path, lines: list[str]) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return output_path


def generate_gpx_track(
    output_path: Path,
    n_samples: int = 120,
    start_time: datetime = datetime(2024, 3, 15, 10, 0, 0, tzinfo=timezone.utc),
    interval_s: float = 1.0,
    center_lat: float = 47.3769,
    center_lon: float = 8.5417,
    radius_m: float = 200.0,
    seed: Optional[int] = None,
) -> Path:
    """Generate a GPX 1.1 track with elevation, time, speed and DOP."""
    rng = np.random.default_rng(seed)
    data = _generate_loop(n_samples, center_lat, center_lon, radius_m, 410.0, interval_s, rng)

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<gpx version="1.1" creator="sample_data" xmlns="http://www.topografix.com/GPX/1/1">',
        "  <trk>",
        f"    <name>{output_path.stem}</name>",
        "    <trkseg>",
    ]
    for i in range(n_samples):
        when = start_time + timedelta(seconds=float(data["elapsed"][i]))
        lines.extend([
            f'      <trkpt lat="{data["lat"][i]:.7f}" lon="{data["lon"][i]:.7f}">',
            f"        <ele>{data['alt'][i]:.1f}</ele>",
            f"        <time>{when.strftime('%Y-%m-%dT%H:%M:%SZ')}</time>",
            f"        <speed>{data['speed'][i]:.2f}</speed>",
            f"        <sat>{data['satellites'][i]}</sat>",
            f"        <hdop>{data['hdop'][i]:.1f}</hdop>",
            f"        <vdop>{data['vdop'][i]:.1f}</vdop>",
            f"        <pdop>{data['pdop'][i]:.1f}</pdop>",
            "      </trkpt>",
        ])
    lines.extend(["    </trkseg>", "  </trk>", "</gpx>"])

    return _write(output_path, lines)


def nmea_checksum(body: str) -> str:
    """XOR of every character between '$' and '*', as two hex digits."""
    return f"{reduce(lambda acc, ch: acc ^ ord(ch), body, 0):02X}"


def nmea_sentence(body: str) -> str:
    return f"${body}*{nmea_checksum(body)}"


def _nmea_coordinate(value: float, is_lat: bool) -> tuple[str, str]:
    hemisphere = ("N" if value >= 0 else "S") if is_lat else ("E" if value >= 0 else "W")
    value = abs(value)
    degrees = int(value)
    minutes = (value - degrees) * 60
    width = 2 if is_lat else 3
    return f"{degrees:0{width}d}{minutes:07.4f}", hemisphere


def generate_nmea_track(
    output_path: Path,
    n_samples: int = 120,
    start_time: datetime = datetime(2024, 3, 15, 10, 0, 0, tzinfo=timezone.utc),
    interval_s: float = 1.0,
    center_lat: float = 48.1173,
    center_lon: float = 11.5167,
    radius_m: float = 150.0,
    seed: Optional[int] = None,
) -> Path:
    """
    Generate a JPS-style NMEA log: GGA + VTG + GSA per epoch, ZDA every 10 s.
    """
    rng = np.random.default_rng(seed)
    data = _generate_loop(n_samples, center_lat, center_lon, radius_m, 545.0, interval_s, rng)

    lines = []
    for i in range(n_samples):
        when = start_time + timedelta(seconds=float(data["elapsed"][i]))
        hhmmss = when.strftime("%H%M%S") + f".{when.microsecond // 10000:02d}"
        lat, ns = _nmea_coordinate(data["lat"][i], is_lat=True)
        lon, ew = _nmea_coordinate(data["lon"][i], is_lat=False)

        lines.append(nmea_sentence(
            f"GPGGA,{hhmmss},{lat},{ns},{lon},{ew},1,{data['satellites'][i]:02d},"
            f"{data['hdop'][i]:.1f},{data['alt'][i]:.1f},M,46.9,M,,"
        ))
        speed_ms = data["speed"][i]
        lines.append(nmea_sentence(
            f"GPVTG,{data['heading'][i]:.1f},T,,M,{speed_ms * KNOTS_PER_MS:.2f},N,"
            f"{speed_ms * 3.6:.2f},K,A"
        ))
        lines.append(nmea_sentence(
            "GPGSA,A,3,04,05,09,12,,,,,,,,,"
            f"{data['pdop'][i]:.1f},{data['hdop'][i]:.1f},{data['vdop'][i]:.1f}"
        ))
        if i % 10 == 0:
            lines.append(nmea_sentence(
                f"GPZDA,{hhmmss},{when.day:02d},{when.month:02d},{when.year},00,00"
            ))

    return _write(output_path, lines)


def generate_flightcell_logs(
    gps_path: Path,
    flight_path: Path,
    n_samples: int = 60,
    start_time: datetime = datetime(2024, 3, 15, 10, 0, 0, tzinfo=timezone.utc),
    flight_rate_hz: int = 4,
    center_lat: float = -41.2865,
    center_lon: float = 174.7762,
    radius_m: float = 500.0,
    seed: Optional[int] = None,
) -> tuple[Path, Path]:
    """
    Generate a FlightCell GPS log (1 Hz) and its flight-data log.

    Speed in the GPS log is written in knots, as the unit logs it.
    """
    rng = np.random.default_rng(seed)
    data = _generate_loop(n_samples, center_lat, center_lon, radius_m, 300.0, 1.0, rng)

    gps_lines = []
    for i in range(n_samples):
        when = start_time + timedelta(seconds=i)
        gps_lines.append(json.dumps({
            "date": when.strftime("%d/%m/%y"),
            "time": when.strftime("%H:%M:%S") + ".000",
            "latitude": round(float(data["lat"][i]), 7),
            "longitude": round(float(data["lon"][i]), 7),
            "altitude": round(float(data["alt"][i]), 1),
            "speed": round(float(data["speed"][i] * KNOTS_PER_MS), 2),
            "heading": round(float(data["heading"][i]), 1),
            "hdop": round(float(data["hdop"][i]), 1),
            "pdop": round(float(data["pdop"][i]), 1),
            "satellites": int(data["satellites"][i]),
            "fix_type": 3,
        }))

    n_flight = n_samples * flight_rate_hz
    pitch = 5.0 * np.sin(np.linspace(0, 4 * np.pi, n_flight)) + rng.normal(0, 0.2, n_flight)
    roll = 20.0 * np.sin(np.linspace(0, 2 * np.pi, n_flight)) + rng.normal(0, 0.5, n_flight)
    gyro = rng.normal(0, 1.5, (n_flight, 3))
    accel = rng.normal(0, 0.05, (n_flight, 3)) + np.array([0.0, 0.0, 1.0])

    flight_lines = []
    for i in range(n_flight):
        when = start_time + timedelta(seconds=i / flight_rate_hz)
        flight_lines.append(json.dumps({
            "timestamp": when.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "epoch_milli_secs": int(when.timestamp() * 1000),
            "gyro": [round(float(v), 3) for v in gyro[i]],
            "accel": [round(float(v), 3) for v in accel[i]],
            "pitch": round(float(pitch[i]), 2),
            "roll": round(float(roll[i]), 2),
        }))

    return _write(gps_path, gps_lines), _write(flight_path, flight_lines)


def generate_test_data_set(output_folder: Path, seed: Optional[int] = None) -> list[Path]:
    """Generate one log per format (FlightCell as a GPS + flight-data pair)."""
    output_folder.mkdir(parents=True, exist_ok=True)

    files = [
        generate_gpx_track(output_folder / "track_001_loop.gpx", seed=seed),
        generate_nmea_track(output_folder / "track_002_receiver.jps", seed=seed),
    ]
    files.extend(generate_flightcell_logs(
        output_folder / "track_003_flightcell_gps.log",
        output_folder / "track_003_flightcell_flight.log",
        seed=seed,
    ))
    return files


if __name__ == "__main__":
    # Generate test data when run directly
    output = Path("./data/tracks")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} test files in {output}")
    for f in files:
        print(f"  - {f.name}")
