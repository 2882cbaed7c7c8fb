"""
Tabular views of a track for charting.

Charts plot elevation and speed against distance or elapsed time; these
helpers lay a track out as a pandas DataFrame with those axes attached.
"""

import numpy as np
import pandas as pd

from gpstrack.models.track import Track
from gpstrack.utils.geodesy import cumulative_distances


POINT_COLUMNS = [
    "lat",
    "lon",
    "elevation",
    "time",
    "speed",
    "course",
    "heading",
    "hdop",
    "vdop",
    "pdop",
    "satellites",
    "fix_quality",
    "pitch",
    "roll",
]


def track_to_frame(track: Track) -> pd.DataFrame:
    """One row per point; absent values become NaN (NaT for times)."""
    rows = [{col: getattr(p, col) for col in POINT_COLUMNS} for p in track.points]
    df = pd.DataFrame(rows, columns=POINT_COLUMNS)
    df["time"] = pd.to_datetime(df["time"], utc=True)
    numeric = [col for col in POINT_COLUMNS if col != "time"]
    df[numeric] = df[numeric].apply(pd.to_numeric, errors="coerce").astype(np.float64)
    return df


def build_profile(track: Track) -> pd.DataFrame:
    """
    Point table plus chart axes.

    Adds ``distance_m`` (running great-circle distance) and ``elapsed_s``
    (seconds since the first timestamp; NaN where the point has no time).
    """
    df = track_to_frame(track)
    df["distance_m"] = cumulative_distances(track.points)

    times = df["time"]
    if times.notna().any():
        start = times.dropna().iloc[0]
        df["elapsed_s"] = (times - start).dt.total_seconds()
    else:
        df["elapsed_s"] = np.nan
    return df
