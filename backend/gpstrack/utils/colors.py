"""
Value-to-color gradients for track rendering.

Each scheme is a table of (breakpoint, color) stops; a value is normalized
into [0, 1] over the track's range and interpolated linearly per RGB channel
between the two surrounding stops.
"""

import math
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Union

from gpstrack.models.track import TrackPoint


class RGB(NamedTuple):
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @classmethod
    def from_hex(cls, value: str) -> "RGB":
        value = value.lstrip("#")
        return cls(int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


class ColorScheme(Enum):
    SPEED = "speed"
    ELEVATION = "elevation"
    ACCURACY = "accuracy"


BLUE = RGB.from_hex("#3b82f6")
GREEN = RGB.from_hex("#10b981")
AMBER = RGB.from_hex("#f59e0b")
RED = RGB.from_hex("#ef4444")
BROWN = RGB.from_hex("#92400e")

DEFAULT_COLOR = BLUE

# scheme -> (inverted, stops)
COLOR_STOPS: dict[ColorScheme, tuple[bool, tuple[tuple[float, RGB], ...]]] = {
    # slow -> fast
    ColorScheme.SPEED: (False, ((0.0, BLUE), (0.33, GREEN), (0.66, AMBER), (1.0, RED))),
    # low -> high
    ColorScheme.ELEVATION: (False, ((0.0, GREEN), (0.5, AMBER), (1.0, BROWN))),
    # low DOP is good: poor -> good after inversion
    ColorScheme.ACCURACY: (True, ((0.0, RED), (0.5, AMBER), (1.0, GREEN))),
}

# Renderer defaults for points that lack the colored field
MISSING_VALUE_DEFAULTS = {
    ColorScheme.SPEED: 0.0,
    ColorScheme.ELEVATION: 0.0,
    ColorScheme.ACCURACY: 1.0,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def interpolate_color(c1: RGB, c2: RGB, factor: float) -> RGB:
    """Linear interpolation per channel, factor in [0, 1]."""
    return RGB(
        _round_half_up(c1.r + factor * (c2.r - c1.r)),
        _round_half_up(c1.g + factor * (c2.g - c1.g)),
        _round_half_up(c1.b + factor * (c2.b - c1.b)),
    )


def normalize_value(value: float, vmin: float, vmax: float) -> float:
    """Map value onto [0, 1] over [vmin, vmax]; 0 for an empty range."""
    if vmax == vmin:
        return 0.0
    normalized = (value - vmin) / (vmax - vmin)
    if math.isnan(normalized):
        return 0.0
    return min(1.0, max(0.0, normalized))


def _resolve_scheme(scheme: Union[ColorScheme, str]) -> Optional[ColorScheme]:
    if isinstance(scheme, ColorScheme):
        return scheme
    try:
        return ColorScheme(scheme)
    except ValueError:
        return None


def color_for_value(
    value: float,
    vmin: float,
    vmax: float,
    scheme: Union[ColorScheme, str] = ColorScheme.SPEED,
) -> RGB:
    """
    Color for a value within [vmin, vmax] under the given scheme.

    Unknown schemes fall back to ``DEFAULT_COLOR``.
    """
    resolved = _resolve_scheme(scheme)
    if resolved is None:
        return DEFAULT_COLOR

    inverted, stops = COLOR_STOPS[resolved]
    t = normalize_value(value, vmin, vmax)
    if inverted:
        t = 1.0 - t

    for (p0, c0), (p1, c1) in zip(stops, stops[1:]):
        if t <= p1:
            return interpolate_color(c0, c1, (t - p0) / (p1 - p0))
    return stops[-1][1]


def _point_value(point: TrackPoint, scheme: ColorScheme) -> Optional[float]:
    if scheme is ColorScheme.SPEED:
        return point.speed
    if scheme is ColorScheme.ELEVATION:
        return point.elevation
    return point.hdop


def segment_colors(
    points: Sequence[TrackPoint],
    scheme: Union[ColorScheme, str] = ColorScheme.SPEED,
) -> list[RGB]:
    """
    One color per segment ``points[i-1] -> points[i]``, colored by point i.

    The range is taken over the whole track. Unknown schemes color every
    segment with ``DEFAULT_COLOR``.
    """
    if len(points) < 2:
        return []

    resolved = _resolve_scheme(scheme)
    if resolved is None:
        return [DEFAULT_COLOR] * (len(points) - 1)

    default = MISSING_VALUE_DEFAULTS[resolved]
    values = []
    for p in points:
        v = _point_value(p, resolved)
        values.append(default if v is None else float(v))

    vmin, vmax = min(values), max(values)
    return [color_for_value(v, vmin, vmax, resolved) for v in values[1:]]
