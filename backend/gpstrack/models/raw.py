"""
Raw telemetry records (source-format, unnormalized).

FlightCell attitude logs are loaded into this structure before they are
merged onto GPS points.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional


class Vector3(NamedTuple):
    """Three-axis sensor reading (gyro deg/s or accel g)."""

    x: Optional[float]
    y: Optional[float]
    z: Optional[float]


@dataclass(frozen=True)
class AttitudeSample:
    """One line of a FlightCell flight-data log."""

    time: datetime
    epoch_ms: Optional[int] = None
    gyro: Optional[Vector3] = None
    accel: Optional[Vector3] = None
    pitch: Optional[float] = None  # degrees
    roll: Optional[float] = None   # degrees

    @property
    def epoch_second(self) -> int:
        """Timestamp truncated to whole seconds, used as the merge key."""
        return int(self.time.timestamp() // 1)
