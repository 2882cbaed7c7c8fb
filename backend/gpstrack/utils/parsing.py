"""
Tolerant scalar conversion helpers shared by the format parsers.

The scalar helpers return None instead of raising, so an absent or garbled field
stays "unknown" rather than becoming 0 or NaN.
"""

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


def safe_float(value: Any) -> Optional[float]:
    """
    Convert a value to float, returning None on failure.

    Empty strings, None, NaN and infinities all map to None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> Optional[int]:
    """Convert a value to int (accepting "8" and "8.0"), None on failure."""
    result = safe_float(value)
    if result is None:
        return None
    return int(result)


def parse_iso8601(text: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken to be UTC. Returns None when unparseable.
    """
    if not text or not isinstance(text, str):
        return None
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def read_text(path: Path) -> str:
    """Read a log as UTF-8, tolerating a BOM and undecodable bytes."""
    return Path(path).read_text(encoding="utf-8-sig", errors="replace")
