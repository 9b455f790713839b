"""Timestamp parsing and formatting.

The analysis service writes timestamps as "M:SS" strings, bare seconds, or
numbers depending on the field. Anything that cannot be read is treated as
the start of the video.
"""

from __future__ import annotations

import math
from typing import Any


def _to_float(value: str) -> float | None:
    try:
        result = float(value)
    except ValueError:
        return None
    return result if math.isfinite(result) else None


def parse_timestamp(ts: Any) -> float:
    """Parse a timestamp into seconds.

    Args:
        ts: A number, an "M:SS" or "H:MM:SS" string, or a decimal-seconds string.

    Returns:
        Seconds from the start of the video, never negative. Unparseable or
        missing input yields 0.0.
    """
    if ts is None or isinstance(ts, bool):
        return 0.0

    if isinstance(ts, (int, float)):
        seconds = float(ts)
        return max(0.0, seconds) if math.isfinite(seconds) else 0.0

    if not isinstance(ts, str):
        return 0.0

    text = ts.strip()
    if not text:
        return 0.0

    if ":" in text:
        parts = [_to_float(part) for part in text.split(":")]
        if len(parts) not in (2, 3) or any(part is None for part in parts):
            return 0.0
        seconds = 0.0
        for part in parts:
            seconds = seconds * 60 + part  # type: ignore[operator]
        return max(0.0, seconds)

    seconds = _to_float(text)
    if seconds is None:
        return 0.0
    return max(0.0, seconds)


def format_timestamp(seconds: float) -> str:
    """Format seconds as "M:SS" with zero-padded seconds.

    Minutes are not wrapped into hours, so 75 minutes renders as "75:00".
    """
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    whole = int(seconds)
    return f"{whole // 60}:{whole % 60:02d}"
