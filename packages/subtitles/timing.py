"""Timing repair and timestamp formatting."""
from __future__ import annotations

from typing import Tuple

# Shortest window any backend will render; shorter events get stretched.
MIN_DURATION = 0.5


def repair_window(start: float, end: float, floor: float = MIN_DURATION) -> Tuple[float, float]:
    """Clamp a (start, end) pair to a non-negative window of at least ``floor`` seconds."""
    start = max(0.0, float(start))
    end = max(float(end), start + floor)
    return start, end


def format_seconds(value: float) -> str:
    """Seconds with millisecond precision for filter expressions."""
    return f"{value:.3f}"


def format_ass_time(value: float) -> str:
    """``H:MM:SS.CC`` as used by ASS dialogue events."""
    total_cs = int(max(0.0, value) * 100 + 0.5)
    hours, rem = divmod(total_cs, 360000)
    minutes, rem = divmod(rem, 6000)
    seconds, cs = divmod(rem, 100)
    return f"{hours}:{minutes:02d}:{seconds:02d}.{cs:02d}"


def format_srt_time(value: float) -> str:
    """``HH:MM:SS,mmm`` as used by SubRip cues."""
    total_ms = int(max(0.0, value) * 1000 + 0.5)
    hours, rem = divmod(total_ms, 3600000)
    minutes, rem = divmod(rem, 60000)
    seconds, ms = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{ms:03d}"


__all__ = ["MIN_DURATION", "repair_window", "format_seconds", "format_ass_time", "format_srt_time"]
