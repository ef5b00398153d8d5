"""Greedy word wrapping with hard splits for oversized words."""
from __future__ import annotations

import re
from typing import List

# Characters that fit across the full canvas width at 50px.
BASE_CHARS_AT_50 = 40
BASE_FONT_SIZE = 50

_NEWLINES = re.compile(r"\r\n|\r|\n")


def chars_per_line(font_size: float, max_width: float = 100.0) -> int:
    """Character budget for one display line; larger fonts wrap sooner."""
    if font_size <= 0:
        return 1
    budget = BASE_CHARS_AT_50 * (BASE_FONT_SIZE / float(font_size)) * (float(max_width) / 100.0)
    return max(1, int(round(budget)))


def wrap_line(text: str, budget: int) -> List[str]:
    """Wrap ``text`` into display lines of at most ``budget`` characters.

    Always returns at least one (possibly empty) line.
    """
    budget = max(1, int(budget))
    lines: List[str] = []
    current = ""
    for word in (text or "").split():
        if len(word) > budget:
            if current:
                lines.append(current)
            chunks = [word[i:i + budget] for i in range(0, len(word), budget)]
            lines.extend(chunks[:-1])
            current = chunks[-1]
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= budget:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def split_display_lines(text: str, budget: int) -> List[str]:
    """Honor embedded line breaks, then wrap each segment."""
    segments = _NEWLINES.split(text or "")
    out: List[str] = []
    for segment in segments:
        if not segment.strip() and len(segments) > 1:
            continue
        out.extend(wrap_line(segment, budget))
    return out or [""]


__all__ = ["chars_per_line", "wrap_line", "split_display_lines"]
