"""Subtitle document model and boundary validation.

Producers (the transcription adapter, the fallback generator, API callers)
hand over loosely-typed JSON. ``parse_document`` is the single gate that turns
that payload into immutable ``SubtitleLine`` records or raises
``InvalidInputError`` before any compilation work starts.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Tuple

from .errors import InvalidInputError


@dataclass(frozen=True)
class SubtitleLine:
    text: str
    start_time: float
    end_time: float
    speaker: Optional[str] = None
    override_color: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "speaker": self.speaker,
            "line": self.text,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }
        if self.override_color is not None:
            out["overrideColor"] = self.override_color
        return out


@dataclass(frozen=True)
class SubtitleDocument:
    """Ordered subtitle lines; insertion order is rendering order."""

    lines: Tuple[SubtitleLine, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[SubtitleLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def to_payload(self) -> dict:
        return {"subtitles": [line.to_dict() for line in self.lines]}


def _as_seconds(value: Any, field_name: str, index: int) -> float:
    # bool is an int subclass; "true" seconds is never meaningful
    if isinstance(value, bool):
        raise InvalidInputError(f"subtitles[{index}].{field_name} must be a number, got a boolean")
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        try:
            seconds = float(value.strip())
        except ValueError:
            raise InvalidInputError(f"subtitles[{index}].{field_name} is not numeric: {value!r}") from None
    elif value is None:
        raise InvalidInputError(f"subtitles[{index}].{field_name} is required")
    else:
        raise InvalidInputError(f"subtitles[{index}].{field_name} must be a number")
    if math.isnan(seconds) or math.isinf(seconds):
        raise InvalidInputError(f"subtitles[{index}].{field_name} must be finite")
    return seconds


def _as_speaker(value: Any, index: int) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise InvalidInputError(f"subtitles[{index}].speaker must be a string")


def _parse_line(raw: Any, index: int) -> SubtitleLine:
    if not isinstance(raw, Mapping):
        raise InvalidInputError(f"subtitles[{index}] must be an object")
    text = raw.get("line", raw.get("text"))
    if not isinstance(text, str):
        raise InvalidInputError(f"subtitles[{index}].line must be a string")
    override = raw.get("overrideColor")
    if override is not None and not isinstance(override, str):
        raise InvalidInputError(f"subtitles[{index}].overrideColor must be a string")
    return SubtitleLine(
        text=text,
        start_time=_as_seconds(raw.get("startTime"), "startTime", index),
        end_time=_as_seconds(raw.get("endTime"), "endTime", index),
        speaker=_as_speaker(raw.get("speaker"), index),
        override_color=override or None,
    )


def parse_document(payload: Any) -> SubtitleDocument:
    """Validate a ``{"subtitles": [...]}`` payload (dict or JSON text)."""
    if isinstance(payload, SubtitleDocument):
        return payload
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise InvalidInputError(f"Subtitle document is not valid JSON: {exc}") from None
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Subtitle document must be an object with a 'subtitles' field")
    if "subtitles" not in payload:
        raise InvalidInputError("Subtitle document is missing the 'subtitles' field")
    items = payload["subtitles"]
    if not isinstance(items, list):
        raise InvalidInputError("'subtitles' must be an array")
    return SubtitleDocument(tuple(_parse_line(item, i) for i, item in enumerate(items)))


__all__ = ["SubtitleLine", "SubtitleDocument", "parse_document"]
