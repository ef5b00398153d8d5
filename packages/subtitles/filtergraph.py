"""Typed filter descriptors and the one place they become filter graph text."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence, Tuple

from .sanitize import format_option_value
from .style import VERTICAL_CANVAS, Canvas

# values that survive both filter parsers untouched
_PLAIN = re.compile(r"^[A-Za-z0-9_.+\-*/()#@]+$")


@dataclass(frozen=True)
class Filter:
    """One filter stage: a name plus ordered ``key=value`` options."""

    name: str
    options: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def of(cls, name: str, *options: Tuple[str, Any]) -> "Filter":
        return cls(name, tuple(options))

    def option(self, key: str, default: Any = None) -> Any:
        for k, v in self.options:
            if k == key:
                return v
        return default


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.3f}"
    text = str(value)
    if _PLAIN.match(text):
        return text
    return format_option_value(text)


def serialize_filter(stage: Filter) -> str:
    if not stage.options:
        return stage.name
    args = ":".join(f"{key}={_render_value(value)}" for key, value in stage.options)
    return f"{stage.name}={args}"


def serialize_chain(stages: Iterable[Filter]) -> str:
    """Join stages into one linear chain, input flowing left to right."""
    return ",".join(serialize_filter(stage) for stage in stages)


def canvas_filters(canvas: Canvas = VERTICAL_CANVAS, fill: str = "black") -> Sequence[Filter]:
    """Fit the source inside the canvas, then pad it centered."""
    return (
        Filter.of(
            "scale",
            ("w", canvas.width),
            ("h", canvas.height),
            ("force_original_aspect_ratio", "decrease"),
        ),
        Filter.of(
            "pad",
            ("w", canvas.width),
            ("h", canvas.height),
            ("x", "(ow-iw)/2"),
            ("y", "(oh-ih)/2"),
            ("color", fill),
        ),
    )


__all__ = ["Filter", "serialize_filter", "serialize_chain", "canvas_filters"]
