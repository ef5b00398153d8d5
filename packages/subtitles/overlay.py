"""Per-line drawtext stages for overlay mode.

Every display line of every subtitle becomes one ``drawtext`` stage. Lines of
one subtitle are emitted top to bottom and stacked upward from the bottom
margin so wrapped text never overlaps.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from .colors import DEFAULT_TEXT_COLOR, SpeakerPalette, hex_to_color, with_alpha
from .filtergraph import Filter
from .models import SubtitleDocument
from .sanitize import sanitize_drawtext
from .style import StyleConfig
from .timing import format_seconds, repair_window
from .wrap import chars_per_line, split_display_lines

FADE_IN_SECONDS = 0.5
BOX_BORDER = 5
SHADOW_COLOR = ("black", 0.8)
OUTLINE_COLOR = "black"


def x_expression(style: StyleConfig) -> str:
    if style.text_align == "left":
        return str(style.margin_h)
    if style.text_align == "right":
        return f"w-{style.margin_h}-text_w"
    return "(w-text_w)/2"


def y_expression(style: StyleConfig, index_from_bottom: int) -> str:
    offset = style.margin_v + index_from_bottom * style.line_height
    return f"h-text_h-{offset}"


def fade_in_alpha(start: float, end: float, ramp: float = FADE_IN_SECONDS) -> str:
    s, e, r = format_seconds(start), format_seconds(end), format_seconds(ramp)
    return f"if(lt(t,{s}),0,if(lt(t,{s}+{r}),(t-{s})/{r},if(lt(t,{e}),1,0)))"


def visibility_option(start: float, end: float, fade_in: bool) -> Tuple[str, str]:
    if fade_in:
        return ("alpha", fade_in_alpha(start, end))
    return ("enable", f"between(t,{format_seconds(start)},{format_seconds(end)})")


def drawtext_stage(
    text: str,
    *,
    font_path: str,
    color: str,
    style: StyleConfig,
    index_from_bottom: int,
    start: float,
    end: float,
) -> Filter:
    options: List[Tuple[str, object]] = [
        ("text", sanitize_drawtext(text)),
        ("fontfile", font_path),
        ("fontsize", style.font_size),
        ("fontcolor", hex_to_color(color, DEFAULT_TEXT_COLOR)),
        ("x", x_expression(style)),
        ("y", y_expression(style, index_from_bottom)),
    ]
    if style.background_enabled:
        options += [
            ("box", True),
            ("boxcolor", with_alpha(style.background_color, style.background_opacity)),
            ("boxborderw", BOX_BORDER),
        ]
    if style.shadow and style.shadow_offset > 0:
        options += [
            ("shadowcolor", with_alpha(*SHADOW_COLOR)),
            ("shadowx", style.shadow_offset),
            ("shadowy", style.shadow_offset),
        ]
    if style.outline and style.outline_width > 0:
        options += [
            ("borderw", style.outline_width),
            ("bordercolor", hex_to_color(OUTLINE_COLOR)),
        ]
    options.append(visibility_option(start, end, style.fade_in))
    return Filter("drawtext", tuple(options))


def build_overlay_filters(
    document: SubtitleDocument,
    style: StyleConfig,
    font_path: str,
    palette: Optional[SpeakerPalette] = None,
) -> List[Filter]:
    """drawtext stages for the whole document, in document order."""
    palette = palette or SpeakerPalette(style.speaker_colors)
    budget = chars_per_line(style.font_size, style.max_width)
    stages: List[Filter] = []
    for line in document:
        color = palette.color_for(line.speaker, line.override_color)
        start, end = repair_window(line.start_time, line.end_time)
        display = [d for d in split_display_lines(line.text, budget) if d.strip()]
        for idx, text in enumerate(display):
            stages.append(
                drawtext_stage(
                    text,
                    font_path=font_path,
                    color=color,
                    style=style,
                    index_from_bottom=len(display) - 1 - idx,
                    start=start,
                    end=end,
                )
            )
    return stages


__all__ = [
    "FADE_IN_SECONDS",
    "x_expression",
    "y_expression",
    "fade_in_alpha",
    "visibility_option",
    "drawtext_stage",
    "build_overlay_filters",
]
