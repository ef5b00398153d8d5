"""Subtitle track documents (ASS and SubRip) for the ``subtitles`` filter.

ASS output uses one style per line (``Sub0``, ``Sub1``, ...) so a speaker
whose color changes mid-document never shares a style record with a
different color. Text is wrapped here and ``WrapStyle: 2`` stops libass from
re-wrapping it.
"""
from __future__ import annotations

from typing import List, Optional

from .colors import (
    DEFAULT_TEXT_COLOR,
    SpeakerPalette,
    ass_with_alpha,
    hex_to_ass,
    hex_to_color,
)
from .models import SubtitleDocument
from .sanitize import sanitize_ass, sanitize_srt
from .style import VERTICAL_CANVAS, Canvas, StyleConfig
from .timing import format_ass_time, format_srt_time, repair_window
from .wrap import chars_per_line, split_display_lines

STYLE_FORMAT = (
    "Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, "
    "Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, "
    "Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding"
)
EVENT_FORMAT = "Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"

# numpad alignment, bottom row
ALIGNMENT = {"left": 1, "center": 2, "right": 3}
BOX_PADDING = 5
SHADOW_TOKEN = ("black", 0.8)
FADE_IN_TAG = r"{\fad(500,0)}"
# libass renders SubRip at this PlayResY
SRT_PLAY_RES_Y = 288


def _script_info(canvas: Canvas) -> List[str]:
    return [
        "[Script Info]",
        "ScriptType: v4.00+",
        f"PlayResX: {canvas.width}",
        f"PlayResY: {canvas.height}",
        "WrapStyle: 2",
        "ScaledBorderAndShadow: yes",
        "YCbCr Matrix: None",
    ]


def _border_fields(style: StyleConfig) -> tuple:
    """(BorderStyle, OutlineColour, BackColour, Outline, Shadow)."""
    shadow = style.shadow_offset if style.shadow else 0
    back = ass_with_alpha(*SHADOW_TOKEN)
    if style.background_enabled:
        box = ass_with_alpha(style.background_color, style.background_opacity)
        return 3, box, back, BOX_PADDING, shadow
    outline = style.outline_width if style.outline else 0
    return 1, hex_to_ass("black"), back, outline, shadow


def style_record(name: str, color: str, style: StyleConfig, font_name: str) -> str:
    border_style, outline_colour, back_colour, outline, shadow = _border_fields(style)
    primary = hex_to_ass(color, DEFAULT_TEXT_COLOR)
    fields = [
        name,
        font_name,
        style.font_size,
        primary,
        primary,
        outline_colour,
        back_colour,
        0,
        -1 if style.italic else 0,
        0,
        0,
        100,
        100,
        0,
        0,
        border_style,
        outline,
        shadow,
        ALIGNMENT[style.text_align],
        style.margin_h,
        style.margin_h,
        style.margin_v,
        1,
    ]
    return "Style: " + ",".join(str(f) for f in fields)


def _event_name(speaker: Optional[str]) -> str:
    return (speaker or "").replace(",", " ").replace("\n", " ").strip()


def build_ass_document(
    document: SubtitleDocument,
    style: StyleConfig,
    font_name: str,
    canvas: Canvas = VERTICAL_CANVAS,
    palette: Optional[SpeakerPalette] = None,
) -> str:
    palette = palette or SpeakerPalette(style.speaker_colors)
    budget = chars_per_line(style.font_size, style.max_width)
    styles: List[str] = []
    events: List[str] = []
    for index, line in enumerate(document):
        name = f"Sub{index}"
        color = palette.color_for(line.speaker, line.override_color)
        styles.append(style_record(name, color, style, font_name))
        start, end = repair_window(line.start_time, line.end_time)
        display = [d for d in split_display_lines(line.text, budget) if d.strip()]
        if not display:
            continue
        text = r"\N".join(sanitize_ass(d) for d in display)
        if style.fade_in:
            text = FADE_IN_TAG + text
        events.append(
            f"Dialogue: 0,{format_ass_time(start)},{format_ass_time(end)},{name},"
            f"{_event_name(line.speaker)},0,0,0,,{text}"
        )
    if not styles:
        styles.append(style_record("Default", DEFAULT_TEXT_COLOR, style, font_name))

    out = _script_info(canvas)
    out += ["", "[V4+ Styles]", f"Format: {STYLE_FORMAT}"] + styles
    out += ["", "[Events]", f"Format: {EVENT_FORMAT}"] + events
    return "\n".join(out) + "\n"


def build_srt_document(
    document: SubtitleDocument,
    style: StyleConfig,
    palette: Optional[SpeakerPalette] = None,
) -> str:
    """SubRip cues; per-line colors travel as ``<font color>`` tags."""
    palette = palette or SpeakerPalette(style.speaker_colors)
    budget = chars_per_line(style.font_size, style.max_width)
    cues: List[str] = []
    for line in document:
        color = palette.color_for(line.speaker, line.override_color)
        start, end = repair_window(line.start_time, line.end_time)
        display = [sanitize_srt(d) for d in split_display_lines(line.text, budget)]
        display = [d for d in display if d]
        if not display:
            continue
        hex_color = "#" + hex_to_color(color, DEFAULT_TEXT_COLOR)[2:8]
        body = "\n".join(f'<font color="{hex_color}">{d}</font>' for d in display)
        cues.append(f"{len(cues) + 1}\n{format_srt_time(start)} --> {format_srt_time(end)}\n{body}\n")
    return "\n".join(cues)


def srt_force_style(style: StyleConfig, font_name: str, canvas: Canvas = VERTICAL_CANVAS) -> str:
    """``force_style`` value for rendering a SubRip track on ``canvas``."""
    scale = SRT_PLAY_RES_Y / float(canvas.height)
    border_style, outline_colour, back_colour, outline, shadow = _border_fields(style)
    parts = [
        ("FontName", font_name),
        ("FontSize", max(1, int(round(style.font_size * scale)))),
        ("Italic", -1 if style.italic else 0),
        ("BorderStyle", border_style),
        ("OutlineColour", outline_colour),
        ("BackColour", back_colour),
        ("Outline", max(0, int(round(outline * scale)))),
        ("Shadow", max(0, int(round(shadow * scale)))),
        ("Alignment", ALIGNMENT[style.text_align]),
        ("MarginL", int(round(style.margin_h * scale))),
        ("MarginR", int(round(style.margin_h * scale))),
        ("MarginV", int(round(style.margin_v * scale))),
    ]
    return ",".join(f"{k}={v}" for k, v in parts)


__all__ = [
    "STYLE_FORMAT",
    "EVENT_FORMAT",
    "ALIGNMENT",
    "FADE_IN_TAG",
    "style_record",
    "build_ass_document",
    "build_srt_document",
    "srt_force_style",
]
