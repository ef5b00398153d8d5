"""Style configuration resolution and font lookup.

Callers send any subset of the recognized options, in camelCase (the JSON
shape used by the upload forms) or snake_case. ``resolve_style`` fills in the
documented defaults and returns an immutable ``StyleConfig``.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .colors import DEFAULT_BOX_COLOR, DEFAULT_BOX_OPACITY, is_color
from .errors import FontNotFoundError, InvalidInputError

TEXT_ALIGNMENTS = ("center", "left", "right")
ANIMATION_STYLES = ("none", "fadeIn")
NO_BACKGROUND = {"none", "transparent", ""}

FONT_FILES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Roboto": ("Roboto-Regular.ttf",),
        "Avenir": ("Avenir.otf",),
        "DejaVu Sans": ("DejaVuSans.ttf",),
        "Liberation Sans": ("LiberationSans-Regular.ttf",),
    }
)

SYSTEM_FONT_DIRS: Tuple[str, ...] = (
    "/usr/share/fonts/truetype/dejavu",
    "/usr/share/fonts/truetype/liberation",
    "/usr/share/fonts/truetype/roboto",
    "/usr/share/fonts/TTF",
    "/Library/Fonts",
)


@dataclass(frozen=True)
class Canvas:
    width: int = 1080
    height: int = 1920


VERTICAL_CANVAS = Canvas()


@dataclass(frozen=True)
class StyleConfig:
    font_family: str = "Roboto"
    font_size: int = 44
    margin_v: int = 255
    margin_h: int = 20
    italic: bool = False
    text_align: str = "center"
    line_spacing: int = 5
    max_width: float = 80.0
    shadow: bool = True
    outline: bool = True
    outline_width: int = 2
    shadow_offset: int = 2
    background_color: str = DEFAULT_BOX_COLOR
    background_opacity: float = DEFAULT_BOX_OPACITY
    animation_style: str = "none"
    speaker_colors: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def background_enabled(self) -> bool:
        return (
            self.background_opacity > 0
            and self.background_color.strip().lower() not in NO_BACKGROUND
        )

    @property
    def fade_in(self) -> bool:
        return self.animation_style == "fadeIn"

    @property
    def line_height(self) -> int:
        """Vertical distance between stacked display lines."""
        return int(round(self.font_size * 1.2)) + self.line_spacing


DEFAULT_STYLE = StyleConfig()

# external key -> StyleConfig field
_KEYS = {
    "fontFamily": "font_family",
    "fontSize": "font_size",
    "marginV": "margin_v",
    "verticalPosition": "margin_v",
    "marginH": "margin_h",
    "reelsMargin": "margin_h",
    "italic": "italic",
    "textAlign": "text_align",
    "lineSpacing": "line_spacing",
    "maxWidth": "max_width",
    "reelsWidth": "max_width",
    "shadow": "shadow",
    "outline": "outline",
    "outlineWidth": "outline_width",
    "shadowOffset": "shadow_offset",
    "backgroundColor": "background_color",
    "backgroundOpacity": "background_opacity",
    "animationStyle": "animation_style",
    "speakerColors": "speaker_colors",
}
_KEYS.update({f.name: f.name for f in fields(StyleConfig)})

# every key resolve_style understands, nested effects included
STYLE_KEYS = frozenset(_KEYS) | {"effects"}

_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    raise InvalidInputError(f"Style option '{key}' must be a boolean, got {value!r}")


def _as_number(key: str, value: Any, lo: float, hi: Optional[float] = None) -> float:
    if isinstance(value, bool):
        raise InvalidInputError(f"Style option '{key}' must be a number, got a boolean")
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Style option '{key}' must be a number, got {value!r}") from None
    if number != number or number < lo or (hi is not None and number > hi):
        bound = f">= {lo}" if hi is None else f"between {lo} and {hi}"
        raise InvalidInputError(f"Style option '{key}' must be {bound}, got {value!r}")
    return number


def _as_int(key: str, value: Any, lo: int, hi: Optional[int] = None) -> int:
    return int(round(_as_number(key, value, lo, hi)))


def _as_speaker_colors(value: Any) -> Mapping[str, str]:
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else {}
        except ValueError:
            raise InvalidInputError("Style option 'speakerColors' is not valid JSON") from None
    if not isinstance(value, Mapping):
        raise InvalidInputError("Style option 'speakerColors' must be an object")
    colors: Dict[str, str] = {}
    for speaker, color in value.items():
        if not isinstance(color, str):
            raise InvalidInputError(f"speakerColors['{speaker}'] must be a color string")
        colors[str(speaker)] = color
    return MappingProxyType(colors)


def _coerce(name: str, key: str, value: Any) -> Any:
    if name == "font_family":
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError("Style option 'fontFamily' must be a non-empty string")
        return value.strip()
    if name == "font_size":
        return _as_int(key, value, 1, 500)
    if name in ("margin_v", "margin_h", "line_spacing", "outline_width", "shadow_offset"):
        return _as_int(key, value, 0)
    if name in ("italic", "shadow", "outline"):
        return _as_bool(key, value)
    if name == "max_width":
        return _as_number(key, value, 1, 100)
    if name == "background_opacity":
        return _as_number(key, value, 0, 1)
    if name == "text_align":
        align = str(value).strip().lower()
        if align not in TEXT_ALIGNMENTS:
            raise InvalidInputError(f"Style option 'textAlign' must be one of {TEXT_ALIGNMENTS}, got {value!r}")
        return align
    if name == "animation_style":
        normalized = str(value).strip().replace("-", "").replace("_", "").lower()
        for style in ANIMATION_STYLES:
            if style.lower() == normalized:
                return style
        raise InvalidInputError(f"Style option 'animationStyle' must be one of {ANIMATION_STYLES}, got {value!r}")
    if name == "background_color":
        if not isinstance(value, str):
            raise InvalidInputError("Style option 'backgroundColor' must be a string")
        color = value.strip()
        if color.lower() in NO_BACKGROUND:
            return "none"
        if not is_color(color):
            raise InvalidInputError(f"Style option 'backgroundColor' is not a color: {value!r}")
        return color
    if name == "speaker_colors":
        return _as_speaker_colors(value)
    raise InvalidInputError(f"Unknown style option '{key}'")  # pragma: no cover - _KEYS is closed


def _split_background(value: Any) -> Dict[str, Any]:
    """``"black@0.5"`` / ``False`` / ``"none"`` -> background options."""
    if value is None:
        return {}
    if isinstance(value, bool):
        return {} if value else {"backgroundOpacity": 0}
    if not isinstance(value, str):
        raise InvalidInputError("effects.background must be a string like 'black@0.5'")
    color, _, opacity = value.partition("@")
    out: Dict[str, Any] = {"backgroundColor": color}
    if opacity:
        out["backgroundOpacity"] = opacity
    return out


def _flatten_effects(effects: Any) -> Dict[str, Any]:
    if effects is None:
        return {}
    if isinstance(effects, str):
        try:
            effects = json.loads(effects)
        except ValueError:
            raise InvalidInputError("Style option 'effects' is not valid JSON") from None
    if not isinstance(effects, Mapping):
        raise InvalidInputError("Style option 'effects' must be an object")
    out = {k: effects[k] for k in ("shadow", "outline", "shadowOffset", "outlineWidth") if k in effects}
    out.update(_split_background(effects.get("background")))
    return out


def resolve_style(partial: Optional[Mapping[str, Any]] = None, base: StyleConfig = DEFAULT_STYLE) -> StyleConfig:
    """Merge caller options over ``base``.

    Unknown keys are ignored and ``None`` means "use the default". Values
    that cannot be coerced raise ``InvalidInputError``.
    """
    if partial is None:
        return base
    if not isinstance(partial, Mapping):
        raise InvalidInputError("Style options must be an object")
    merged: Dict[str, Any] = _flatten_effects(partial.get("effects"))
    merged.update({k: v for k, v in partial.items() if k != "effects"})

    updates: Dict[str, Any] = {}
    for key, value in merged.items():
        name = _KEYS.get(key)
        if name is None or value is None:
            continue
        updates[name] = _coerce(name, key, value)
    return replace(base, **updates)


def _candidate_dirs(fonts_dir: Optional[str], search_dirs: Iterable[str]) -> list[str]:
    dirs = [fonts_dir] if fonts_dir else []
    dirs.extend(d for d in search_dirs if d not in dirs)
    return dirs


def resolve_font(
    family: str,
    fonts_dir: Optional[str] = None,
    search_dirs: Iterable[str] = SYSTEM_FONT_DIRS,
) -> str:
    """Return the path of the font file registered for ``family``.

    Looks in ``fonts_dir`` first, then the system font directories. A family
    missing from ``FONT_FILES`` or without a file on disk raises
    ``FontNotFoundError``; no other font is substituted.
    """
    key = next((name for name in FONT_FILES if name.lower() == (family or "").strip().lower()), None)
    if key is None:
        raise FontNotFoundError(family, reason="registered families: " + ", ".join(FONT_FILES))
    dirs = _candidate_dirs(fonts_dir, search_dirs)
    for directory in dirs:
        for filename in FONT_FILES[key]:
            path = os.path.join(directory, filename)
            if os.path.isfile(path):
                return os.path.abspath(path)
    raise FontNotFoundError(family, dirs)


def font_display_name(family: str) -> str:
    """Canonical family name as registered in ``FONT_FILES``."""
    for name in FONT_FILES:
        if name.lower() == (family or "").strip().lower():
            return name
    return family


__all__ = [
    "Canvas",
    "VERTICAL_CANVAS",
    "StyleConfig",
    "DEFAULT_STYLE",
    "STYLE_KEYS",
    "FONT_FILES",
    "SYSTEM_FONT_DIRS",
    "TEXT_ALIGNMENTS",
    "ANIMATION_STYLES",
    "resolve_style",
    "resolve_font",
    "font_display_name",
]
