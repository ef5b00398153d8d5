"""Color references to backend color tokens.

A color reference is a name from ``NAMED_COLORS``, ``#RGB``/``#RRGGBB``
(the ``#`` is optional for six digits), or a token already in a backend's
native syntax (``0xRRGGBB[AA]`` for drawtext, ``&HAABBGGRR`` for ASS).
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Mapping, Optional

NAMED_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "white": "FFFFFF",
        "black": "000000",
        "yellow": "FFFF00",
        "red": "FF0000",
        "green": "00FF00",
        "blue": "0000FF",
        "cyan": "00FFFF",
        "magenta": "FF00FF",
        "orange": "FFA500",
        "gray": "808080",
        "grey": "808080",
    }
)

DEFAULT_PALETTE = ("yellow", "white", "cyan", "magenta", "green")
DEFAULT_TEXT_COLOR = "white"
DEFAULT_BOX_COLOR = "black"
DEFAULT_BOX_OPACITY = 0.5

_HEX6 = re.compile(r"^#?([0-9a-fA-F]{6})$")
_HEX3 = re.compile(r"^#([0-9a-fA-F]{3})$")
_OVERLAY_NATIVE = re.compile(r"^0x([0-9a-fA-F]{6})([0-9a-fA-F]{2})?$")
_ASS_NATIVE = re.compile(r"^&H([0-9a-fA-F]{2})?([0-9a-fA-F]{6})&?$", re.IGNORECASE)


def normalize_hex(ref: Optional[str]) -> Optional[str]:
    """Return ``RRGGBB`` (uppercase) for a color reference, or None if unrecognized."""
    if not isinstance(ref, str):
        return None
    value = ref.strip()
    if not value:
        return None
    named = NAMED_COLORS.get(value.lower())
    if named:
        return named
    m = _HEX6.match(value)
    if m:
        return m.group(1).upper()
    m = _HEX3.match(value)
    if m:
        return "".join(ch * 2 for ch in m.group(1)).upper()
    m = _OVERLAY_NATIVE.match(value)
    if m:
        return m.group(1).upper()
    m = _ASS_NATIVE.match(value)
    if m:
        bgr = m.group(2).upper()
        return bgr[4:6] + bgr[2:4] + bgr[0:2]
    return None


def is_color(ref: Optional[str]) -> bool:
    return normalize_hex(ref) is not None


def _rgb_or_default(ref: Optional[str], default: str) -> str:
    rgb = normalize_hex(ref)
    if rgb is None:
        rgb = normalize_hex(default)
    if rgb is None:
        raise ValueError(f"default color is not a color reference: {default!r}")
    return rgb


def opacity_to_alpha(opacity: float) -> int:
    """Map an opacity fraction to an alpha byte, clamping to [0, 1]."""
    value = min(1.0, max(0.0, float(opacity)))
    return int(value * 255 + 0.5)


def hex_to_color(ref: Optional[str], default: str = DEFAULT_TEXT_COLOR) -> str:
    """drawtext color token ``0xRRGGBB``."""
    if isinstance(ref, str) and _OVERLAY_NATIVE.match(ref.strip()):
        return ref.strip()
    return "0x" + _rgb_or_default(ref, default)


def with_alpha(ref: Optional[str], opacity: float, default: str = DEFAULT_BOX_COLOR) -> str:
    """drawtext color token with a trailing two-digit lowercase alpha."""
    return "0x" + _rgb_or_default(ref, default) + f"{opacity_to_alpha(opacity):02x}"


def hex_to_ass(ref: Optional[str], default: str = DEFAULT_TEXT_COLOR) -> str:
    """ASS color token ``&H00BBGGRR`` (byte order reversed, fully opaque)."""
    native = _ASS_NATIVE.match(ref.strip()) if isinstance(ref, str) else None
    if native:
        alpha = (native.group(1) or "00").upper()
        return f"&H{alpha}{native.group(2).upper()}"
    rgb = _rgb_or_default(ref, default)
    return f"&H00{rgb[4:6]}{rgb[2:4]}{rgb[0:2]}"


def ass_with_alpha(ref: Optional[str], opacity: float, default: str = DEFAULT_BOX_COLOR) -> str:
    # ASS stores transparency, not opacity
    rgb = _rgb_or_default(ref, default)
    transparency = 255 - opacity_to_alpha(opacity)
    return f"&H{transparency:02X}{rgb[4:6]}{rgb[2:4]}{rgb[0:2]}"


class SpeakerPalette:
    """Per-compilation color assignment.

    Precedence per line: override color, then the caller's speaker map, then
    the default palette indexed by the order in which speakers first appear.
    References that do not resolve are skipped.
    """

    def __init__(
        self,
        speaker_colors: Optional[Mapping[str, str]] = None,
        palette: tuple = DEFAULT_PALETTE,
    ) -> None:
        self.speaker_colors = dict(speaker_colors or {})
        self.palette = tuple(palette) or DEFAULT_PALETTE
        self._seen: Dict[str, int] = {}

    def palette_color(self, speaker: Optional[str]) -> str:
        if speaker is None:
            return self.palette[0]
        if speaker not in self._seen:
            self._seen[speaker] = len(self._seen)
        return self.palette[self._seen[speaker] % len(self.palette)]

    def color_for(self, speaker: Optional[str], override: Optional[str] = None) -> str:
        # register first so palette order does not depend on overrides
        fallback = self.palette_color(speaker)
        if is_color(override):
            return override  # type: ignore[return-value]
        if speaker is not None:
            mapped = self.speaker_colors.get(speaker)
            if is_color(mapped):
                return mapped  # type: ignore[return-value]
        return fallback


__all__ = [
    "NAMED_COLORS",
    "DEFAULT_PALETTE",
    "DEFAULT_TEXT_COLOR",
    "DEFAULT_BOX_COLOR",
    "DEFAULT_BOX_OPACITY",
    "normalize_hex",
    "is_color",
    "opacity_to_alpha",
    "hex_to_color",
    "with_alpha",
    "hex_to_ass",
    "ass_with_alpha",
    "SpeakerPalette",
]
