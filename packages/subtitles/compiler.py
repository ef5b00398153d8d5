"""Render-mode strategies and the compile entry point.

All strategies share one interface, ``compile(document, style, colors)``,
and return a ``CompiledArtifact``. The font is resolved before anything is
built, so a compile call either returns a complete artifact or raises.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Protocol, Tuple

from .colors import SpeakerPalette
from .errors import CompilationError, FontNotFoundError, InvalidInputError
from .filtergraph import Filter, canvas_filters, serialize_chain
from .models import SubtitleDocument, parse_document
from .overlay import build_overlay_filters
from .style import (
    SYSTEM_FONT_DIRS,
    VERTICAL_CANVAS,
    Canvas,
    StyleConfig,
    font_display_name,
    resolve_font,
    resolve_style,
)
from .track import build_ass_document, build_srt_document, srt_force_style


class RenderMode(str, Enum):
    OVERLAY = "overlay"
    ASS = "ass"
    SRT = "srt"


_MODE_ALIASES = {
    "overlay": RenderMode.OVERLAY,
    "drawtext": RenderMode.OVERLAY,
    "ass": RenderMode.ASS,
    "track": RenderMode.ASS,
    "subtitles": RenderMode.ASS,
    "srt": RenderMode.SRT,
}


def parse_render_mode(value: Any) -> RenderMode:
    if isinstance(value, RenderMode):
        return value
    mode = _MODE_ALIASES.get(str(value or "").strip().lower())
    if mode is None:
        raise InvalidInputError(f"Unknown render mode {value!r}; expected one of {sorted(_MODE_ALIASES)}")
    return mode


@dataclass(frozen=True)
class CompiledArtifact:
    mode: RenderMode
    canvas: Tuple[Filter, ...]
    font_path: str
    overlays: Tuple[Filter, ...] = ()
    track_document: Optional[str] = None
    track_suffix: Optional[str] = None
    force_style: Optional[str] = None

    @property
    def requires_track(self) -> bool:
        return self.track_document is not None

    def stages(self, track_path: Optional[str] = None) -> Tuple[Filter, ...]:
        if not self.requires_track:
            return self.canvas + self.overlays
        if not track_path:
            raise CompilationError(f"{self.mode.value} artifacts need the path the track was written to")
        options = [("filename", track_path), ("fontsdir", os.path.dirname(self.font_path))]
        if self.force_style:
            options.append(("force_style", self.force_style))
        return self.canvas + (Filter("subtitles", tuple(options)),)

    def filter_graph(self, track_path: Optional[str] = None) -> str:
        """The ``-vf`` expression for this artifact."""
        return serialize_chain(self.stages(track_path))


class SubtitleCompiler(Protocol):
    mode: RenderMode

    def compile(
        self,
        document: SubtitleDocument,
        style: StyleConfig,
        colors: Optional[Mapping[str, str]] = None,
    ) -> CompiledArtifact:
        ...


class _BaseCompiler:
    mode: RenderMode

    def __init__(
        self,
        *,
        fonts_dir: Optional[str] = None,
        search_dirs: Iterable[str] = SYSTEM_FONT_DIRS,
        canvas: Canvas = VERTICAL_CANVAS,
        font_path: Optional[str] = None,
    ) -> None:
        self.fonts_dir = fonts_dir
        self.search_dirs = tuple(search_dirs)
        self.canvas = canvas
        self.font_path = font_path

    def _font(self, style: StyleConfig) -> str:
        # an explicit font file replaces the family lookup
        if self.font_path:
            if not os.path.isfile(self.font_path):
                raise FontNotFoundError(
                    os.path.basename(self.font_path),
                    reason=f"font file does not exist: {self.font_path}",
                )
            return os.path.abspath(self.font_path)
        return resolve_font(style.font_family, self.fonts_dir, self.search_dirs)

    @staticmethod
    def _palette(style: StyleConfig, colors: Optional[Mapping[str, str]]) -> SpeakerPalette:
        return SpeakerPalette(style.speaker_colors if colors is None else colors)


class OverlayCompiler(_BaseCompiler):
    mode = RenderMode.OVERLAY

    def compile(self, document, style, colors=None) -> CompiledArtifact:
        font_path = self._font(style)
        overlays = build_overlay_filters(document, style, font_path, self._palette(style, colors))
        return CompiledArtifact(
            mode=self.mode,
            canvas=tuple(canvas_filters(self.canvas)),
            font_path=font_path,
            overlays=tuple(overlays),
        )


class AssTrackCompiler(_BaseCompiler):
    mode = RenderMode.ASS

    def compile(self, document, style, colors=None) -> CompiledArtifact:
        font_path = self._font(style)
        track = build_ass_document(
            document,
            style,
            font_display_name(style.font_family),
            canvas=self.canvas,
            palette=self._palette(style, colors),
        )
        return CompiledArtifact(
            mode=self.mode,
            canvas=tuple(canvas_filters(self.canvas)),
            font_path=font_path,
            track_document=track,
            track_suffix=".ass",
        )


class SrtTrackCompiler(_BaseCompiler):
    mode = RenderMode.SRT

    def compile(self, document, style, colors=None) -> CompiledArtifact:
        font_path = self._font(style)
        track = build_srt_document(document, style, self._palette(style, colors))
        return CompiledArtifact(
            mode=self.mode,
            canvas=tuple(canvas_filters(self.canvas)),
            font_path=font_path,
            track_document=track,
            track_suffix=".srt",
            force_style=srt_force_style(style, font_display_name(style.font_family), self.canvas),
        )


_COMPILERS = MappingProxyType(
    {
        RenderMode.OVERLAY: OverlayCompiler,
        RenderMode.ASS: AssTrackCompiler,
        RenderMode.SRT: SrtTrackCompiler,
    }
)


def get_compiler(mode: Any = RenderMode.OVERLAY, **kwargs: Any) -> SubtitleCompiler:
    return _COMPILERS[parse_render_mode(mode)](**kwargs)


def compile_subtitles(
    payload: Any,
    style_options: Optional[Mapping[str, Any]] = None,
    mode: Any = RenderMode.OVERLAY,
    *,
    speaker_colors: Optional[Mapping[str, str]] = None,
    fonts_dir: Optional[str] = None,
    search_dirs: Iterable[str] = SYSTEM_FONT_DIRS,
    canvas: Canvas = VERTICAL_CANVAS,
    font_path: Optional[str] = None,
) -> CompiledArtifact:
    """Validate, resolve the style, and compile in one call.

    ``payload`` is a ``{"subtitles": [...]}`` mapping, its JSON text, or a
    ``SubtitleDocument``. ``speaker_colors`` overrides the style's map.
    ``font_path`` names a font file to use instead of looking up the style's
    family; it must exist.
    """
    document = parse_document(payload)
    style = resolve_style(style_options)
    compiler = get_compiler(
        mode, fonts_dir=fonts_dir, search_dirs=search_dirs, canvas=canvas, font_path=font_path
    )
    return compiler.compile(document, style, speaker_colors)


__all__ = [
    "RenderMode",
    "parse_render_mode",
    "CompiledArtifact",
    "SubtitleCompiler",
    "OverlayCompiler",
    "AssTrackCompiler",
    "SrtTrackCompiler",
    "get_compiler",
    "compile_subtitles",
]
