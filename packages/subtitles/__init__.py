"""Subtitle-to-filter-graph compiler.

Pure, synchronous building blocks that turn a timed, speaker-tagged subtitle
document plus a partial style into either an ffmpeg overlay filter chain or a
subtitle-track document for the ``subtitles`` filter.
"""
from __future__ import annotations

from .compiler import (
    CompiledArtifact,
    RenderMode,
    compile_subtitles,
    get_compiler,
    parse_render_mode,
)
from .errors import CompilationError, FontNotFoundError, InvalidInputError, SubtitleError
from .models import SubtitleDocument, SubtitleLine, parse_document
from .style import StyleConfig, resolve_font, resolve_style

__all__ = [
    "CompiledArtifact",
    "RenderMode",
    "compile_subtitles",
    "get_compiler",
    "parse_render_mode",
    "CompilationError",
    "FontNotFoundError",
    "InvalidInputError",
    "SubtitleError",
    "SubtitleDocument",
    "SubtitleLine",
    "parse_document",
    "StyleConfig",
    "resolve_font",
    "resolve_style",
]
