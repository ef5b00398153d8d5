"""Subtitle burn pipelines.

Contract:
- process_video(video_path, output_path, *, subtitles=None, style=None, ...) -> dict
  Returns: {
    "output_path": str,
    "subtitles": {"subtitles": [...]},
    "mode": str,
    "logs": list[str],
  }

Notes:
- When ``subtitles`` is None the video is transcribed first (dry-run adapters
  yield the deterministic fallback document).
- Compilation happens completely before ffmpeg starts; compile errors never
  leave a half-written output behind.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from adapters.wiring import TranscriberLike
from packages.agents.transcription_agent import transcribe_video
from packages.render.compositor import burn_subtitles
from packages.subtitles.compiler import RenderMode, get_compiler, parse_render_mode
from packages.subtitles.models import parse_document
from packages.subtitles.style import resolve_style
from packages.utils.logging import get_logger

logger = get_logger(__name__)


def process_video(
    video_path: str,
    output_path: str,
    *,
    subtitles: Any = None,
    style: Optional[Mapping[str, Any]] = None,
    speaker_colors: Optional[Mapping[str, str]] = None,
    mode: Any = RenderMode.OVERLAY,
    fonts_dir: Optional[str] = None,
    font_path: Optional[str] = None,
    ffmpeg_bin: str = "ffmpeg",
    adapter: Optional[TranscriberLike] = None,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    logs = []
    if subtitles is None:
        document = transcribe_video(video_path, adapter=adapter, language=language)
        logs.append(f"transcribed {len(document)} subtitle lines")
    else:
        document = parse_document(subtitles)
        logs.append(f"received {len(document)} subtitle lines")

    resolved = resolve_style(style)
    render_mode = parse_render_mode(mode)
    compiler = get_compiler(render_mode, fonts_dir=fonts_dir, font_path=font_path)
    artifact = compiler.compile(document, resolved, speaker_colors)
    font_label = os.path.basename(font_path) if font_path else resolved.font_family
    logs.append(f"compiled {render_mode.value} artifact with font {font_label}")

    result = burn_subtitles(video_path, artifact, output_path, ffmpeg_bin=ffmpeg_bin)
    logs.extend(result.logs)
    logger.info("video processed", extra={"data": {"output": result.output_path, "lines": len(document), "mode": render_mode.value}})
    return {
        "output_path": result.output_path,
        "subtitles": document.to_payload(),
        "mode": render_mode.value,
        "logs": logs,
    }


__all__ = ["process_video"]
