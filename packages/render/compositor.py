"""
Burn compiled subtitles into a video with ffmpeg.

Design goals:
- The filter graph is compiled before ffmpeg starts; this module only writes
  the track file (track modes), runs ffmpeg and cleans up
- Fixed encoding params sized for short vertical clips
- ffmpeg failures surface as TranscodeError with the stderr tail attached
"""
from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from packages.subtitles.compiler import CompiledArtifact
from packages.utils.logging import get_logger

logger = get_logger(__name__)

ENCODE_ARGS: Sequence[str] = (
    "-c:v",
    "libx264",
    "-preset",
    "ultrafast",
    "-crf",
    "28",
    "-pix_fmt",
    "yuv420p",
    "-c:a",
    "aac",
    "-b:a",
    "96k",
    "-movflags",
    "+faststart",
)
STDERR_TAIL_LINES = 20


class TranscodeError(RuntimeError):
    def __init__(self, message: str, *, returncode: Optional[int] = None, stderr_tail: str = "", command: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        self.command = list(command or [])


@dataclass
class BurnResult:
    output_path: str
    command: List[str]
    filter_graph: str
    logs: List[str] = field(default_factory=list)


def ensure_ffmpeg_available(ffmpeg_bin: str = "ffmpeg") -> str:
    path = shutil.which(ffmpeg_bin)
    if path is None:
        raise TranscodeError(f"ffmpeg executable not found: {ffmpeg_bin}")
    return path


def build_command(input_path: str, output_path: str, filter_graph: str, ffmpeg_bin: str = "ffmpeg") -> List[str]:
    return [
        ffmpeg_bin,
        "-y",
        "-hide_banner",
        "-i",
        input_path,
        "-vf",
        filter_graph,
        *ENCODE_ARGS,
        output_path,
    ]


def _tail(text: str, lines: int = STDERR_TAIL_LINES) -> str:
    return "\n".join((text or "").strip().splitlines()[-lines:])


def _write_track(artifact: CompiledArtifact, directory: str) -> str:
    fd, path = tempfile.mkstemp(prefix="subs_", suffix=artifact.track_suffix or ".txt", dir=directory)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(artifact.track_document or "")
    return path


def burn_subtitles(
    input_path: str,
    artifact: CompiledArtifact,
    output_path: str,
    *,
    ffmpeg_bin: str = "ffmpeg",
    work_dir: Optional[str] = None,
) -> BurnResult:
    """Render ``artifact`` onto ``input_path`` and write ``output_path``.

    Track modes write the track document to a temporary file that is removed
    once ffmpeg exits, whatever the outcome.
    """
    if not os.path.exists(input_path):
        raise FileNotFoundError(input_path)
    out_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(out_dir, exist_ok=True)

    logs: List[str] = [f"mode: {artifact.mode.value}", f"font: {artifact.font_path}"]
    track_path: Optional[str] = None
    try:
        if artifact.requires_track:
            track_path = _write_track(artifact, work_dir or out_dir)
            logs.append(f"track written: {os.path.basename(track_path)}")
        graph = artifact.filter_graph(track_path)
        cmd = build_command(input_path, output_path, graph, ffmpeg_bin)
        logger.info(
            "ffmpeg start",
            extra={"data": {"mode": artifact.mode.value, "input": input_path, "output": output_path, "stages": len(artifact.stages(track_path))}},
        )
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if proc.returncode != 0:
            tail = _tail(proc.stderr)
            logger.error("ffmpeg failed", extra={"data": {"returncode": proc.returncode, "stderr": tail}})
            if os.path.exists(output_path):
                os.remove(output_path)
            raise TranscodeError(
                f"ffmpeg exited with status {proc.returncode}",
                returncode=proc.returncode,
                stderr_tail=tail,
                command=cmd,
            )
    finally:
        if track_path and os.path.exists(track_path):
            os.remove(track_path)

    if not os.path.exists(output_path):
        raise TranscodeError("ffmpeg failed to produce output", command=cmd)
    logs.append(f"output: {os.path.basename(output_path)}")
    logger.info("ffmpeg done", extra={"data": {"output": output_path}})
    return BurnResult(output_path=output_path, command=cmd, filter_graph=graph, logs=logs)


__all__ = ["ENCODE_ARGS", "TranscodeError", "BurnResult", "ensure_ffmpeg_available", "build_command", "burn_subtitles"]
