"""Transcription agent: video file in, validated SubtitleDocument out.

The prompt is a Jinja2 template rendered with StrictUndefined so a missing
variable fails loudly. The adapter is built from the environment unless one is
injected; without an API key it runs dry and yields the fallback document.
"""
from __future__ import annotations

import mimetypes
import os
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from adapters.gemini_adapter import TranscriptionError, TranscriptionRequest, fallback_payload
from adapters.wiring import TranscriberLike, build_gemini, load_env
from packages.subtitles.models import SubtitleDocument, parse_document
from packages.subtitles.timing import MIN_DURATION
from packages.utils.logging import get_logger

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")
PROMPT_TEMPLATE = "transcribe_prompt.j2"

logger = get_logger(__name__)


def _jinja_env() -> Environment:
    loader = FileSystemLoader(TEMPLATES_DIR)
    return Environment(loader=loader, undefined=StrictUndefined, autoescape=False)


def build_prompt(language: str = "English", max_chars: Optional[int] = None) -> str:
    context: Dict[str, Any] = {
        "language": language,
        "min_duration": MIN_DURATION,
        "max_chars": max_chars,
    }
    return _jinja_env().get_template(PROMPT_TEMPLATE).render(**context)


def fallback_document() -> SubtitleDocument:
    return parse_document(fallback_payload())


def transcribe_video(
    video_path: str,
    *,
    adapter: Optional[TranscriberLike] = None,
    language: Optional[str] = None,
    model: Optional[str] = None,
    fallback_on_error: Optional[bool] = None,
) -> SubtitleDocument:
    """Transcribe ``video_path`` into a validated subtitle document.

    Raises TranscriptionError when the service fails, unless
    ``fallback_on_error`` (or TRANSCRIBE_FALLBACK) asks for the fallback
    document instead. An adapter built here from the environment is closed
    before returning; an injected one is left to its owner.
    """
    env = load_env()
    if fallback_on_error is None:
        fallback_on_error = env.TRANSCRIBE_FALLBACK
    if not os.path.exists(video_path):
        raise FileNotFoundError(video_path)

    request_args = {
        "language": language or env.SUBTITLE_LANGUAGE,
        "model": model or env.GEMINI_MODEL,
        "fallback_on_error": fallback_on_error,
    }
    if adapter is not None:
        return _transcribe(video_path, adapter, **request_args)
    with build_gemini(env) as owned:
        return _transcribe(video_path, owned, **request_args)


def _transcribe(
    video_path: str,
    adapter: TranscriberLike,
    *,
    language: str,
    model: str,
    fallback_on_error: bool,
) -> SubtitleDocument:
    if adapter.dry_run:
        logger.info("transcription dry-run", extra={"data": {"video": os.path.basename(video_path)}})
        media = b""
    else:
        with open(video_path, "rb") as fh:
            media = fh.read()

    request = TranscriptionRequest(
        media=media,
        prompt=build_prompt(language),
        mime_type=mimetypes.guess_type(video_path)[0] or "video/mp4",
        model=model,
    )
    try:
        payload = adapter.transcribe(request)
        document = parse_document(payload)
    except (TranscriptionError, ValueError) as exc:
        if not fallback_on_error:
            if isinstance(exc, TranscriptionError):
                raise
            raise TranscriptionError(f"Transcription returned an invalid document: {exc}") from exc
        logger.warning("transcription failed; using fallback subtitles", extra={"data": {"error": str(exc)}})
        return fallback_document()

    logger.info(
        "transcription complete",
        extra={"data": {"lines": len(document), "model": request.model, "dry_run": adapter.dry_run}},
    )
    return document


__all__ = ["build_prompt", "fallback_document", "transcribe_video"]
