"""
Adapter wiring factory.

Single place to build configured adapters (respecting DRY_RUN, environment
keys and injected clients) for use by the API, the CLI and the pipeline.
Without a GEMINI_API_KEY the transcription adapter always runs in dry-run
mode, so local workflows need no secrets.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from adapters.gemini_adapter import DEFAULT_MODEL, GeminiAdapter, GeminiHTTPClient


class TranscriberLike(Protocol):
    dry_run: bool

    def transcribe(self, request: Any) -> dict:
        ...


@dataclass
class Env:
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = DEFAULT_MODEL
    SUBTITLE_LANGUAGE: str = "English"
    DRY_RUN: bool = False
    # Fall back to the deterministic document when a live call fails
    TRANSCRIBE_FALLBACK: bool = False


def _as_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    v = value.strip().lower()
    return v in {"1", "true", "t", "yes", "y"}


def load_env() -> Env:
    """Load environment variables into a typed structure."""
    return Env(
        GEMINI_API_KEY=os.getenv("GEMINI_API_KEY") or None,
        GEMINI_MODEL=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
        SUBTITLE_LANGUAGE=os.getenv("SUBTITLE_LANGUAGE") or "English",
        DRY_RUN=_as_bool(os.getenv("DRY_RUN")),
        TRANSCRIBE_FALLBACK=_as_bool(os.getenv("TRANSCRIBE_FALLBACK")),
    )


def build_gemini(env: Env, client: Optional[Any] = None) -> GeminiAdapter:
    """Construct a Gemini adapter; dry-run when DRY_RUN is set or no key exists."""
    dry_run = env.DRY_RUN or not env.GEMINI_API_KEY
    if not dry_run and client is None:
        client = GeminiHTTPClient(env.GEMINI_API_KEY or "")
    return GeminiAdapter(api_key=env.GEMINI_API_KEY, client=client, dry_run=dry_run)


__all__ = ["Env", "TranscriberLike", "load_env", "build_gemini"]
