"""
Gemini adapter: transcribe a video into speaker-tagged subtitles, with dry-run support.

The adapter talks to a small client Protocol so callers can inject the httpx
based ``GeminiHTTPClient`` below or a fake for tests. In dry-run mode a fixed,
deterministic subtitle document is returned without any network access.
"""
from __future__ import annotations

import base64
import json
import random
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import httpx

DEFAULT_MODEL = "gemini-2.5-flash"

FALLBACK_SUBTITLES = (
    {"speaker": "Speaker 1", "line": "Hello this is a test subtitle", "startTime": 0.2, "endTime": 2.8},
    {"speaker": "Speaker 1", "line": "Subtitles are generated automatically", "startTime": 3.0, "endTime": 5.5},
    {"speaker": "Speaker 1", "line": "Set GEMINI_API_KEY for real transcripts", "startTime": 6.0, "endTime": 9.0},
)


class TranscriptionError(RuntimeError):
    """The transcription service failed or returned something unusable."""


@runtime_checkable
class GeminiClientProtocol(Protocol):
    def generate_content(
        self,
        *,
        model: str,
        prompt: str,
        media: bytes,
        mime_type: str,
        temperature: float,
    ) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class TranscriptionRequest:
    media: bytes
    prompt: str
    mime_type: str = "video/mp4"
    model: str = DEFAULT_MODEL
    temperature: float = 0.2


def fallback_payload() -> dict:
    return {"subtitles": [dict(item) for item in FALLBACK_SUBTITLES]}


def response_text(result: Mapping[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    try:
        parts = result["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        feedback = result.get("promptFeedback") if isinstance(result, Mapping) else None
        raise TranscriptionError(f"Gemini returned no candidates (feedback: {feedback})") from None
    return "".join(p.get("text", "") for p in parts if isinstance(p, Mapping))


def extract_payload(text: str) -> dict:
    """Parse the JSON object between the first '{' and the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise TranscriptionError("No JSON object found in the transcription response")
    try:
        payload = json.loads(text[start:end + 1])
    except ValueError as exc:
        raise TranscriptionError(f"Transcription response is not valid JSON: {exc}") from None
    if not isinstance(payload, dict) or not isinstance(payload.get("subtitles"), list):
        raise TranscriptionError("Transcription response has no 'subtitles' array")
    return payload


class GeminiAdapter:
    """Wrapper around a Gemini client with dry-run behavior."""

    def __init__(
        self,
        api_key: str | None,
        *,
        client: GeminiClientProtocol | None = None,
        dry_run: bool = False,
        max_attempts: int = 3,
        base_backoff: float = 0.5,
    ) -> None:
        self.api_key = api_key
        self.client = client
        self.dry_run = bool(dry_run)
        self.max_attempts = max(1, int(max_attempts))
        self.base_backoff = base_backoff

    def close(self) -> None:
        """Release the client's connections, if it holds any."""
        close = getattr(self.client, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "GeminiAdapter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def transcribe(self, request: TranscriptionRequest) -> dict:
        """Return a ``{"subtitles": [...]}`` payload for the media in ``request``.

        Dry-run: the deterministic fallback document.
        Live: requires an injected client; transport errors are retried with
        exponential backoff, malformed answers are not.
        """
        if self.dry_run:
            return fallback_payload()
        if self.client is None:
            raise RuntimeError("GeminiAdapter requires a client in non-dry-run mode.")

        attempt = 0
        while True:
            attempt += 1
            try:
                result = self.client.generate_content(
                    model=request.model,
                    prompt=request.prompt,
                    media=request.media,
                    mime_type=request.mime_type,
                    temperature=request.temperature,
                )
                break
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                if attempt >= self.max_attempts or not _retriable(exc):
                    raise TranscriptionError(f"Gemini request failed: {exc}") from exc
                time.sleep(self.base_backoff * (2 ** (attempt - 1)) + random.random() * 0.1)
        return extract_payload(response_text(result))


def _retriable(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in {429, 500, 502, 503, 504}
    return True


class GeminiHTTPClient:
    """Minimal REST client for ``models/{model}:generateContent``.

    Media is sent inline (base64), which the service accepts for requests up
    to roughly 20 MB.
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 300.0,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)

    def generate_content(
        self,
        *,
        model: str,
        prompt: str,
        media: bytes,
        mime_type: str,
        temperature: float,
    ) -> Mapping[str, Any]:
        body = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(media).decode("ascii")}},
                    ]
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
            },
        }
        url = f"{self.BASE_URL}/models/{model}:generateContent"
        response = self._http.post(url, headers={"x-goog-api-key": self.api_key}, json=body)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "GeminiHTTPClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = [
    "DEFAULT_MODEL",
    "FALLBACK_SUBTITLES",
    "TranscriptionError",
    "GeminiClientProtocol",
    "TranscriptionRequest",
    "GeminiAdapter",
    "GeminiHTTPClient",
    "fallback_payload",
    "response_text",
    "extract_payload",
]
