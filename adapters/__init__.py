"""Integration adapters for external services."""
from .gemini_adapter import (
    GeminiAdapter,
    GeminiHTTPClient,
    TranscriptionError,
    TranscriptionRequest,
)

__all__ = [
    "GeminiAdapter",
    "GeminiHTTPClient",
    "TranscriptionError",
    "TranscriptionRequest",
]
