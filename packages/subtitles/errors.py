"""Typed failures raised by the subtitle compiler.

Every error carries a stable ``code`` so transports can map it to a response
without string matching on messages.
"""
from __future__ import annotations


class SubtitleError(ValueError):
    code = "subtitles.error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(SubtitleError):
    """Subtitle document or style options are malformed."""

    code = "subtitles.input.invalid"


class FontNotFoundError(SubtitleError):
    """Requested font family has no file on disk."""

    code = "subtitles.font.not_found"

    def __init__(self, family: str, searched: list[str] | None = None, reason: str | None = None) -> None:
        self.family = family
        self.searched = list(searched or [])
        if reason is None:
            reason = "searched: " + (", ".join(self.searched) or "nothing")
        super().__init__(f"Font family '{family}' could not be resolved ({reason})")


class CompilationError(SubtitleError):
    code = "subtitles.compile.failed"


__all__ = ["SubtitleError", "InvalidInputError", "FontNotFoundError", "CompilationError"]
