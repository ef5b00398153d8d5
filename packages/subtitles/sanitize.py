"""Escaping for text embedded in ffmpeg filter graphs and subtitle tracks.

A drawtext ``text`` value goes through three parsers before it is drawn:

1. the filter graph parser, which strips single quotes and backslash escapes;
2. the filter option parser, which does the same and splits on ``:``;
3. drawtext's own expansion, where ``\\x`` means ``x`` and ``%`` starts a
   function call.

Escaping is therefore applied innermost first: ``escape_expansion`` (3), then
``escape_option_value`` (2), then ``quote_graph_value`` (1). The last two are
applied to every non-plain option value by ``filtergraph.serialize_filter``.
"""
from __future__ import annotations

import re
from typing import Any

_NEWLINES = re.compile(r"\r\n|\r|\n")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
# U+2060 WORD JOINER: invisible, breaks libass escape sequences like \N
_WORD_JOINER = "\u2060"


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def escape_expansion(text: str) -> str:
    """Escape drawtext expansion metacharacters."""
    return text.replace("\\", "\\\\").replace("%", "\\%")


def escape_option_value(value: str) -> str:
    """Escape a value for the filter option parser."""
    return value.replace("\\", "\\\\").replace("'", "\\'").replace(":", "\\:")


def quote_graph_value(value: str) -> str:
    """Wrap a value in single quotes for the filter graph parser."""
    return "'" + value.replace("'", "'\\''") + "'"


def format_option_value(value: str) -> str:
    return quote_graph_value(escape_option_value(value))


def sanitize_drawtext(text: Any) -> str:
    """Prepare one display line for a drawtext ``text`` option.

    The result still needs option serialization; line breaks become spaces
    because each overlay stage draws exactly one line.
    """
    value = _as_text(text)
    value = _NEWLINES.sub(" ", value).replace("\t", " ")
    value = _CONTROL.sub("", value)
    return escape_expansion(value)


def sanitize_ass(text: Any) -> str:
    """Make text literal inside an ASS dialogue event."""
    value = _as_text(text)
    value = _CONTROL.sub("", value.replace("\t", " "))
    value = value.replace("\\", "\\" + _WORD_JOINER)
    value = value.replace("{", "\\{").replace("}", "\\}")
    return _NEWLINES.sub(r"\\N", value)


def sanitize_srt(text: Any) -> str:
    """Normalize SubRip cue text; blank lines would end the cue early."""
    value = _as_text(text)
    value = _CONTROL.sub("", value.replace("\t", " "))
    value = value.replace("\\", "\\" + _WORD_JOINER)
    value = value.replace("{", "\\{").replace("}", "\\}")
    lines = [ln.strip() for ln in _NEWLINES.split(value)]
    return "\n".join(ln for ln in lines if ln)


__all__ = [
    "escape_expansion",
    "escape_option_value",
    "quote_graph_value",
    "format_option_value",
    "sanitize_drawtext",
    "sanitize_ass",
    "sanitize_srt",
]
