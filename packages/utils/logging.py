"""Structured single-line JSON logging with redaction.

get_logger(name, redactions=None) returns a stdlib logger whose records are
rendered as one JSON object per line. Structured fields go in
``extra={"data": {...}}``; keys listed in the redactions are masked,
including inside nested dictionaries.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional


DEFAULT_REDACT_KEYS = ["api_key", "gemini_api_key", "key", "x-goog-api-key", "Authorization"]


def _redact(value: Any, keys: set) -> Any:
    if isinstance(value, dict):
        return {k: ("[redacted]" if str(k).lower() in keys else _redact(v, keys)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v, keys) for v in value]
    return value


class RedactingFilter(logging.Filter):
    def __init__(self, redactions: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactions = list(redactions) if redactions is not None else DEFAULT_REDACT_KEYS
        self._keys = {k.lower() for k in self.redactions}

    def filter(self, record: logging.LogRecord) -> bool:
        data = getattr(record, "data", None)
        if isinstance(data, dict):
            record.__dict__["data_redacted"] = _redact(data, self._keys)
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z")
        base = {
            "ts": ts,
            "logger": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        data = record.__dict__.get("data_redacted") or record.__dict__.get("data")
        if data is not None:
            base["data"] = data
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, default=str, ensure_ascii=False)


def get_logger(name: str, redactions: Iterable[str] | None = None, level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    # Avoid duplicate handlers on repeated calls
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        handler.addFilter(RedactingFilter(redactions))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    if level:
        logger.setLevel(level.upper())
    return logger


__all__ = ["get_logger", "RedactingFilter", "JSONFormatter", "DEFAULT_REDACT_KEYS"]
