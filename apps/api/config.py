"""
Configuration management for the subtitle burner API.

Provides centralized configuration loading with environment variable fallbacks.
All settings have sane defaults so the application runs even without a .env file.
"""

import os
from typing import Optional
from dataclasses import dataclass


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "t", "yes", "y"}


def _default_render_mode() -> str:
    explicit = os.getenv("RENDER_MODE")
    if explicit:
        return explicit
    if _env_bool("FORCE_DRAWTEXT"):
        return "overlay"
    return "ass" if _env_bool("PREFER_ASS") else "overlay"


@dataclass
class Settings:
    """Application settings with environment variable fallbacks."""

    # Server configuration
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Storage
    upload_dir: str = "uploads"
    processed_dir: str = "processed"
    fonts_dir: str = "fonts"
    max_upload_mb: int = 100

    # Rendering
    render_mode: str = "overlay"
    ffmpeg_bin: str = "ffmpeg"
    font_download: bool = False
    subtitle_language: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def get_settings() -> Settings:
    """
    Load settings from environment variables with fallbacks.

    Returns:
        Settings: Configuration object with all application settings
    """
    return Settings(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        debug=_env_bool("DEBUG"),
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        processed_dir=os.getenv("PROCESSED_DIR", "processed"),
        fonts_dir=os.getenv("FONTS_DIR", "fonts"),
        max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "100")),
        render_mode=_default_render_mode(),
        ffmpeg_bin=os.getenv("FFMPEG_BIN", "ffmpeg"),
        font_download=_env_bool("FONT_DOWNLOAD"),
        subtitle_language=os.getenv("SUBTITLE_LANGUAGE"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
