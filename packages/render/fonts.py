"""Font provisioning: download registered fonts into the fonts directory.

Downloads happen only on request (CLI ``fonts fetch`` or FONT_DOWNLOAD at
API start). The compiler never falls back to a downloaded font on its own.
"""
from __future__ import annotations

import os
import tempfile
from typing import Dict, List, Optional

import httpx

from packages.subtitles.style import FONT_FILES, font_display_name
from packages.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FONT_URL = "https://raw.githubusercontent.com/dejavu-fonts/dejavu-fonts/master/ttf/DejaVuSans.ttf"


class FontDownloadError(RuntimeError):
    pass


def font_urls() -> Dict[str, str]:
    """Family -> download URL; DEFAULT_FONT_URL overrides the DejaVu source."""
    return {"DejaVu Sans": os.getenv("DEFAULT_FONT_URL") or DEFAULT_FONT_URL}


def installed_fonts(fonts_dir: str) -> List[str]:
    """Registered families that have a file in ``fonts_dir``."""
    found = []
    for family, filenames in FONT_FILES.items():
        if any(os.path.isfile(os.path.join(fonts_dir, f)) for f in filenames):
            found.append(family)
    return found


def ensure_font(
    family: str,
    fonts_dir: str,
    *,
    client: Optional[httpx.Client] = None,
    url: Optional[str] = None,
) -> str:
    """Return the local path of ``family``, downloading it first if needed."""
    name = font_display_name(family)
    if name not in FONT_FILES:
        raise FontDownloadError(f"Font family '{family}' is not registered")
    target = os.path.join(fonts_dir, FONT_FILES[name][0])
    if os.path.isfile(target):
        return target
    source = url or font_urls().get(name)
    if not source:
        raise FontDownloadError(f"No download source for font family '{name}'")

    os.makedirs(fonts_dir, exist_ok=True)
    http = client or httpx.Client(timeout=60.0, follow_redirects=True)
    try:
        response = http.get(source)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise FontDownloadError(f"Downloading {name} from {source} failed: {exc}") from exc
    finally:
        if client is None:
            http.close()

    # atomic write so a half-downloaded file is never picked up
    fd, tmp = tempfile.mkstemp(prefix=".font_", dir=fonts_dir)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(response.content)
        os.replace(tmp, target)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)
    logger.info("font downloaded", extra={"data": {"family": name, "path": target, "bytes": len(response.content)}})
    return target


__all__ = ["DEFAULT_FONT_URL", "FontDownloadError", "font_urls", "installed_fonts", "ensure_font"]
