"""
FastAPI application for the vertical subtitle burner.

Endpoints upload a video, transcribe and burn subtitles into a 9:16 render,
re-burn edited subtitles, compile filter graphs without rendering, and serve
processed files.
"""

from __future__ import annotations

import json
import os
import shutil
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from adapters.gemini_adapter import TranscriptionError
from adapters.wiring import load_env
from packages.generation.pipelines import process_video
from packages.render.compositor import TranscodeError
from packages.render.fonts import FontDownloadError, ensure_font, installed_fonts
from packages.subtitles.compiler import compile_subtitles, parse_render_mode
from packages.subtitles.errors import FontNotFoundError, InvalidInputError, SubtitleError
from packages.subtitles.style import STYLE_KEYS
from packages.utils.logging import get_logger

from .config import get_settings
from .schemas import (
    CompileRequest,
    CompileResponse,
    ErrorResponse,
    HealthResponse,
    ProcessResponse,
    ServiceHealthResponse,
    VersionResponse,
)

API_VERSION = "0.1.0"
VIDEO_SUFFIXES = {".mp4", ".mov", ".m4v", ".webm", ".mkv"}
FONT_SUFFIXES = {".ttf", ".otf", ".ttc"}
CHUNK_SIZE = 1024 * 1024

# Load configuration
settings = get_settings()
logger = get_logger(__name__, level=settings.log_level)


def _ensure_dirs() -> None:
    for path in (settings.upload_dir, settings.processed_dir, settings.fonts_dir):
        os.makedirs(path, exist_ok=True)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    _ensure_dirs()
    if settings.font_download:
        try:
            path = await run_in_threadpool(ensure_font, "DejaVu Sans", settings.fonts_dir)
            logger.info("default font ready", extra={"data": {"path": path}})
        except FontDownloadError as exc:
            logger.warning("default font download failed", extra={"data": {"error": str(exc)}})
    yield


# Create FastAPI app
app = FastAPI(
    title="Vertical Subtitle Burner API",
    description="Transcribe videos and burn styled subtitles into 9:16 renders",
    version=API_VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, code: str, logs: Optional[List[str]] = None) -> JSONResponse:
    body = ErrorResponse(message=message, error=code, logs=logs or [])
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(HTTPException)
async def _http_error(_request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), f"http.{exc.status_code}")


@app.exception_handler(InvalidInputError)
async def _invalid_input(_request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, exc.message, exc.code)


@app.exception_handler(FontNotFoundError)
async def _font_not_found(_request: Request, exc: FontNotFoundError) -> JSONResponse:
    return _error(422, exc.message, exc.code)


@app.exception_handler(SubtitleError)
async def _subtitle_error(_request: Request, exc: SubtitleError) -> JSONResponse:
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message, exc.code)


@app.exception_handler(TranscriptionError)
async def _transcription_error(_request: Request, exc: TranscriptionError) -> JSONResponse:
    logger.error("transcription failed", extra={"data": {"error": str(exc)}})
    return _error(status.HTTP_502_BAD_GATEWAY, str(exc), "transcription.failed")


@app.exception_handler(TranscodeError)
async def _transcode_error(_request: Request, exc: TranscodeError) -> JSONResponse:
    logs = exc.stderr_tail.splitlines() if exc.stderr_tail else []
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "transcode.failed", logs)


def _parse_json_field(raw: Optional[str], name: str, default: Any) -> Any:
    if raw is None or not str(raw).strip():
        return default
    try:
        return json.loads(raw)
    except ValueError:
        raise InvalidInputError(f"Form field '{name}' is not valid JSON") from None


def _subtitles_payload(raw: Optional[str]) -> Dict[str, Any]:
    value = _parse_json_field(raw, "subtitles", None)
    if value is None:
        raise InvalidInputError("Form field 'subtitles' is required")
    # the editor posts a bare array; producers post the full document
    if isinstance(value, list):
        return {"subtitles": value}
    return value


def _style_from_form(form: Any) -> Dict[str, Any]:
    style = _parse_json_field(form.get("style"), "style", {})
    if not isinstance(style, dict):
        raise InvalidInputError("Form field 'style' must be a JSON object")
    for key in STYLE_KEYS:
        if key in form and key not in ("speakerColors",):
            value = form.get(key)
            style[key] = _parse_json_field(value, key, None) if key == "effects" else value
    return style


async def _save_upload(upload: UploadFile) -> str:
    suffix = os.path.splitext(upload.filename or "")[1].lower()
    if suffix not in VIDEO_SUFFIXES:
        suffix = ".mp4"
    return await _write_upload(upload, f"input_{uuid.uuid4().hex}{suffix}", "Uploaded video")


def _font_suffix(upload: UploadFile) -> str:
    suffix = os.path.splitext(upload.filename or "")[1].lower()
    if suffix not in FONT_SUFFIXES:
        raise InvalidInputError(f"Font file must be one of {sorted(FONT_SUFFIXES)}, got '{upload.filename}'")
    return suffix


async def _save_font(upload: UploadFile) -> str:
    name = f"font_{uuid.uuid4().hex}{_font_suffix(upload)}"
    return await _write_upload(upload, name, "Uploaded font")


async def _write_upload(upload: UploadFile, name: str, label: str) -> str:
    path = os.path.join(settings.upload_dir, name)
    written = 0
    with open(path, "wb") as fh:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.max_upload_bytes:
                fh.close()
                os.remove(path)
                raise HTTPException(
                    status_code=413,
                    detail=f"Upload exceeds {settings.max_upload_mb} MB",
                )
            fh.write(chunk)
    if written == 0:
        os.remove(path)
        raise InvalidInputError(f"{label} is empty")
    return path


def _uploaded_path(video_path: str) -> str:
    name = os.path.basename(video_path or "")
    path = os.path.join(settings.upload_dir, name)
    if not name or not os.path.isfile(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Uploaded video not found: {name}")
    return path


def _output_path(input_path: str) -> str:
    stem = os.path.splitext(os.path.basename(input_path))[0]
    return os.path.join(settings.processed_dir, f"subtitled_{stem}_{int(time.time() * 1000)}.mp4")


def _process_response(result: Dict[str, Any], input_path: str, message: str) -> ProcessResponse:
    return ProcessResponse(
        success=True,
        message=message,
        videoUrl=f"/processed/{os.path.basename(result['output_path'])}",
        videoPath=os.path.basename(input_path),
        subtitles=result["subtitles"]["subtitles"],
        logs=result["logs"],
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="ok")


@app.get("/api/health", response_model=ServiceHealthResponse)
async def service_health():
    """Health plus collaborator availability."""
    env = load_env()
    fonts = installed_fonts(settings.fonts_dir) if os.path.isdir(settings.fonts_dir) else []
    return ServiceHealthResponse(
        status="ok",
        ffmpeg=shutil.which(settings.ffmpeg_bin) is not None,
        transcription="dry-run" if (env.DRY_RUN or not env.GEMINI_API_KEY) else "live",
        renderMode=parse_render_mode(settings.render_mode).value,
        fonts=fonts,
    )


@app.get("/version", response_model=VersionResponse)
async def get_version():
    """Get API version."""
    return VersionResponse(version=API_VERSION)


@app.post("/api/compile", response_model=CompileResponse)
async def compile_endpoint(request: CompileRequest):
    """Compile subtitles to a filter graph (and track document) without rendering."""
    artifact = compile_subtitles(
        {"subtitles": request.subtitles},
        request.style,
        request.renderMode,
        speaker_colors=request.speakerColors,
        fonts_dir=settings.fonts_dir,
    )
    track_name = f"subtitles{artifact.track_suffix}" if artifact.requires_track else None
    return CompileResponse(
        mode=artifact.mode.value,
        filterGraph=artifact.filter_graph(track_name),
        trackDocument=artifact.track_document,
    )


@app.post("/api/upload", response_model=ProcessResponse)
async def upload_video(
    video: UploadFile = File(..., description="Video to subtitle"),
    style: Optional[str] = Form(None, description="Style options as JSON"),
    speakerColors: Optional[str] = Form(None, description="Speaker colors as JSON"),
    renderMode: Optional[str] = Form(None, description="overlay, ass or srt"),
    language: Optional[str] = Form(None, description="Subtitle language"),
):
    """Upload a video, transcribe it and burn the subtitles."""
    _ensure_dirs()
    style_options = _parse_json_field(style, "style", {})
    colors = _parse_json_field(speakerColors, "speakerColors", None)
    mode = parse_render_mode(renderMode or settings.render_mode)
    input_path = await _save_upload(video)
    logger.info("upload received", extra={"data": {"file": os.path.basename(input_path), "mode": mode.value}})

    result = await run_in_threadpool(
        process_video,
        input_path,
        _output_path(input_path),
        style=style_options,
        speaker_colors=colors,
        mode=mode,
        fonts_dir=settings.fonts_dir,
        ffmpeg_bin=settings.ffmpeg_bin,
        language=language or settings.subtitle_language,
    )
    return _process_response(result, input_path, "Video processed")


@app.post("/api/reprocess", response_model=ProcessResponse)
async def reprocess_video(request: Request):
    """Burn edited subtitles into a new upload or a previously uploaded video.

    Form fields: ``video`` (file) or ``videoPath`` (upload id), ``subtitles``
    (JSON array or document), ``style`` (JSON) and/or individual style fields,
    ``speakerColors`` (JSON), ``renderMode``, and an optional ``fontFile``
    (.ttf/.otf/.ttc) used instead of the style's font family. A font upload
    without an explicit ``renderMode`` renders in overlay mode.
    """
    _ensure_dirs()
    form = await request.form()
    payload = _subtitles_payload(form.get("subtitles"))
    style_options = _style_from_form(form)
    colors = _parse_json_field(form.get("speakerColors"), "speakerColors", None)
    font_upload = form.get("fontFile")
    if font_upload is not None and not hasattr(font_upload, "read"):
        font_upload = None
    if font_upload is not None:
        _font_suffix(font_upload)
    default_mode = "overlay" if font_upload is not None else settings.render_mode
    mode = parse_render_mode(form.get("renderMode") or default_mode)

    video = form.get("video")
    if video is not None and hasattr(video, "read"):
        input_path = await _save_upload(video)
    elif form.get("videoPath"):
        input_path = _uploaded_path(str(form.get("videoPath")))
    else:
        raise InvalidInputError("Either a 'video' file or a 'videoPath' is required")

    font_path = await _save_font(font_upload) if font_upload is not None else None
    try:
        result = await run_in_threadpool(
            process_video,
            input_path,
            _output_path(input_path),
            subtitles=payload,
            style=style_options,
            speaker_colors=colors,
            mode=mode,
            fonts_dir=settings.fonts_dir,
            font_path=font_path,
            ffmpeg_bin=settings.ffmpeg_bin,
        )
    finally:
        if font_path and os.path.exists(font_path):
            os.remove(font_path)
    return _process_response(result, input_path, "Video reprocessed")


@app.get("/processed/{name}")
async def download_processed(name: str):
    """Serve a processed video."""
    safe = os.path.basename(name)
    path = os.path.join(settings.processed_dir, safe)
    if safe != name or not os.path.isfile(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Processed video not found")
    return FileResponse(path, media_type="video/mp4", filename=safe)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
