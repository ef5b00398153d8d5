import json
import os

import pytest
from fastapi.testclient import TestClient

from apps.api import main
from apps.api.config import Settings
from packages.render.compositor import TranscodeError

HELLO = [{"speaker": "A", "line": "Hello world", "startTime": 0, "endTime": 2}]


@pytest.fixture
def settings(tmp_path, fonts_dir, monkeypatch):
    s = Settings(
        upload_dir=str(tmp_path / "uploads"),
        processed_dir=str(tmp_path / "processed"),
        fonts_dir=str(fonts_dir),
        max_upload_mb=1,
    )
    monkeypatch.setattr(main, "settings", s)
    return s


@pytest.fixture
def client(settings):
    return TestClient(main.app)


@pytest.fixture
def calls(monkeypatch):
    """Replace the burn pipeline with a fake that writes the output file."""
    recorded = []

    def fake_process(video_path, output_path, **kwargs):
        recorded.append({"video_path": video_path, "output_path": output_path, **kwargs})
        with open(output_path, "wb") as fh:
            fh.write(b"mp4")
        subtitles = kwargs.get("subtitles") or {
            "subtitles": [{"speaker": "Speaker 1", "line": "Fallback", "startTime": 0.2, "endTime": 2.8}]
        }
        return {"output_path": output_path, "subtitles": subtitles, "mode": "overlay", "logs": ["mode: overlay"]}

    monkeypatch.setattr(main, "process_video", fake_process)
    return recorded


def test_compile_overlay(client):
    response = client.post("/api/compile", json={"subtitles": HELLO})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["mode"] == "overlay"
    assert data["filterGraph"].startswith("scale=w=1080:h=1920:force_original_aspect_ratio=decrease,pad=")
    assert "drawtext=" in data["filterGraph"]
    assert data["trackDocument"] is None


def test_compile_ass_returns_track(client):
    response = client.post(
        "/api/compile",
        json={"subtitles": HELLO, "renderMode": "ass", "speakerColors": {"A": "#00FFFF"}},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "ass"
    assert "subtitles=" in data["filterGraph"]
    assert "[V4+ Styles]" in data["trackDocument"]
    assert "&H00FFFF00" in data["trackDocument"]


def test_compile_invalid_style_is_400(client):
    response = client.post("/api/compile", json={"subtitles": HELLO, "style": {"fontSize": "huge"}})
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "subtitles.input.invalid"
    assert "fontSize" in data["message"]


def test_compile_invalid_document_is_400(client):
    response = client.post("/api/compile", json={"subtitles": [{"line": "x", "startTime": "soon"}]})
    assert response.status_code == 400
    assert response.json()["error"] == "subtitles.input.invalid"


def test_compile_unknown_mode_is_400(client):
    response = client.post("/api/compile", json={"subtitles": HELLO, "renderMode": "hologram"})
    assert response.status_code == 400


def test_compile_unknown_font_is_422(client):
    response = client.post("/api/compile", json={"subtitles": HELLO, "style": {"fontFamily": "Comic Sans"}})
    assert response.status_code == 422
    assert response.json()["error"] == "subtitles.font.not_found"


def test_upload_processes_video(client, settings, calls):
    response = client.post(
        "/api/upload",
        files={"video": ("clip.mov", b"video-bytes", "video/quicktime")},
        data={"style": json.dumps({"fontSize": 60}), "renderMode": "srt", "language": "German"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["videoUrl"].startswith("/processed/subtitled_input_")
    assert data["videoPath"].endswith(".mov")
    assert data["subtitles"][0]["line"] == "Fallback"

    call = calls[0]
    assert call["style"] == {"fontSize": 60}
    assert call["mode"].value == "srt"
    assert call["language"] == "German"
    assert "subtitles" not in call
    assert os.path.isfile(os.path.join(settings.upload_dir, data["videoPath"]))


def test_upload_rejects_empty_video(client, calls):
    response = client.post("/api/upload", files={"video": ("clip.mp4", b"", "video/mp4")})
    assert response.status_code == 400
    assert calls == []


def test_upload_too_large_is_413(client, settings, calls):
    big = b"0" * (settings.max_upload_bytes + 1)
    response = client.post("/api/upload", files={"video": ("clip.mp4", big, "video/mp4")})
    assert response.status_code == 413
    assert response.json()["error"] == "http.413"
    assert os.listdir(settings.upload_dir) == []


def test_reprocess_previous_upload(client, settings, calls):
    os.makedirs(settings.upload_dir, exist_ok=True)
    with open(os.path.join(settings.upload_dir, "input_abc.mp4"), "wb") as fh:
        fh.write(b"video")

    response = client.post(
        "/api/reprocess",
        data={
            "videoPath": "input_abc.mp4",
            "subtitles": json.dumps(HELLO),
            "style": json.dumps({"fontSize": 50}),
            "textAlign": "left",
            "effects": json.dumps({"shadow": False}),
            "speakerColors": json.dumps({"A": "red"}),
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Video reprocessed"
    assert data["subtitles"][0]["speaker"] == "A"

    call = calls[0]
    assert call["subtitles"] == {"subtitles": HELLO}
    assert call["style"] == {"fontSize": 50, "textAlign": "left", "effects": {"shadow": False}}
    assert call["speaker_colors"] == {"A": "red"}


def test_reprocess_unknown_video_is_404(client, calls):
    response = client.post(
        "/api/reprocess",
        data={"videoPath": "../etc/passwd", "subtitles": json.dumps(HELLO)},
    )
    assert response.status_code == 404
    assert calls == []


def test_reprocess_requires_subtitles(client, calls):
    response = client.post("/api/reprocess", data={"videoPath": "input_abc.mp4"})
    assert response.status_code == 400
    assert "subtitles" in response.json()["message"]


def test_reprocess_requires_video(client, calls):
    response = client.post("/api/reprocess", data={"subtitles": json.dumps(HELLO)})
    assert response.status_code == 400


def test_transcode_failure_is_500_with_logs(client, monkeypatch):
    def failing(*args, **kwargs):
        raise TranscodeError("ffmpeg exited with status 1", returncode=1, stderr_tail="bad filter\nexiting")

    monkeypatch.setattr(main, "process_video", failing)
    response = client.post("/api/upload", files={"video": ("clip.mp4", b"video", "video/mp4")})
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "transcode.failed"
    assert data["logs"] == ["bad filter", "exiting"]


def test_download_processed(client, settings):
    os.makedirs(settings.processed_dir, exist_ok=True)
    with open(os.path.join(settings.processed_dir, "out.mp4"), "wb") as fh:
        fh.write(b"mp4-bytes")
    response = client.get("/processed/out.mp4")
    assert response.status_code == 200
    assert response.content == b"mp4-bytes"
    assert client.get("/processed/missing.mp4").status_code == 404


def test_reprocess_with_font_upload(client, settings, monkeypatch):
    seen = {}

    def fake_process(video_path, output_path, **kwargs):
        seen.update(kwargs)
        seen["font_present"] = os.path.isfile(kwargs["font_path"])
        with open(output_path, "wb") as fh:
            fh.write(b"mp4")
        return {"output_path": output_path, "subtitles": kwargs["subtitles"], "mode": "overlay", "logs": []}

    monkeypatch.setattr(main, "process_video", fake_process)
    response = client.post(
        "/api/reprocess",
        data={"subtitles": json.dumps(HELLO)},
        files={
            "video": ("clip.mp4", b"video", "video/mp4"),
            "fontFile": ("Brand.ttf", b"\x00\x01\x00\x00", "font/ttf"),
        },
    )
    assert response.status_code == 200
    assert seen["font_present"] is True
    assert seen["font_path"].endswith(".ttf")
    assert seen["mode"].value == "overlay"
    assert not os.path.exists(seen["font_path"])


def test_reprocess_rejects_non_font_upload(client, settings, calls):
    response = client.post(
        "/api/reprocess",
        data={"subtitles": json.dumps(HELLO)},
        files={
            "video": ("clip.mp4", b"video", "video/mp4"),
            "fontFile": ("evil.sh", b"#!/bin/sh", "text/plain"),
        },
    )
    assert response.status_code == 400
    assert calls == []
    assert os.listdir(settings.upload_dir) == []
