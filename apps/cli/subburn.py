"""CLI for compiling and burning subtitles, DRY_RUN-friendly by default."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typer.main import get_command

from adapters.gemini_adapter import TranscriptionError
from packages.agents.transcription_agent import transcribe_video
from packages.generation.pipelines import process_video
from packages.render.compositor import TranscodeError
from packages.render.fonts import FontDownloadError, ensure_font, installed_fonts
from packages.subtitles.compiler import compile_subtitles
from packages.subtitles.errors import SubtitleError
from packages.subtitles.style import FONT_FILES

app = typer.Typer(
    name="subburn",
    help="Compile and burn subtitles into vertical videos",
    add_completion=False,
)
fonts_app = typer.Typer(help="Inspect and download registered fonts")
app.add_typer(fonts_app, name="fonts")


def _fail(message: str) -> None:
    typer.echo(f"❌ {message}", err=True)
    raise typer.Exit(code=1)


def _load_json(value: Optional[str], label: str) -> Any:
    """Accept inline JSON or a path to a JSON file."""
    if value is None:
        return None
    text = value
    if not value.lstrip().startswith(("{", "[")):
        path = Path(value)
        if not path.exists():
            _fail(f"{label} file not found: {value}")
        text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except ValueError as exc:
        _fail(f"{label} is not valid JSON: {exc}")


def _style_options(style: Optional[str]) -> Dict[str, Any]:
    options = _load_json(style, "Style") or {}
    if not isinstance(options, dict):
        _fail("Style must be a JSON object")
    return options


def _subtitles(value: Optional[str]) -> Any:
    payload = _load_json(value, "Subtitles")
    if isinstance(payload, list):
        return {"subtitles": payload}
    return payload


@app.command("compile")
def compile_cmd(
    subtitles: str = typer.Option(..., "--subtitles", "-s", help="Subtitle document (JSON file or inline JSON)"),
    style: Optional[str] = typer.Option(None, "--style", help="Style options (JSON file or inline JSON)"),
    mode: str = typer.Option("overlay", "--mode", "-m", help="overlay, ass or srt"),
    fonts_dir: Optional[Path] = typer.Option(None, "--fonts-dir", help="Directory searched first for font files"),
    font_file: Optional[Path] = typer.Option(None, "--font-file", help="Font file used instead of the style's family"),
    track_out: Optional[Path] = typer.Option(None, "--track-out", "-o", help="Where to write the track document (ass/srt)"),
) -> None:
    """Print the ffmpeg -vf expression for a subtitle document."""
    try:
        artifact = compile_subtitles(
            _subtitles(subtitles),
            _style_options(style),
            mode,
            fonts_dir=str(fonts_dir) if fonts_dir else None,
            font_path=str(font_file) if font_file else None,
        )
    except SubtitleError as exc:
        _fail(exc.message)

    track_path = None
    if artifact.requires_track:
        track_path = track_out or Path(f"subtitles{artifact.track_suffix}")
        track_path.parent.mkdir(parents=True, exist_ok=True)
        track_path.write_text(artifact.track_document or "", encoding="utf-8")
        typer.echo(f"📝 Track written to {track_path}", err=True)
    typer.echo(artifact.filter_graph(str(track_path) if track_path else None))


@app.command("burn")
def burn(
    input_path: Path = typer.Option(..., "--input", "-i", help="Source video"),
    output: Path = typer.Option(..., "--output", "-o", help="Output MP4"),
    subtitles: Optional[str] = typer.Option(None, "--subtitles", "-s", help="Subtitle document; transcribes when omitted"),
    style: Optional[str] = typer.Option(None, "--style", help="Style options (JSON file or inline JSON)"),
    mode: str = typer.Option("overlay", "--mode", "-m", help="overlay, ass or srt"),
    fonts_dir: Optional[Path] = typer.Option(None, "--fonts-dir", help="Directory searched first for font files"),
    font_file: Optional[Path] = typer.Option(None, "--font-file", help="Font file used instead of the style's family"),
    ffmpeg_bin: str = typer.Option("ffmpeg", "--ffmpeg", help="ffmpeg executable"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Subtitle language when transcribing"),
) -> None:
    """Burn subtitles into a 9:16 render of a video."""
    if not input_path.exists():
        _fail(f"Input video not found: {input_path}")
    typer.echo("🎬 Burning subtitles...")
    try:
        result = process_video(
            str(input_path),
            str(output),
            subtitles=_subtitles(subtitles),
            style=_style_options(style),
            mode=mode,
            fonts_dir=str(fonts_dir) if fonts_dir else None,
            font_path=str(font_file) if font_file else None,
            ffmpeg_bin=ffmpeg_bin,
            language=language,
        )
    except SubtitleError as exc:
        _fail(exc.message)
    except TranscriptionError as exc:
        _fail(f"Transcription failed: {exc}")
    except TranscodeError as exc:
        _fail(f"ffmpeg failed: {exc}\n{exc.stderr_tail}")

    for line in result["logs"]:
        typer.echo(f"  {line}")
    typer.echo(f"✅ Wrote {result['output_path']}")


@app.command("transcribe")
def transcribe(
    input_path: Path = typer.Option(..., "--input", "-i", help="Source video"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the subtitle document here"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Subtitle language"),
) -> None:
    """Transcribe a video into a subtitle document (fallback lines in DRY_RUN)."""
    if not input_path.exists():
        _fail(f"Input video not found: {input_path}")
    try:
        document = transcribe_video(str(input_path), language=language)
    except TranscriptionError as exc:
        _fail(f"Transcription failed: {exc}")
    text = json.dumps(document.to_payload(), indent=2, ensure_ascii=False)
    if out is None:
        typer.echo(text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    typer.echo(f"✅ Wrote {len(document)} subtitle lines to {out}")


@fonts_app.command("list")
def fonts_list(
    fonts_dir: Path = typer.Option(Path("fonts"), "--fonts-dir", help="Fonts directory"),
) -> None:
    """Show registered font families and whether they are installed."""
    present = set(installed_fonts(str(fonts_dir))) if fonts_dir.exists() else set()
    for family, files in FONT_FILES.items():
        mark = "✅" if family in present else "⬜"
        typer.echo(f"{mark} {family} ({', '.join(files)})")


@fonts_app.command("fetch")
def fonts_fetch(
    family: str = typer.Argument("DejaVu Sans", help="Registered font family"),
    fonts_dir: Path = typer.Option(Path("fonts"), "--fonts-dir", help="Fonts directory"),
    url: Optional[str] = typer.Option(None, "--url", help="Override the download URL"),
) -> None:
    """Download a registered font family into the fonts directory."""
    try:
        path = ensure_font(family, str(fonts_dir), url=url)
    except FontDownloadError as exc:
        _fail(str(exc))
    typer.echo(f"✅ {family}: {path}")


cli = get_command(app)


if __name__ == "__main__":
    cli()
