import os

import pytest

from packages.subtitles import (
    CompilationError,
    FontNotFoundError,
    InvalidInputError,
    RenderMode,
    compile_subtitles,
    get_compiler,
    parse_document,
    parse_render_mode,
    resolve_style,
)

HELLO = {"subtitles": [{"speaker": "A", "line": "Hello world", "startTime": 0, "endTime": 2}]}


def test_parse_render_mode_aliases():
    assert parse_render_mode("overlay") is RenderMode.OVERLAY
    assert parse_render_mode("DRAWTEXT") is RenderMode.OVERLAY
    assert parse_render_mode("track") is RenderMode.ASS
    assert parse_render_mode(RenderMode.SRT) is RenderMode.SRT
    with pytest.raises(InvalidInputError):
        parse_render_mode("hologram")


@pytest.mark.parametrize("mode", list(RenderMode))
def test_every_mode_implements_the_same_interface(fonts_dir, mode):
    compiler = get_compiler(mode, fonts_dir=str(fonts_dir), search_dirs=())
    assert compiler.mode is mode
    artifact = compiler.compile(parse_document(HELLO), resolve_style({}), None)
    assert artifact.mode is mode
    assert artifact.font_path.endswith("Roboto-Regular.ttf")


@pytest.mark.parametrize("mode", list(RenderMode))
def test_unknown_font_fails_in_every_mode(mode):
    with pytest.raises(FontNotFoundError):
        compile_subtitles(HELLO, {"fontFamily": "Comic Sans"}, mode, search_dirs=())


@pytest.mark.parametrize("mode", list(RenderMode))
def test_missing_font_file_fails_in_every_mode(tmp_path, mode):
    with pytest.raises(FontNotFoundError):
        compile_subtitles(HELLO, {"fontFamily": "Avenir"}, mode, fonts_dir=str(tmp_path), search_dirs=())


def test_invalid_document_rejected_before_font_lookup():
    with pytest.raises(InvalidInputError):
        compile_subtitles({"lines": []}, {"fontFamily": "Comic Sans"}, "overlay", search_dirs=())


def test_track_artifact_needs_track_path(fonts_dir):
    artifact = compile_subtitles(HELLO, {}, "ass", fonts_dir=str(fonts_dir), search_dirs=())
    assert artifact.requires_track
    with pytest.raises(CompilationError):
        artifact.filter_graph()


def test_track_path_is_escaped(fonts_dir, parse_chain):
    artifact = compile_subtitles(HELLO, {}, "ass", fonts_dir=str(fonts_dir), search_dirs=())
    odd = "/tmp/it's a:dir/subs,1.ass"
    stages = parse_chain(artifact.filter_graph(odd))
    assert dict(stages[-1][1])["filename"] == odd


def test_overlay_artifact_has_no_track(fonts_dir):
    artifact = compile_subtitles(HELLO, {}, "overlay", fonts_dir=str(fonts_dir), search_dirs=())
    assert not artifact.requires_track
    assert artifact.track_document is None
    assert len(artifact.stages()) == 3


def test_explicit_colors_override_style_map(fonts_dir):
    style = {"speakerColors": {"A": "red"}}
    artifact = compile_subtitles(HELLO, style, "overlay", speaker_colors={"A": "blue"}, fonts_dir=str(fonts_dir), search_dirs=())
    assert "fontcolor=0x0000FF" in artifact.filter_graph()
    artifact = compile_subtitles(HELLO, style, "overlay", fonts_dir=str(fonts_dir), search_dirs=())
    assert "fontcolor=0xFF0000" in artifact.filter_graph()


def test_explicit_font_file_skips_family_lookup(tmp_path, parse_chain):
    font = tmp_path / "uploads" / "custom.otf"
    font.parent.mkdir()
    font.write_bytes(b"OTTO")
    artifact = compile_subtitles(
        HELLO, {"fontFamily": "Papyrus"}, "overlay", search_dirs=(), font_path=str(font)
    )
    drawtext = dict(parse_chain(artifact.filter_graph())[-1][1])
    assert drawtext["fontfile"] == os.path.abspath(str(font))

    track = compile_subtitles(HELLO, {}, "ass", search_dirs=(), font_path=str(font))
    subtitles = dict(parse_chain(track.filter_graph("subs.ass"))[-1][1])
    assert subtitles["fontsdir"] == os.path.abspath(str(font.parent))


@pytest.mark.parametrize("mode", ["overlay", "ass", "srt"])
def test_missing_explicit_font_file(tmp_path, mode):
    with pytest.raises(FontNotFoundError) as exc:
        compile_subtitles(HELLO, {}, mode, search_dirs=(), font_path=str(tmp_path / "gone.ttf"))
    assert exc.value.family == "gone.ttf"
    assert "does not exist" in exc.value.message
