import pytest

from packages.subtitles.style import FONT_FILES


@pytest.fixture
def fonts_dir(tmp_path):
    """A fonts directory holding a placeholder file for every registered family."""
    d = tmp_path / "fonts"
    d.mkdir()
    for files in FONT_FILES.values():
        (d / files[0]).write_bytes(b"\x00\x01\x00\x00")
    return d


def _get_token(buf, term):
    """Mimic ffmpeg's av_get_token: quotes and backslash escapes, stop at ``term``."""
    out = []
    i = 0
    while i < len(buf) and buf[i] in " \n\t\r":
        i += 1
    while i < len(buf) and buf[i] not in term:
        c = buf[i]
        i += 1
        if c == "\\" and i < len(buf):
            out.append(buf[i])
            i += 1
        elif c == "'":
            while i < len(buf) and buf[i] != "'":
                out.append(buf[i])
                i += 1
            i += 1
        else:
            out.append(c)
    return "".join(out), buf[i:]


def _parse_options(args):
    options = []
    while args:
        key, args = _get_token(args, "=:")
        value = ""
        if args.startswith("="):
            value, args = _get_token(args[1:], ":")
        options.append((key, value))
        if args.startswith(":"):
            args = args[1:]
    return options


def _parse_chain(graph):
    """Split a linear -vf chain into (name, [(key, value), ...]) pairs."""
    stages = []
    rest = graph
    while rest:
        name_end = min([i for i in (rest.find("="), rest.find(",")) if i != -1] or [len(rest)])
        name = rest[:name_end]
        rest = rest[name_end:]
        args = ""
        if rest.startswith("="):
            args, rest = _get_token(rest[1:], "[],;")
        stages.append((name, _parse_options(args)))
        if rest.startswith(","):
            rest = rest[1:]
    return stages


@pytest.fixture
def parse_chain():
    return _parse_chain


def _expand_drawtext(text):
    out = []
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
            continue
        assert c != "%", "unescaped expansion in drawtext text"
        out.append(c)
        i += 1
    return "".join(out)


@pytest.fixture
def expand_drawtext():
    return _expand_drawtext
