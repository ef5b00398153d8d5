import json

import pytest

from packages.subtitles.errors import InvalidInputError
from packages.subtitles.models import SubtitleDocument, parse_document


def test_parse_minimal_document():
    doc = parse_document({"subtitles": [{"speaker": "A", "line": "Hello", "startTime": 0, "endTime": 2}]})
    assert isinstance(doc, SubtitleDocument)
    assert len(doc) == 1
    line = doc.lines[0]
    assert (line.speaker, line.text, line.start_time, line.end_time) == ("A", "Hello", 0.0, 2.0)
    assert line.override_color is None


def test_parse_accepts_json_text_and_text_alias():
    raw = json.dumps({"subtitles": [{"text": "hi", "startTime": "1.5", "endTime": 3, "speaker": 2, "overrideColor": "#fff"}]})
    line = parse_document(raw).lines[0]
    assert line.text == "hi"
    assert line.start_time == 1.5
    assert line.speaker == "2"
    assert line.override_color == "#fff"


def test_empty_document_is_valid():
    assert len(parse_document({"subtitles": []})) == 0


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        "not json",
        {},
        {"subtitles": "nope"},
        {"subtitles": [{"line": 5, "startTime": 0, "endTime": 1}]},
        {"subtitles": [{"startTime": 0, "endTime": 1}]},
        {"subtitles": [{"line": "x", "startTime": "soon", "endTime": 1}]},
        {"subtitles": [{"line": "x", "startTime": True, "endTime": 1}]},
        {"subtitles": [{"line": "x", "startTime": 0}]},
        {"subtitles": ["x"]},
    ],
)
def test_invalid_payloads_raise(payload):
    with pytest.raises(InvalidInputError):
        parse_document(payload)


def test_lines_are_immutable_and_round_trip_to_payload():
    payload = {"subtitles": [{"speaker": "A", "line": "Hello", "startTime": 0.0, "endTime": 2.0}]}
    doc = parse_document(payload)
    with pytest.raises(Exception):
        doc.lines[0].text = "changed"  # type: ignore[misc]
    assert doc.to_payload() == payload
