import io
import json
import logging
from packages.utils.logging import get_logger


def _capture(logger):
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logger.handlers[0].formatter)
    handler.addFilter(logger.handlers[0].filters[0])
    logger.addHandler(handler)
    return stream, handler


def test_redaction_of_sensitive_fields():
    logger = get_logger("tests.logging")
    stream, handler = _capture(logger)
    try:
        logger.info("test event", extra={"data": {"api_key": "sekrit", "nested": {"Authorization": "Bearer x"}, "foo": "bar"}})
        handler.flush()
        text = stream.getvalue()
    finally:
        logger.removeHandler(handler)
    assert "sekrit" not in text
    assert "Bearer x" not in text
    assert "[redacted]" in text
    assert "foo" in text


def test_records_are_single_line_json():
    logger = get_logger("tests.logging.json")
    stream, handler = _capture(logger)
    try:
        logger.warning("hello", extra={"data": {"lines": 3}})
        handler.flush()
    finally:
        logger.removeHandler(handler)
    record = json.loads(stream.getvalue().strip())
    assert record["level"] == "WARNING"
    assert record["msg"] == "hello"
    assert record["data"] == {"lines": 3}
    assert record["ts"].endswith("Z")


def test_repeated_calls_do_not_duplicate_handlers():
    first = get_logger("tests.logging.dupe")
    second = get_logger("tests.logging.dupe", level="debug")
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG
