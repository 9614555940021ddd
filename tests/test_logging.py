import io
import json
import logging

from txguard.logging_conf import JsonFormatter, init_logging


def _record(msg="hello", **extra):
    record = logging.LogRecord("txguard.test", logging.WARNING, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields():
    payload = json.loads(JsonFormatter().format(_record(context={"error": "boom", "items": 3})))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "txguard.test"
    assert payload["msg"] == "hello"
    assert payload["error"] == "boom"
    assert payload["items"] == 3
    assert payload["ts"].endswith("Z")


def test_json_formatter_ignores_non_dict_context():
    payload = json.loads(JsonFormatter().format(_record(context="not a dict")))
    assert "context" not in payload
    assert payload["msg"] == "hello"


def test_init_logging_writes_json_to_stream():
    stream = io.StringIO()
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        init_logging("info", stream=stream)
        logging.getLogger("txguard.test").info("ready", extra={"context": {"workers": 4}})
        logging.getLogger("txguard.test").debug("hidden")
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["workers"] == 4
