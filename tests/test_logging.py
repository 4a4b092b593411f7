"""Tests for the JSON log formatter."""
from __future__ import annotations

import json
import logging
import sys

from resonance.logging import _JsonFormatter, setup_logging


def make_record(**extra) -> logging.LogRecord:  # type: ignore[no-untyped-def]
    record = logging.LogRecord("resonance.middleware", logging.INFO, __file__, 1, "GET /api/songs 200 3ms", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_request_fields_become_top_level_keys() -> None:
    line = _JsonFormatter().format(make_record(method="GET", path="/api/songs", status=200, duration_ms=3))
    payload = json.loads(line)
    assert payload["msg"] == "GET /api/songs 200 3ms"
    assert payload["logger"] == "resonance.middleware"
    assert payload["level"] == "INFO"
    assert (payload["method"], payload["path"], payload["status"], payload["duration_ms"]) == ("GET", "/api/songs", 200, 3)


def test_plain_records_carry_no_request_fields() -> None:
    payload = json.loads(_JsonFormatter().format(make_record()))
    assert not {"method", "path", "status", "duration_ms", "client"} & payload.keys()


def test_exception_text_is_included() -> None:
    try:
        raise RuntimeError("kaboom")
    except RuntimeError:
        record = logging.LogRecord("resonance", logging.ERROR, __file__, 1, "failed", None, None)
        record.exc_info = sys.exc_info()
    payload = json.loads(_JsonFormatter().format(record))
    assert "RuntimeError: kaboom" in payload["exc_info"]


def test_setup_logging_installs_one_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(logging.DEBUG)
        setup_logging(logging.WARNING)
        json_handlers = [h for h in root.handlers if isinstance(h.formatter, _JsonFormatter)]
        assert len(json_handlers) == 1
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
