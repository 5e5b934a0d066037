"""JSON log formatter."""

from __future__ import annotations

import io
import json
import logging
import sys

from foodabuser.core.logging import JSONFormatter, setup_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "foodabuser.test", logging.INFO, __file__, 1, "hello %s", ("world",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_base_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "foodabuser.test"
        assert payload["message"] == "hello world"
        assert payload["timestamp"].endswith("+00:00")

    def test_extra_fields(self):
        line = JSONFormatter().format(
            _record(event="record_added", collection="meals", record_id="meal_1_x", unrelated=1)
        )
        payload = json.loads(line)
        assert payload["event"] == "record_added"
        assert payload["collection"] == "meals"
        assert payload["record_id"] == "meal_1_x"
        assert "unrelated" not in payload

    def test_non_ascii_kept(self):
        line = JSONFormatter().format(_record(state="Ожидание"))
        assert "Ожидание" in line

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in payload["exception"]


def test_setup_logging_writes_json_lines():
    stream = io.StringIO()
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("debug", stream=stream)
        logging.getLogger("foodabuser.store").debug("opened", extra={"event": "store_opened"})
        logging.getLogger("sqlalchemy.engine").info("SELECT 1")
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["level"] == "DEBUG"
    assert payload["event"] == "store_opened"
