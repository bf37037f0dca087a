"""
JSON log formatting.
"""
import json
import logging
import sys

from core.logging import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord("services.strava_sync", logging.INFO, __file__, 12, "synced %s", (3,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_carries_extra_fields():
    line = json.loads(JSONFormatter().format(_record(extra_fields={"athlete_id": 777, "truncated": False})))

    assert line["message"] == "synced 3"
    assert line["service"] == "training-tracker-api"
    assert line["logger"] == "services.strava_sync"
    assert (line["athlete_id"], line["truncated"]) == (777, False)


def test_json_line_with_exception_and_odd_values():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record(extra_fields={"when": object()})
        record.exc_info = sys.exc_info()

    line = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in line["exception"]
    assert isinstance(line["when"], str)


def test_setup_installs_one_handler_and_quiets_clients():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging()
        setup_logging()

        assert len(root.handlers) == 1
        assert logging.getLogger("anthropic").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
