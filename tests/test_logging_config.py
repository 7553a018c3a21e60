"""Log formatting and handler setup."""
import json
import logging

import pytest

from app.logging_config import JSONFormatter, ReadableFormatter, configure_logging


@pytest.fixture
def restore_app_logger():
    app_logger = logging.getLogger("app")
    handlers, level, propagate = list(app_logger.handlers), app_logger.level, app_logger.propagate
    yield app_logger
    app_logger.handlers = handlers
    app_logger.setLevel(level)
    app_logger.propagate = propagate


def _record(**extra):
    record = logging.LogRecord(
        "app.services.session_log", logging.INFO, __file__, 10, "logged %d min", (30,), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_known_extras():
    line = JSONFormatter().format(_record(event_type="session_logged", commitment_id=7, unrelated="x"))
    entry = json.loads(line)

    assert entry["message"] == "logged 30 min"
    assert entry["level"] == "INFO"
    assert entry["event_type"] == "session_logged"
    assert entry["commitment_id"] == 7
    assert "unrelated" not in entry


def test_readable_formatter_is_single_line():
    line = ReadableFormatter().format(_record())
    assert "app.services.session_log: logged 30 min" in line
    assert "\n" not in line


def test_configure_logging_replaces_handler(restore_app_logger):
    configure_logging(level="debug", fmt="json")
    app_logger = configure_logging(level="warning", fmt="readable")

    assert len(app_logger.handlers) == 1
    assert isinstance(app_logger.handlers[0].formatter, ReadableFormatter)
    assert app_logger.level == logging.WARNING
    assert app_logger.propagate is False
