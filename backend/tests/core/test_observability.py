"""Logging setup — JSON formatter fields, level mapping, file sinks."""

import json
import logging

import pytest

from recordapi.infrastructure import observability
from recordapi.infrastructure.observability import JSONFormatter, setup_logging


@pytest.fixture
def restore_logging():
    level = logging.root.level
    yield
    for handler in observability._installed:
        logging.root.removeHandler(handler)
        handler.close()
    observability._installed.clear()
    logging.root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "recordapi.test", logging.ERROR, __file__, 1, "boom %s", ("now",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extra_fields():
    out = json.loads(JSONFormatter().format(
        _record(method="GET", path="/x", error_code="NOT_FOUND", status_code=404),
    ))
    assert out["message"] == "boom now"
    assert out["level"] == "ERROR"
    assert out["logger"] == "recordapi.test"
    assert out["method"] == "GET"
    assert out["status_code"] == 404
    assert "timestamp" in out


def test_json_formatter_skips_absent_extras():
    out = json.loads(JSONFormatter().format(_record()))
    assert "method" not in out


def test_warn_maps_to_warning(restore_logging):
    setup_logging("warn", "text")
    assert logging.root.level == logging.WARNING


def test_repeated_setup_replaces_handlers(restore_logging):
    setup_logging("info", "json")
    setup_logging("debug", "json")
    assert len(observability._installed) == 1
    assert logging.root.level == logging.DEBUG


def test_log_dir_adds_error_and_combined_files(restore_logging, tmp_path):
    setup_logging("info", "json", log_dir=str(tmp_path))
    logger = logging.getLogger("recordapi.test.files")
    logger.info("just info")
    logger.error("an error")
    for handler in observability._installed:
        handler.flush()

    combined = (tmp_path / "combined.log").read_text()
    errors = (tmp_path / "error.log").read_text()
    assert "just info" in combined and "an error" in combined
    assert "an error" in errors and "just info" not in errors
