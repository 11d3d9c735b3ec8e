# src/lead_qualifier/tests/test_logging_utils.py
"""
Unit tests for the logging utilities.

Tests cover:
- JSON output with extra fields
- LogContext fields carried onto records, and restored on exit
- Human-readable output in development
- Logger namespacing
"""
import io
import json
import logging

import pytest

from lead_qualifier.logging_utils import LogContext, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


class TestStructuredLogging:
    """Tests for JSON log output."""

    @pytest.mark.unit
    def test_extra_fields_in_json(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(level="INFO", structured=True, stream=stream)

        get_logger("store").info("Stored record", extra={"record_id": "abc"})

        document = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert document["message"] == "Stored record"
        assert document["level"] == "INFO"
        assert document["logger"] == "lead_qualifier.store"
        assert document["service"] == "lead-qualifier"
        assert document["extra"] == {"record_id": "abc"}

    @pytest.mark.unit
    def test_context_fields_added(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(level="INFO", structured=True, stream=stream)
        logger = get_logger("service")

        with LogContext(owner_id="user-1"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
        assert inside["extra"] == {"owner_id": "user-1"}
        assert "extra" not in outside

    @pytest.mark.unit
    def test_level_filters_records(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(level="WARNING", structured=True, stream=stream)

        get_logger("store").info("hidden")

        assert stream.getvalue() == ""

    @pytest.mark.unit
    def test_non_serializable_extra(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(level="INFO", structured=True, stream=stream)

        get_logger("store").info("odd", extra={"value": object()})

        document = json.loads(stream.getvalue().strip())
        assert document["extra"]["value"].startswith("<object object")


class TestHumanReadableLogging:
    """Tests for development log output."""

    @pytest.mark.unit
    def test_plain_line_with_fields(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(level="DEBUG", structured=False, stream=stream)

        get_logger("mailer").warning("Send failed", extra={"status_code": 500})

        line = stream.getvalue().strip().splitlines()[-1]
        assert "WARNING" in line
        assert "lead_qualifier.mailer: Send failed" in line
        assert "status_code=500" in line
        # StringIO is not a tty, so no color codes
        assert "\033[" not in line


class TestLogContext:
    """Tests for LogContext nesting."""

    @pytest.mark.unit
    def test_nested_contexts(self):
        with LogContext(owner_id="user-1"):
            with LogContext(record_id="r-1"):
                assert LogContext.get_context() == {"owner_id": "user-1", "record_id": "r-1"}
            assert LogContext.get_context() == {"owner_id": "user-1"}
        assert LogContext.get_context() == {}


class TestGetLogger:
    """Tests for get_logger()."""

    @pytest.mark.unit
    def test_prefixes_short_names(self):
        assert get_logger("store").name == "lead_qualifier.store"

    @pytest.mark.unit
    def test_keeps_module_names(self):
        assert get_logger("lead_qualifier.store").name == "lead_qualifier.store"
