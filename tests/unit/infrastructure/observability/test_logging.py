"""Tests for structured logging."""

import json
import logging
import sys

from djcrate.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)


def _record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="djcrate.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestCorrelationId:
    """Test correlation ID functionality."""

    def test_set_and_get_correlation_id(self):
        """Test setting and getting correlation ID."""
        result = set_correlation_id("run-123")
        assert result == "run-123"
        assert get_correlation_id() == "run-123"

    def test_set_correlation_id_generates_uuid_when_none(self):
        """Test that setting None generates a UUID."""
        first = set_correlation_id(None)
        second = set_correlation_id()
        assert len(first) == 36
        assert first != second
        assert get_correlation_id() == second

    def test_filter_adds_correlation_id(self):
        """Test the filter copies the context id onto every record."""
        set_correlation_id("run-456")
        record = _record()
        assert CorrelationIdFilter().filter(record)
        assert record.correlation_id == "run-456"


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_debug_level(self):
        """Test configuring logging with DEBUG level."""
        configure_logging(log_level="DEBUG", json_format=False, app_name="test-app")
        assert logging.getLogger("djcrate.test").getEffectiveLevel() <= logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(log_level="CHATTY")
        assert logging.getLogger().level == logging.INFO

    def test_replaces_handlers(self):
        """Test repeated configuration never stacks handlers."""
        configure_logging(log_level="INFO", json_format=True)
        configure_logging(log_level="INFO", json_format=False)
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, CompactExceptionFormatter)

    def test_json_format_handler(self):
        configure_logging(log_level="INFO", json_format=True)
        [handler] = logging.getLogger().handlers
        assert isinstance(handler.formatter, CustomJsonFormatter)

    def test_http_libraries_quieted(self):
        configure_logging(log_level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestFormatters:
    """Test the JSON and compact formatters."""

    def test_json_formatter_fields(self):
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = _record("BPM lookup completed")
        record.correlation_id = "run-789"

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "BPM lookup completed"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "djcrate.test"
        assert payload["correlation_id"] == "run-789"

    def test_compact_exception_chain_root_cause_first(self):
        try:
            try:
                raise ConnectionError("refused")
            except ConnectionError as e:
                raise RuntimeError("lookup failed") from e
        except RuntimeError:
            text = CompactExceptionFormatter().formatException(sys.exc_info())

        lines = [line for line in text.splitlines() if line.startswith("╰─►")]
        assert lines == [
            "╰─► ConnectionError: refused",
            "╰─► RuntimeError: lookup failed",
        ]
