"""Tests for StaticWeave logging."""

import json
import logging
from io import StringIO
from pathlib import Path

from opentelemetry.sdk.trace import TracerProvider

from staticweave.logging import (
    ColoredLogFormatter,
    StructuredLogFormatter,
    WeaverLogger,
    configure_logging,
    get_logger,
)
from staticweave.template import Engine
from staticweave.types import LogFormat, LogLevel


def make_record(msg: str = "Test message", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="staticweave.engine",
        level=level,
        pathname="engine.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestStructuredLogFormatter:
    """Tests for StructuredLogFormatter."""

    def test_formats_as_json(self):
        """Test log record is formatted as JSON."""
        data = json.loads(StructuredLogFormatter().format(make_record()))

        assert data["message"] == "Test message"
        assert data["level"] == "INFO"
        assert data["component"] == "staticweave.engine"
        assert data["timestamp"].endswith("Z")

    def test_includes_extra_fields(self):
        """Test extra fields are included in output."""
        record = make_record()
        record.template = "index"
        record.source_kind = "file"

        data = json.loads(StructuredLogFormatter().format(record))

        assert data["template"] == "index"
        assert data["source_kind"] == "file"
        assert "pathname" not in data

    def test_includes_trace_context(self):
        """Test trace and span ids are added inside a recording span."""
        tracer = TracerProvider().get_tracer("test")

        with tracer.start_as_current_span("render:index") as span:
            data = json.loads(StructuredLogFormatter().format(make_record()))
            context = span.get_span_context()

        assert data["trace_id"] == format(context.trace_id, "032x")
        assert data["span_id"] == format(context.span_id, "016x")

    def test_no_trace_context_outside_span(self):
        data = json.loads(StructuredLogFormatter().format(make_record()))
        assert "trace_id" not in data


class TestColoredLogFormatter:
    """Tests for ColoredLogFormatter."""

    def test_component_and_message(self):
        output = ColoredLogFormatter().format(make_record("Template loaded"))
        assert "[ENGINE]" in output
        assert "Template loaded" in output

    def test_truncates_fields(self):
        record = make_record()
        record.detail = "x" * 100

        output = ColoredLogFormatter(truncate_at=20).format(record)

        assert "..." in output
        assert "x" * 50 not in output


class TestWeaverLogger:
    """Tests for WeaverLogger and configure_logging."""

    def test_get_logger_is_cached(self):
        assert get_logger("engine") is get_logger("engine")
        assert isinstance(get_logger("engine"), WeaverLogger)
        assert get_logger("engine").name == "staticweave.engine"

    def test_json_output(self):
        output = StringIO()
        configure_logging(LogLevel.DEBUG, LogFormat.JSON, output=output)

        get_logger("cache").info("Cache cleared", entries=3)

        data = json.loads(output.getvalue().strip())
        assert data["component"] == "staticweave.cache"
        assert data["message"] == "Cache cleared"
        assert data["entries"] == 3

    def test_level_filters(self):
        output = StringIO()
        configure_logging(LogLevel.WARN, LogFormat.JSON, output=output)

        logger = get_logger("engine")
        logger.info("hidden")
        logger.warning("shown")

        lines = output.getvalue().strip().splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["shown"]

    def test_reconfigure_replaces_handler(self):
        first, second = StringIO(), StringIO()
        configure_logging(LogLevel.INFO, LogFormat.JSON, output=first)
        configure_logging(LogLevel.INFO, LogFormat.JSON, output=second)

        get_logger("engine").info("once")

        assert first.getvalue() == ""
        assert second.getvalue().count("once") == 1

    def test_exception_includes_traceback(self):
        output = StringIO()
        configure_logging(LogLevel.INFO, LogFormat.JSON, output=output)

        try:
            raise ValueError("bad")
        except ValueError:
            get_logger("engine").exception("Failed")

        data = json.loads(output.getvalue().strip())
        assert "ValueError: bad" in data["exception"]

    def test_engine_logs_loads(self, templates_dir: Path):
        output = StringIO()
        configure_logging(LogLevel.DEBUG, LogFormat.JSON, output=output)

        engine = Engine(templates_dir)
        engine.render_page({}, "plain")
        engine.render_page({}, "plain")

        records = [json.loads(line) for line in output.getvalue().strip().splitlines()]
        messages = [r["message"] for r in records]
        assert messages.count("Template loaded") == 1
        assert "Template cache hit" in messages
        loaded = next(r for r in records if r["message"] == "Template loaded")
        assert loaded["template"] == "plain"
        assert loaded["source_kind"] == "file"
