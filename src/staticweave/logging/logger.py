"""StaticWeave logging - structured JSON or colored output over stdlib logging.

Usage:
    from staticweave.logging import get_logger

    logger = get_logger("engine")
    logger.info("Template loaded", template="index", source="file")
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from opentelemetry import trace

from staticweave.types import LogFormat, LogLevel

from .colors import CYAN, LIGHT_BLUE, MAGENTA, RED, RESET, YELLOW

ROOT_LOGGER_NAME = "staticweave"

# LogRecord attributes that are not user-supplied extra fields
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }
)

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter with trace context injection.

    Formats log records as JSON with:
    - timestamp (ISO 8601)
    - level
    - component (logger name)
    - message
    - trace_id / span_id (if a span is recording)
    - Additional fields from extra
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                log_data["trace_id"] = format(ctx.trace_id, "032x")
                log_data["span_id"] = format(ctx.span_id, "016x")

        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ColoredLogFormatter(logging.Formatter):
    """Human-readable ``[COMPONENT] message {fields}`` output."""

    LEVEL_COLORS = {
        logging.DEBUG: LIGHT_BLUE,
        logging.INFO: CYAN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def __init__(self, truncate_at: int = 200) -> None:
        super().__init__()
        self.truncate_at = truncate_at

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, RESET)
        component = record.name.removeprefix(f"{ROOT_LOGGER_NAME}.").upper()
        output = f"{MAGENTA}[{component}]{RESET} {color}{record.getMessage()}{RESET}"

        fields = _extra_fields(record)
        if fields:
            fields_str = str(fields)
            if len(fields_str) > self.truncate_at:
                fields_str = fields_str[: self.truncate_at] + "..."
            output += f" {LIGHT_BLUE}{fields_str}{RESET}"

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


class WeaverLogger:
    """Component logger taking structured fields as keyword arguments."""

    def __init__(self, name: str, level: int | None = None):
        """Initialize logger.

        Args:
            name: Component name, nested under the "staticweave" logger
            level: Optional logging level for this component
        """
        self._logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
        if level is not None:
            self._logger.setLevel(level)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        """Log message with extra fields.

        Args:
            level: Log level
            message: Log message
            **kwargs: Additional fields to include
        """
        self._logger.log(level, message, extra=kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(message, extra=kwargs)


# Logger cache
_loggers: dict[str, WeaverLogger] = {}


def get_logger(name: str, level: int | None = None) -> WeaverLogger:
    """Get or create a component logger.

    Args:
        name: Component name
        level: Optional logging level

    Returns:
        WeaverLogger instance
    """
    if name not in _loggers:
        _loggers[name] = WeaverLogger(name, level)
    return _loggers[name]


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    log_format: LogFormat = LogFormat.COLORED,
    output: TextIO | None = None,
    truncate_at: int = 200,
) -> logging.Handler:
    """Install a single handler on the "staticweave" logger.

    Calling again replaces the previous handler.

    Args:
        level: Minimum level to emit
        log_format: JSON or colored output
        output: Stream to write to (default: sys.stderr)
        truncate_at: Max length of the colored field dump

    Returns:
        The installed handler
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_staticweave", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(output or sys.stderr)
    if log_format == LogFormat.JSON:
        handler.setFormatter(StructuredLogFormatter())
    else:
        handler.setFormatter(ColoredLogFormatter(truncate_at=truncate_at))
    handler._staticweave = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(_LEVELS.get(level, logging.INFO))
    return handler


def reset_loggers() -> None:
    """Reset logger cache and installed handlers (for testing)."""
    global _loggers
    _loggers = {}
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_staticweave", False):
            root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
