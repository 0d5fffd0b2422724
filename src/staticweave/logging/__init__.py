"""StaticWeave logging - structured or colored component logging."""

from .colors import CYAN, GREEN, LIGHT_BLUE, MAGENTA, RED, RESET, YELLOW
from .logger import (
    ColoredLogFormatter,
    StructuredLogFormatter,
    WeaverLogger,
    configure_logging,
    get_logger,
    reset_loggers,
)

__all__ = [
    # Loggers
    "WeaverLogger",
    "StructuredLogFormatter",
    "ColoredLogFormatter",
    "get_logger",
    "configure_logging",
    "reset_loggers",
    # Colors
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
