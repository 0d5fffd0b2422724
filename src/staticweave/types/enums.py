"""Shared enumerations for StaticWeave."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class SourceKind(str, Enum):
    """Where a template body comes from.

    Declaration order is resolution priority: a remote URL wins over a
    local file, which wins over a registered string.
    """

    REMOTE = "remote"
    FILE = "file"
    STRING = "string"


class MissingPolicy(str, Enum):
    """What to do with a placeholder that has no value in the context."""

    KEEP = "keep"  # Leave "{{name}}" in the output
    EMPTY = "empty"  # Replace with ""
    ERROR = "error"  # Fail the render
