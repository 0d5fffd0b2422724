"""Shared types for StaticWeave.

Import from here rather than submodules:
    from staticweave.types import LogLevel, MissingPolicy, SourceKind
"""

from .enums import LogFormat, LogLevel, MissingPolicy, SourceKind
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "SourceKind",
    "MissingPolicy",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
