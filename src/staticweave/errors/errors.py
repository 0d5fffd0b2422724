"""StaticWeave error types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Closed set of failure kinds surfaced by the engine."""

    NOT_FOUND = "NOT_FOUND"
    IO = "IO"
    REMOTE = "REMOTE"
    RENDER = "RENDER"
    CACHE = "CACHE"
    ENGINE = "ENGINE"
    CONFIG = "CONFIG"


@dataclass(eq=False)
class TemplateError(Exception):
    """Structured error with context. Base exception for all StaticWeave errors."""

    # Identity
    code: str  # e.g., "TEMPLATE_NOT_FOUND"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Context
    retryable: bool = False  # Is retry potentially useful?
    template_name: str | None = None  # Logical template name being rendered
    source: str | None = None  # Resolved path or URL

    # Error chain (max depth 3)
    cause: "TemplateError | None" = None
    origin: BaseException | None = None  # Raw exception from a loader

    # Metadata
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    @property
    def root_cause(self) -> "TemplateError":
        """Innermost error of the cause chain."""
        error = self
        while error.cause is not None:
            error = error.cause
        return error

    @property
    def cause_depth(self) -> int:
        """Number of wrapped errors below this one."""
        depth = 0
        error = self.cause
        while error is not None:
            depth += 1
            error = error.cause
        return depth

    def to_dict(self) -> dict[str, Any]:
        """Serialize for reporting.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "retryable": self.retryable,
            "template_name": self.template_name,
            "source": self.source,
            "origin": type(self.origin).__name__ if self.origin else None,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.to_dict() if self.cause else None,
        }

    def with_context(
        self,
        template_name: str | None = None,
        source: str | None = None,
    ) -> "TemplateError":
        """Return copy with additional context.

        Existing context wins; only missing fields are filled in.

        Args:
            template_name: Optional template name
            source: Optional resolved path or URL

        Returns:
            New TemplateError instance with updated context
        """
        return TemplateError(
            code=self.code,
            category=self.category,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
            retryable=self.retryable,
            template_name=self.template_name or template_name,
            source=self.source or source,
            cause=self.cause,
            origin=self.origin,
            timestamp=self.timestamp,
        )


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Template '{template_name}' not found"
    detail_template: str | None = None
    suggestion_template: str | None = None
    default_retryable: bool = False


@dataclass
class MatchResult:
    """Result of matching an exception."""

    code: str
    context: dict[str, Any]
    retryable: bool | None = None  # None = use template default


class ErrorMatcher(ABC):
    """Base class for exception matchers."""

    @abstractmethod
    def matches(self, error: BaseException) -> bool:
        """Check if this matcher handles the error.

        Args:
            error: Exception to check

        Returns:
            True if this matcher can handle the error
        """

    @abstractmethod
    def extract(self, error: BaseException) -> MatchResult:
        """Extract error info from the exception.

        Args:
            error: Exception to extract from

        Returns:
            MatchResult with error code and context
        """
