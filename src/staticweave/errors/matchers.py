"""Error matchers for converting loader exceptions to TemplateErrors."""

from typing import Any

import httpx

from .errors import ErrorMatcher, MatchResult


def _request_url(error: httpx.HTTPError) -> str:
    """Best-effort URL of the request behind an httpx error."""
    try:
        return str(error.request.url)
    except RuntimeError:
        # httpx raises when the error was created without a request
        return "unknown"


class TimeoutErrorMatcher(ErrorMatcher):
    """Matches timeout errors from httpx or the standard library."""

    def matches(self, error: BaseException) -> bool:
        """Check if error is a timeout error.

        Args:
            error: Exception to check

        Returns:
            True if error is a timeout error
        """
        return isinstance(error, (httpx.TimeoutException, TimeoutError))

    def extract(self, error: BaseException) -> MatchResult:
        """Extract timeout error info.

        Args:
            error: Exception to extract from

        Returns:
            MatchResult with REMOTE_TIMEOUT code
        """
        context: dict[str, Any] = {"timeout_seconds": "unknown", "url": "unknown"}
        if isinstance(error, httpx.TimeoutException):
            context["url"] = _request_url(error)

        return MatchResult(code="REMOTE_TIMEOUT", context=context, retryable=True)


class HTTPStatusErrorMatcher(ErrorMatcher):
    """Matches non-success HTTP responses."""

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, httpx.HTTPStatusError)

    def extract(self, error: BaseException) -> MatchResult:
        context: dict[str, Any] = {"url": "unknown", "status_code": "unknown"}
        status_code = 0
        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            context = {"url": _request_url(error), "status_code": status_code}
        return MatchResult(
            code="REMOTE_HTTP_STATUS",
            context=context,
            # Server-side failures may go away on their own
            retryable=status_code >= 500,
        )


class HTTPErrorMatcher(ErrorMatcher):
    """Matches remaining httpx transport and protocol errors."""

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, httpx.HTTPError)

    def extract(self, error: BaseException) -> MatchResult:
        context: dict[str, Any] = {"url": "unknown", "detail": str(error) or type(error).__name__}
        if isinstance(error, httpx.HTTPError):
            context["url"] = _request_url(error)
        return MatchResult(code="REMOTE_FETCH_FAILED", context=context)


class FileNotFoundErrorMatcher(ErrorMatcher):
    """Matches missing files."""

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, FileNotFoundError)

    def extract(self, error: BaseException) -> MatchResult:
        context: dict[str, Any] = {"detail": str(error)}
        if isinstance(error, FileNotFoundError) and error.filename:
            context["source"] = str(error.filename)
        return MatchResult(code="TEMPLATE_NOT_FOUND", context=context, retryable=False)


class DecodeErrorMatcher(ErrorMatcher):
    """Matches template bodies that are not valid UTF-8."""

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, UnicodeDecodeError)

    def extract(self, error: BaseException) -> MatchResult:
        return MatchResult(code="TEMPLATE_DECODE", context={"detail": str(error)})


class OSErrorMatcher(ErrorMatcher):
    """Matches any other filesystem error."""

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, OSError)

    def extract(self, error: BaseException) -> MatchResult:
        context: dict[str, Any] = {"detail": str(error)}
        if isinstance(error, OSError):
            context["detail"] = error.strerror or str(error)
            if error.filename:
                context["source"] = str(error.filename)
        return MatchResult(code="TEMPLATE_IO", context=context)


class GenericErrorMatcher(ErrorMatcher):
    """Fallback matcher for any exception."""

    def matches(self, error: BaseException) -> bool:
        """Always matches.

        Args:
            error: Exception to check

        Returns:
            Always True (fallback matcher)
        """
        return True

    def extract(self, error: BaseException) -> MatchResult:
        """Extract generic error info.

        Args:
            error: Exception to extract from

        Returns:
            MatchResult with INTERNAL_ERROR code
        """
        return MatchResult(
            code="INTERNAL_ERROR",
            context={"detail": str(error), "error_type": type(error).__name__},
            retryable=False,
        )


class ErrorMatcherChain:
    """Ordered chain of matchers. First match wins."""

    def __init__(self) -> None:
        """Initialize matcher chain with built-in matchers."""
        self.matchers: list[ErrorMatcher] = []
        self._load_builtin_matchers()

    def match(self, error: BaseException) -> MatchResult:
        """Find first matching matcher and extract result.

        Args:
            error: Exception to match

        Returns:
            MatchResult from first matching matcher
        """
        for matcher in self.matchers:
            if matcher.matches(error):
                return matcher.extract(error)

        # Should never reach here due to GenericErrorMatcher
        return MatchResult(
            code="INTERNAL_ERROR",
            context={"detail": str(error), "error_type": type(error).__name__},
            retryable=False,
        )

    def add(self, matcher: ErrorMatcher) -> None:
        """Insert a matcher ahead of the built-in fallback.

        Args:
            matcher: Matcher to add
        """
        self.matchers.insert(len(self.matchers) - 1, matcher)

    def _load_builtin_matchers(self) -> None:
        """Load built-in matchers in priority order."""
        # Order matters - TimeoutError is an OSError and
        # HTTPStatusError is an HTTPError
        self.matchers = [
            TimeoutErrorMatcher(),
            HTTPStatusErrorMatcher(),
            HTTPErrorMatcher(),
            FileNotFoundErrorMatcher(),
            DecodeErrorMatcher(),
            OSErrorMatcher(),
            GenericErrorMatcher(),  # Fallback - must be last
        ]
