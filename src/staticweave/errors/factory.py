"""Error factory for creating TemplateErrors from any exception type."""

from typing import Any

from .errors import TemplateError
from .matchers import ErrorMatcherChain
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates TemplateErrors from any exception type."""

    def __init__(
        self,
        registry: ErrorRegistry | None = None,
        matcher_chain: ErrorMatcherChain | None = None,
    ):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
            matcher_chain: Matcher chain (defaults to new ErrorMatcherChain())
        """
        self.registry = registry or ErrorRegistry()
        self.matcher_chain = matcher_chain or ErrorMatcherChain()
        self._max_cause_depth = 3

    def from_exception(
        self,
        error: BaseException,
        template_name: str | None = None,
        source: str | None = None,
        **context: Any,
    ) -> TemplateError:
        """Convert any exception to TemplateError.

        Args:
            error: Exception to convert
            template_name: Optional template name
            source: Optional resolved path or URL
            **context: Extra interpolation values (e.g. timeout_seconds)

        Returns:
            TemplateError instance
        """
        # If already a TemplateError, just add context
        if isinstance(error, TemplateError):
            return error.with_context(template_name=template_name, source=source)

        match_result = self.matcher_chain.match(error)

        # Caller context fills gaps, matcher context is more specific
        merged = {k: v for k, v in context.items() if v is not None}
        for key, value in match_result.context.items():
            if value != "unknown" or key not in merged:
                merged[key] = value
        if template_name:
            merged["template_name"] = template_name
        if source and "source" not in merged:
            merged["source"] = source

        template_error = self.registry.create(
            code=match_result.code,
            context=merged,
            origin=error,
        )

        if match_result.retryable is not None:
            template_error.retryable = match_result.retryable

        return template_error

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> TemplateError:
        """Create TemplateError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            **kwargs: Additional context variables

        Returns:
            TemplateError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context)

    def wrap(
        self,
        error: TemplateError,
        template_name: str | None = None,
        detail: str | None = None,
    ) -> TemplateError:
        """Wrap an error as an ENGINE error that keeps it as its cause.

        Chains deeper than the max cause depth get context added instead
        of another layer.

        Args:
            error: Error to wrap
            template_name: Template being rendered
            detail: Extra explanation for the outer error

        Returns:
            TemplateError with category ENGINE
        """
        if error.cause_depth + 1 >= self._max_cause_depth:
            return error.with_context(template_name=template_name)

        name = template_name or error.template_name
        return self.registry.create(
            code="ENGINE_ERROR",
            context={
                "template_name": name,
                "source": error.source,
                "detail": detail or str(error),
            },
            cause=error,
            origin=error.origin,
        )


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton.

    Returns:
        Default ErrorFactory instance
    """
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> TemplateError:
    """Convenience function to create error.

    Args:
        code: Error code
        **context: Context variables for template interpolation

    Returns:
        TemplateError instance
    """
    return get_error_factory().create(code, context)
