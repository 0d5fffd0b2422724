"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, TemplateError


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def register(self, template: ErrorTemplate) -> None:
        """Add or replace an error template.

        Args:
            template: Template to register under its code
        """
        self._templates[template.code] = template

    def list_codes(self) -> list[str]:
        """List all registered error codes.

        Returns:
            List of error codes
        """
        return list(self._templates.keys())

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: TemplateError | None = None,
        origin: BaseException | None = None,
    ) -> TemplateError:
        """Create error instance from template + context.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional wrapped TemplateError
            origin: Optional raw exception that triggered the error

        Returns:
            TemplateError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = self._interpolate(template.detail_template, context, missing_ok=True)
        suggestion = self._interpolate(template.suggestion_template, context, missing_ok=True)

        if message is None:
            message = f"Error {code}"

        return TemplateError(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            retryable=template.default_retryable,
            template_name=context.get("template_name"),
            source=context.get("source"),
            cause=cause,
            origin=origin,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
        missing_ok: bool = False,
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables
            missing_ok: Return None instead of the raw template when a
                variable is missing

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except (KeyError, IndexError):
            # Missing context variable
            return None if missing_ok else template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # NOT_FOUND Errors
        self._templates["TEMPLATE_NOT_FOUND"] = ErrorTemplate(
            code="TEMPLATE_NOT_FOUND",
            category=ErrorCategory.NOT_FOUND,
            message_template="Template '{template_name}' not found",
            detail_template="{detail}",
            suggestion_template="Check the template name, base path and file extension",
        )

        # IO Errors
        self._templates["TEMPLATE_IO"] = ErrorTemplate(
            code="TEMPLATE_IO",
            category=ErrorCategory.IO,
            message_template="Failed to read template '{template_name}'",
            detail_template="{detail}",
            suggestion_template="Check that the file is readable",
            default_retryable=True,
        )

        self._templates["TEMPLATE_DECODE"] = ErrorTemplate(
            code="TEMPLATE_DECODE",
            category=ErrorCategory.IO,
            message_template="Template '{template_name}' is not valid UTF-8",
            detail_template="{detail}",
            suggestion_template="Save the template with UTF-8 encoding",
        )

        # REMOTE Errors
        self._templates["REMOTE_FETCH_FAILED"] = ErrorTemplate(
            code="REMOTE_FETCH_FAILED",
            category=ErrorCategory.REMOTE,
            message_template="Failed to fetch template from {url}",
            detail_template="{detail}",
            suggestion_template="Check network connectivity and the template URL",
            default_retryable=True,
        )

        self._templates["REMOTE_HTTP_STATUS"] = ErrorTemplate(
            code="REMOTE_HTTP_STATUS",
            category=ErrorCategory.REMOTE,
            message_template="Remote template {url} returned HTTP {status_code}",
            detail_template="The server did not answer with a success status",
            suggestion_template="Check that the URL points to an existing template",
        )

        self._templates["REMOTE_TIMEOUT"] = ErrorTemplate(
            code="REMOTE_TIMEOUT",
            category=ErrorCategory.REMOTE,
            message_template="Fetching {url} timed out after {timeout_seconds}s",
            detail_template="The remote server did not respond within the configured timeout",
            suggestion_template="Increase remote.timeout or check the remote server",
            default_retryable=True,
        )

        # RENDER Errors
        self._templates["TEMPLATE_INVALID"] = ErrorTemplate(
            code="TEMPLATE_INVALID",
            category=ErrorCategory.RENDER,
            message_template="Invalid template syntax",
            detail_template="{detail}",
            suggestion_template="Placeholders look like {{{{name}}}} with name matching [A-Za-z_][A-Za-z0-9_]*",
        )

        self._templates["TEMPLATE_MISSING_VARIABLE"] = ErrorTemplate(
            code="TEMPLATE_MISSING_VARIABLE",
            category=ErrorCategory.RENDER,
            message_template="Unresolved template tag: {variable}",
            detail_template="The context has no value for '{variable}'",
            suggestion_template="Set the variable in the context or use the 'keep' missing policy",
        )

        self._templates["RENDER_FAILED"] = ErrorTemplate(
            code="RENDER_FAILED",
            category=ErrorCategory.RENDER,
            message_template="Template rendering failed",
            detail_template="{detail}",
        )

        # CACHE Errors
        self._templates["CACHE_INCONSISTENT"] = ErrorTemplate(
            code="CACHE_INCONSISTENT",
            category=ErrorCategory.CACHE,
            message_template="Template cache is inconsistent",
            detail_template="{detail}",
            suggestion_template="Clear the cache and retry",
            default_retryable=True,
        )

        # ENGINE Errors
        self._templates["ENGINE_ERROR"] = ErrorTemplate(
            code="ENGINE_ERROR",
            category=ErrorCategory.ENGINE,
            message_template="Rendering '{template_name}' failed",
            detail_template="{detail}",
        )

        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.ENGINE,
            message_template="Internal error",
            detail_template="{error_type}: {detail}",
            suggestion_template="This is likely a bug. Please report it",
        )

        # CONFIG Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Configuration is invalid",
            detail_template="{detail}",
            suggestion_template="Check the configuration file",
        )
