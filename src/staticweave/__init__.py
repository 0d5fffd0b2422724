"""StaticWeave - a small, thread-safe page templating engine.

Renders named templates from remote URLs, a template directory, or
registered strings, substituting ``{{placeholder}}`` tags from a context.
"""

from staticweave.application import WeaverApplication
from staticweave.cache import Cache
from staticweave.errors import ErrorCategory, TemplateError
from staticweave.template import Context, Engine, PageOptions
from staticweave.types import MissingPolicy

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "WeaverApplication",
    "Engine",
    "Context",
    "PageOptions",
    "Cache",
    "TemplateError",
    "ErrorCategory",
    "MissingPolicy",
]
