"""Template Engine for StaticWeave pages."""

from .context import Context
from .engine import DEFAULT_SITE_FILES, DEFAULT_TEMPLATE_URL, Engine
from .loaders import FileLoader, RemoteLoader, StringLoader, is_url
from .types import PageOptions, Placeholder, SourceKey, TemplateSource

__all__ = [
    "Engine",
    "Context",
    "PageOptions",
    "TemplateSource",
    "SourceKey",
    "Placeholder",
    "FileLoader",
    "RemoteLoader",
    "StringLoader",
    "is_url",
    "DEFAULT_TEMPLATE_URL",
    "DEFAULT_SITE_FILES",
]
