"""Template Engine type definitions."""

from dataclasses import dataclass, field, fields
from typing import Any

from staticweave.types import SourceKind

from .context import Context


@dataclass
class PageOptions:
    """Page metadata merged into the render context before substitution.

    Each set field is exposed to templates under its own name, e.g.
    ``{{title}}``. ``elements`` carries any other page-level values.
    Explicit context values always win over page options.
    """

    title: str | None = None
    description: str | None = None
    layout: str | None = None
    language: str | None = None
    author: str | None = None
    keywords: str | None = None
    elements: dict[str, str] = field(default_factory=dict)

    @classmethod
    def named_fields(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "elements")

    def set(self, key: str, value: Any) -> None:
        """Set a named field or a free-form element."""
        value = value if isinstance(value, str) else str(value)
        if key in self.named_fields():
            setattr(self, key, value)
        else:
            self.elements[key] = value

    def get(self, key: str) -> str | None:
        if key in self.named_fields():
            return getattr(self, key)
        return self.elements.get(key)

    def to_context(self) -> Context:
        """Context holding every set option (named fields over elements)."""
        context = Context(self.elements)
        for name in self.named_fields():
            value = getattr(self, name)
            if value is not None:
                context.set(name, value)
        return context


@dataclass(frozen=True)
class SourceKey:
    """Cache key for a raw template body: source kind plus location."""

    kind: SourceKind
    location: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.location}"


@dataclass(frozen=True)
class TemplateSource:
    """Where a named template was resolved to."""

    name: str  # Logical template name passed to render_page
    kind: SourceKind
    location: str  # URL, file path, or the template name for string sources

    @property
    def key(self) -> SourceKey:
        return SourceKey(kind=self.kind, location=self.location)


@dataclass(frozen=True)
class Placeholder:
    """A ``{{identifier}}`` token found in template text."""

    name: str
    start: int  # Offset of the open delimiter
    end: int  # Offset just past the close delimiter
