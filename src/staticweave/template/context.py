"""Render context: the key -> value mapping placeholders are filled from."""

import hashlib
from collections.abc import Iterable, Iterator, Mapping
from typing import Any


class Context:
    """String variables supplied by the caller for one render.

    Keys are unique and ``set`` is last-write-wins. Values that are not
    strings are stored as ``str(value)``.
    """

    def __init__(self, elements: Mapping[str, Any] | None = None) -> None:
        """Initialize context.

        Args:
            elements: Optional initial key/value pairs
        """
        self._elements: dict[str, str] = {}
        if elements:
            self.update(elements)

    @classmethod
    def default(cls) -> "Context":
        """Empty context."""
        return cls()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, Any]]) -> "Context":
        """Build a context from ``(key, value)`` pairs; later pairs win."""
        context = cls()
        context.update(pairs)
        return context

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite ``key``."""
        self._elements[key] = value if isinstance(value, str) else str(value)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Value for ``key``, or ``default`` if unset."""
        return self._elements.get(key, default)

    def remove(self, key: str) -> str | None:
        """Remove ``key`` and return its value, if it was set."""
        return self._elements.pop(key, None)

    def update(self, other: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> None:
        """Set every pair of ``other`` on this context (``other`` wins)."""
        pairs = other.items() if isinstance(other, Mapping) else other
        for key, value in pairs:
            self.set(key, value)

    def merge(self, other: "Context | Mapping[str, Any]") -> "Context":
        """Return a new context combining this one with ``other``.

        ``other`` is the caller-supplied side: its values win on conflict.
        Neither input is modified.
        """
        merged = self.copy()
        merged.update(other.items() if isinstance(other, Context) else other)
        return merged

    def copy(self) -> "Context":
        clone = Context()
        clone._elements = dict(self._elements)
        return clone

    def clear(self) -> None:
        self._elements.clear()

    def items(self) -> list[tuple[str, str]]:
        return list(self._elements.items())

    def as_dict(self) -> dict[str, str]:
        return dict(self._elements)

    def fingerprint(self) -> str:
        """Stable digest of the contents, independent of insertion order."""
        digest = hashlib.sha256()
        for key, value in sorted(self._elements.items()):
            digest.update(key.encode("utf-8"))
            digest.update(b"\x00")
            digest.update(value.encode("utf-8"))
            digest.update(b"\x01")
        return digest.hexdigest()

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[str]:
        return iter(self._elements)

    def __contains__(self, key: object) -> bool:
        return key in self._elements

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Context):
            return NotImplemented
        return self._elements == other._elements

    def __repr__(self) -> str:
        return f"Context({self._elements!r})"
