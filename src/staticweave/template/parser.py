"""Template parsing utilities.

Placeholders are found with a single forward scan: an open delimiter
immediately followed by an identifier and a close delimiter. With
``trim_whitespace`` the identifier may be padded (``{{ name }}``). Anything
that does not form a valid placeholder is literal text.
"""

import re
from collections.abc import Iterator

from .types import Placeholder

DEFAULT_OPEN_DELIM = "{{"
DEFAULT_CLOSE_DELIM = "}}"

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _tokens(
    text: str,
    open_delim: str,
    close_delim: str,
    trim_whitespace: bool = False,
) -> Iterator[tuple[str, int, str]]:
    """Yield ``(kind, offset, payload)`` events for one pass over ``text``.

    Kinds: "placeholder" (payload is the identifier, offset the open
    delimiter), "end" (offset just past a placeholder's close delimiter),
    "invalid", "nested" and "unclosed".
    """
    if not open_delim or not close_delim:
        raise ValueError("Delimiters must not be empty")

    pos = 0
    end = -1
    while True:
        start = text.find(open_delim, pos)
        if start < 0:
            return
        inner_start = start + len(open_delim)
        # Reuse the close found for an earlier literal open so runs of
        # open delimiters stay linear
        if end < inner_start:
            end = text.find(close_delim, inner_start)
        if end < 0:
            yield ("unclosed", start, "")
            return

        # Another open delimiter before the close: the earlier one is literal
        next_open = text.find(open_delim, start + 1, end)
        if next_open >= 0:
            if next_open >= inner_start:
                yield ("nested", start, "")
            pos = next_open
            continue

        raw = text[inner_start:end]
        name = raw.strip() if trim_whitespace else raw
        if IDENTIFIER_PATTERN.fullmatch(name):
            yield ("placeholder", start, name)
            yield ("end", end + len(close_delim), name)
        else:
            yield ("invalid", start, raw)
        pos = end + len(close_delim)


def scan(
    text: str,
    open_delim: str = DEFAULT_OPEN_DELIM,
    close_delim: str = DEFAULT_CLOSE_DELIM,
    *,
    trim_whitespace: bool = False,
) -> list[Placeholder]:
    """Find every valid placeholder in ``text``, in order.

    Args:
        text: Template text
        open_delim: Opening delimiter
        close_delim: Closing delimiter
        trim_whitespace: Accept whitespace around the identifier

    Returns:
        Placeholders with their offsets
    """
    placeholders: list[Placeholder] = []
    start = 0
    for kind, offset, payload in _tokens(text, open_delim, close_delim, trim_whitespace):
        if kind == "placeholder":
            start = offset
        elif kind == "end":
            placeholders.append(Placeholder(name=payload, start=start, end=offset))
    return placeholders


def has_placeholders(
    text: str,
    open_delim: str = DEFAULT_OPEN_DELIM,
    close_delim: str = DEFAULT_CLOSE_DELIM,
    *,
    trim_whitespace: bool = False,
) -> bool:
    """Check if text contains any valid placeholder."""
    tokens = _tokens(text, open_delim, close_delim, trim_whitespace)
    return any(kind == "placeholder" for kind, _, _ in tokens)


def extract_references(
    text: str,
    open_delim: str = DEFAULT_OPEN_DELIM,
    close_delim: str = DEFAULT_CLOSE_DELIM,
    *,
    trim_whitespace: bool = False,
) -> list[str]:
    """Identifiers referenced by ``text``, first occurrence order, no duplicates.

    E.g., "{{title}} - {{site}} | {{title}}" -> ["title", "site"]
    """
    seen: dict[str, None] = {}
    for placeholder in scan(text, open_delim, close_delim, trim_whitespace=trim_whitespace):
        seen.setdefault(placeholder.name, None)
    return list(seen)


def validate_syntax(
    text: str,
    open_delim: str = DEFAULT_OPEN_DELIM,
    close_delim: str = DEFAULT_CLOSE_DELIM,
    *,
    trim_whitespace: bool = False,
) -> list[str]:
    """Validate template syntax without rendering.

    Does NOT check that variables exist.

    Args:
        text: Text to validate
        open_delim: Opening delimiter
        close_delim: Closing delimiter
        trim_whitespace: Accept whitespace around the identifier

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []
    for kind, offset, payload in _tokens(text, open_delim, close_delim, trim_whitespace):
        if kind == "unclosed":
            errors.append(f"Unclosed template tag at offset {offset}")
        elif kind == "nested":
            errors.append(f"Nested delimiters are not allowed at offset {offset}")
        elif kind == "invalid":
            name = payload.strip()
            if not name:
                errors.append(f"Empty placeholder at offset {offset}")
            elif IDENTIFIER_PATTERN.fullmatch(name):
                errors.append(f"Whitespace around placeholder name '{name}' at offset {offset}")
            else:
                errors.append(f"Invalid placeholder name '{name}' at offset {offset}")
    return errors
