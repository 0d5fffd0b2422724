"""Tests for placeholder scanning and syntax validation."""

import pytest

from staticweave.template.parser import (
    extract_references,
    has_placeholders,
    scan,
    validate_syntax,
)
from staticweave.template.types import Placeholder


class TestScan:
    """Test scan."""

    def test_finds_placeholders_with_offsets(self) -> None:
        assert scan("Hi {{name}}!") == [Placeholder(name="name", start=3, end=11)]

    def test_whitespace_inside_delimiters_is_literal(self) -> None:
        assert scan("{{ title }} {{\theading\n}}") == []

    def test_trim_whitespace(self) -> None:
        placeholders = scan("{{ title }} {{\theading\n}}", trim_whitespace=True)
        assert [p.name for p in placeholders] == ["title", "heading"]

    def test_plain_text(self) -> None:
        assert scan("no tags here") == []

    def test_invalid_identifiers_are_literal(self) -> None:
        assert scan("{{1abc}} {{a-b}} {{ }}") == []

    def test_triple_braces(self) -> None:
        assert scan("{{{name}}}") == [Placeholder(name="name", start=1, end=9)]

    def test_nested_open_keeps_inner_placeholder(self) -> None:
        assert [p.name for p in scan("{{a {{b}}")] == ["b"]

    def test_unclosed_stops_scan(self) -> None:
        assert [p.name for p in scan("{{x}} {{y")] == ["x"]

    def test_single_braces_are_literal(self) -> None:
        assert scan("body { color: red; } function() { return {a: 1}; }") == []

    def test_custom_delimiters(self) -> None:
        assert [p.name for p in scan("<%a%> {{b}}", "<%", "%>")] == ["a"]

    def test_empty_delimiters_rejected(self) -> None:
        with pytest.raises(ValueError):
            scan("x", "", "}}")

    def test_long_run_of_open_delimiters(self) -> None:
        text = "{{" * 5000 + "name}}"
        assert [p.name for p in scan(text)] == ["name"]


class TestExtractReferences:
    """Test extract_references."""

    def test_first_occurrence_order_without_duplicates(self) -> None:
        assert extract_references("{{title}} - {{site}} | {{title}}") == ["title", "site"]

    def test_trim_whitespace_merges_padded_references(self) -> None:
        text = "{{title}} | {{ title }}"
        assert extract_references(text) == ["title"]
        assert extract_references(text, trim_whitespace=True) == ["title"]
        assert not has_placeholders("{{ title }}")
        assert has_placeholders("{{ title }}", trim_whitespace=True)

    def test_has_placeholders(self) -> None:
        assert has_placeholders("x {{y}}")
        assert not has_placeholders("x {{ }}")


class TestValidateSyntax:
    """Test validate_syntax."""

    def test_valid(self) -> None:
        assert validate_syntax("<h1>{{title}}</h1>") == []

    def test_unclosed(self) -> None:
        assert validate_syntax("ab{{name") == ["Unclosed template tag at offset 2"]

    def test_nested(self) -> None:
        assert validate_syntax("{{a {{b}}") == ["Nested delimiters are not allowed at offset 0"]

    def test_invalid_name(self) -> None:
        assert validate_syntax("{{1abc}}") == ["Invalid placeholder name '1abc' at offset 0"]

    def test_padded_name(self) -> None:
        assert validate_syntax("{{ title }}") == [
            "Whitespace around placeholder name 'title' at offset 0"
        ]
        assert validate_syntax("{{ title }}", trim_whitespace=True) == []

    def test_empty(self) -> None:
        assert validate_syntax("x{{  }}") == ["Empty placeholder at offset 1"]

    def test_multiple_errors(self) -> None:
        errors = validate_syntax("{{ }} {{ok}} {{9}} {{open")
        assert errors == [
            "Empty placeholder at offset 0",
            "Invalid placeholder name '9' at offset 13",
            "Unclosed template tag at offset 19",
        ]

    def test_stray_close_is_fine(self) -> None:
        assert validate_syntax("a }} b") == []
