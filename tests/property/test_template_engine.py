"""Property-based tests for the template engine.

Tests substitution, fail-open rendering, context precedence and cache expiry.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from staticweave.cache import Cache
from staticweave.errors import TemplateError
from staticweave.template import Context, Engine, PageOptions
from staticweave.template.parser import IDENTIFIER_PATTERN, extract_references, validate_syntax
from staticweave.types import MissingPolicy
from tests.mocks import FakeClock

identifiers = st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,15}", fullmatch=True)
literals = st.text(alphabet=st.characters(exclude_characters="{}"), max_size=30)


def make_engine(**kwargs) -> Engine:
    """Engine that never touches the filesystem."""
    return Engine("/nonexistent-template-root", **kwargs)


@pytest.mark.property
class TestSubstitution:
    """Property tests for placeholder substitution."""

    @given(
        segments=st.lists(st.tuples(literals, identifiers), max_size=8),
        tail=literals,
        values=st.dictionaries(identifiers, st.text(max_size=30), max_size=8),
        padded=st.booleans(),
    )
    @settings(max_examples=200)
    def test_every_placeholder_is_replaced_by_its_value(self, segments, tail, values, padded):
        """Known keys are substituted, unknown keys are left verbatim."""
        engine = make_engine(trim_whitespace=padded)
        template_parts: list[str] = []
        expected_parts: list[str] = []
        for literal, key in segments:
            tag = f"{{{{ {key} }}}}" if padded else f"{{{{{key}}}}}"
            template_parts.append(literal + tag)
            expected_parts.append(literal + values.get(key, tag))
        template = "".join(template_parts) + tail
        expected = "".join(expected_parts) + tail

        assert engine.render_template(template, values) == expected

    @given(st.text(max_size=300))
    @settings(max_examples=200)
    def test_empty_context_renders_text_unchanged(self, text):
        """With the keep policy any text renders to itself without a context."""
        assert make_engine().render_template(text, {}) == text

    @given(
        text=st.text(alphabet=st.characters(exclude_characters="{"), max_size=200),
        values=st.dictionaries(identifiers, st.text(max_size=10), max_size=5),
    )
    @settings(max_examples=100)
    def test_text_without_open_delimiter_is_unchanged(self, text, values):
        assert make_engine(missing=MissingPolicy.EMPTY).render_template(text, values) == text

    @given(value=st.text(max_size=50))
    @settings(max_examples=100)
    def test_values_are_never_rescanned(self, value):
        """User-provided values are inserted literally, never as template code."""
        engine = make_engine(missing=MissingPolicy.EMPTY)
        result = engine.render_template("[{{user}}]", {"user": value, "secret": "S"})
        assert result == f"[{value}]"


@pytest.mark.property
class TestRenderPage:
    """Property tests for render_page."""

    @given(
        option_title=st.text(max_size=20),
        context_title=st.text(max_size=20),
        description=st.text(max_size=20),
    )
    @settings(max_examples=100)
    def test_context_wins_over_page_options(self, option_title, context_title, description):
        engine = make_engine()
        engine.register_template("page", "{{title}}|{{description}}")
        options = PageOptions(title=option_title, description=description)

        result = engine.render_page(Context({"title": context_title}), "page", options)

        assert result == f"{context_title}|{description}"

    @given(
        body=st.text(max_size=200),
        values=st.dictionaries(identifiers, st.text(max_size=10), max_size=5),
    )
    @settings(max_examples=100)
    def test_render_is_idempotent(self, body, values):
        engine = make_engine()
        engine.register_template("page", body)
        assert engine.render_page(values, "page") == engine.render_page(values, "page")

    @given(st.text(max_size=200))
    @settings(max_examples=100)
    def test_strict_mode_raises_only_template_errors(self, text):
        """Strict rendering either succeeds or raises TemplateError."""
        engine = make_engine(missing=MissingPolicy.ERROR)
        engine.register_template("page", text)
        try:
            engine.render_page({}, "page")
        except TemplateError:
            pass


@pytest.mark.property
class TestParser:
    """Property tests for scanning and validation."""

    @given(st.text(max_size=300))
    @settings(max_examples=200)
    def test_references_are_identifiers_found_in_text(self, text):
        for name in extract_references(text):
            assert IDENTIFIER_PATTERN.fullmatch(name)
            assert name in text

    @given(st.text(max_size=300))
    @settings(max_examples=200)
    def test_validate_never_raises(self, text):
        assert isinstance(validate_syntax(text), list)


@pytest.mark.property
class TestCacheExpiry:
    """Property tests for TTL expiry."""

    @given(
        items=st.dictionaries(st.text(max_size=10), st.integers(), max_size=20),
        ttl=st.floats(min_value=0.001, max_value=1000),
        elapsed_fraction=st.floats(min_value=0, max_value=0.99),
    )
    @settings(max_examples=100)
    def test_entries_live_until_ttl(self, items, ttl, elapsed_fraction):
        clock = FakeClock(start=0.0)
        cache = Cache.from_items(items.items(), ttl=ttl, clock=clock)

        clock.advance(ttl * elapsed_fraction)
        assert all(cache.get(k) == v for k, v in items.items())

        clock.advance(ttl * 2)
        assert all(cache.get(k) is None for k in items)
        assert len(cache) == 0
