"""Property-based tests for dtl.

Uses hypothesis to check invariants over generated inputs:

- Plain text round-trips through tokenize and render unchanged
- Token spans tile the source
- Escaping is idempotent and undefined values are always safe to render
- Arbitrary input never escapes as anything but TemplateSyntaxError
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dtl import UNDEFINED, Environment, Markup, TemplateSyntaxError, TokenType, escape, tokenize

from .strategies import (
    arbitrary_template_source,
    dotted_path,
    html_text,
    plain_text,
    short_words,
    template_fragment,
)

_env = Environment()


class TestLexerProperties:
    """Tokenization invariants."""

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_plain_text_roundtrip(self, source: str) -> None:
        tokens = tokenize(source)
        if not source:
            assert tokens == []
            return
        assert len(tokens) == 1
        assert tokens[0].type is TokenType.TEXT
        assert tokens[0].value == source

    @given(source=template_fragment)
    @settings(max_examples=200)
    def test_spans_tile_source(self, source: str) -> None:
        tokens = tokenize(source)
        position = 0
        for token in tokens:
            assert token.start == position
            if token.type is not TokenType.TEXT:
                assert source[token.start : token.start + 2] in ("{{", "{#")
            position = token.end
        assert position == len(source)

    @given(source=arbitrary_template_source)
    @settings(max_examples=300)
    def test_lexer_only_raises_syntax_errors(self, source: str) -> None:
        try:
            tokenize(source)
        except TemplateSyntaxError:
            pass

    @given(source=arbitrary_template_source)
    @settings(max_examples=300)
    def test_compile_only_raises_syntax_errors(self, source: str) -> None:
        try:
            _env.from_string(source)
        except TemplateSyntaxError:
            pass


class TestRenderProperties:
    """Rendering invariants."""

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_plain_text_renders_unchanged(self, source: str) -> None:
        assert _env.from_string(source).render() == source

    @given(value=html_text)
    @settings(max_examples=200)
    def test_output_matches_escape(self, value: str) -> None:
        assert _env.from_string("{{ v }}").render(v=value) == str(escape(value))

    @given(value=html_text)
    @settings(max_examples=200)
    def test_escape_idempotent(self, value: str) -> None:
        once = _env.from_string("{{ v|escape }}").render(v=value)
        twice = _env.from_string("{{ v|escape|escape }}").render(v=value)
        assert once == twice

    @given(value=html_text)
    @settings(max_examples=100)
    def test_no_raw_angle_brackets_with_autoescape(self, value: str) -> None:
        output = _env.from_string("{{ v }}").render(v=value)
        assert "<" not in output
        assert ">" not in output

    @given(value=html_text)
    @settings(max_examples=100)
    def test_safe_value_is_untouched(self, value: str) -> None:
        assert _env.from_string("{{ v }}").render(v=Markup(value)) == value

    @given(path=dotted_path)
    @settings(max_examples=200)
    def test_undefined_paths_render_empty(self, path: str) -> None:
        assert _env.from_string("[{{ %s }}]" % path).render() == "[]"

    @given(path=dotted_path)
    @settings(max_examples=100)
    def test_undefined_paths_are_false(self, path: str) -> None:
        t = _env.from_string("{%% if %s %%}T{%% else %%}F{%% endif %%}" % path)
        assert t.render() == "F"

    @given(word=short_words, n=st.integers(min_value=0, max_value=40))
    @settings(max_examples=200)
    def test_truncate_is_prefix(self, word: str, n: int) -> None:
        result = _env.from_string("{{ w|truncate:n }}").render(w=word, n=n)
        assert result == word[:n]

    @given(word=short_words, n=st.integers(min_value=1, max_value=40))
    @settings(max_examples=200)
    def test_truncatechars_bound(self, word: str, n: int) -> None:
        result = _env.from_string("{{ w|truncatechars:n }}").render(w=word, n=n)
        assert len(result) <= n
        if len(word) <= n:
            assert result == word
        else:
            assert result.endswith("…")

    @given(items=st.lists(st.integers(min_value=-1000, max_value=1000), max_size=10))
    @settings(max_examples=200)
    def test_for_concatenates(self, items: list[int]) -> None:
        t = _env.from_string("{% for i in items %}{{ i }},{% empty %}none{% endfor %}")
        expected = "".join(f"{i}," for i in items) if items else "none"
        assert t.render(items=items) == expected

    @given(items=st.lists(st.integers(min_value=0, max_value=9), max_size=10))
    @settings(max_examples=100)
    def test_length_filter(self, items: list[int]) -> None:
        assert _env.from_string("{{ items|length }}").render(items=items) == str(len(items))


class TestExamples:
    """Concrete anchors for the properties above."""

    def test_chain(self):
        assert _env.from_string("{{ x|upper|truncate:3 }}").render(x="hello") == "HEL"

    def test_list_literal_loop(self):
        assert _env.from_string("{% for i in [1,2,3] %}{{ i }}{% endfor %}").render() == "123"

    def test_empty_branch(self):
        t = _env.from_string("{% for i in items %}{{ i }}{% empty %}none{% endfor %}")
        assert t.render(items=[]) == "none"

    def test_unclosed_if_line(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            _env.from_string("a\nb\n{% if x %}\nc")
        assert exc_info.value.lineno == 3

    def test_undefined_is_empty(self):
        assert str(UNDEFINED) == ""
