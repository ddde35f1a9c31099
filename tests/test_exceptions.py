"""Tests for error types, codes and formatting."""

import pytest

from dtl import (
    DepthExceededError,
    ErrorCode,
    RegistryError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)


class TestHierarchy:
    """Exception classes."""

    @pytest.mark.parametrize(
        "cls",
        [TemplateNotFoundError, TemplateSyntaxError, TemplateRuntimeError, RegistryError],
    )
    def test_template_errors(self, cls):
        assert issubclass(cls, TemplateError)

    def test_depth_is_runtime(self):
        assert issubclass(DepthExceededError, TemplateRuntimeError)

    def test_codes(self):
        assert TemplateNotFoundError("x").code is ErrorCode.TEMPLATE_NOT_FOUND
        assert DepthExceededError(3, "a.html").code is ErrorCode.DEPTH_EXCEEDED

    @pytest.mark.parametrize(
        ("code", "category"),
        [
            (ErrorCode.UNCLOSED_TAG, "lexer"),
            (ErrorCode.INVALID_FILTER, "parser"),
            (ErrorCode.DEPTH_EXCEEDED, "runtime"),
            (ErrorCode.TEMPLATE_NOT_FOUND, "template"),
            (ErrorCode.REGISTRY_FROZEN, "registry"),
        ],
    )
    def test_category(self, code, category):
        assert code.category == category


class TestSyntaxErrorFormatting:
    """Location and source snippets."""

    SOURCE = "line one\nline two\n{% if user %}\nline four\nline five\nline six"

    def test_message_and_location(self):
        err = TemplateSyntaxError("Bad thing", lineno=3, name="page.html", source=self.SOURCE, col_offset=0)
        text = str(err)
        assert text.startswith("Syntax Error: Bad thing\n  --> page.html:3:0")
        assert ">  3 | {% if user %}" in text
        assert "line one" in text
        assert "line six" not in text

    def test_filename_preferred(self):
        err = TemplateSyntaxError("x", lineno=1, name="page.html", filename="/t/page.html")
        assert err.location == "/t/page.html:1"

    def test_no_source(self):
        err = TemplateSyntaxError("x")
        assert err.snippet is None
        assert str(err) == "Syntax Error: x\n  --> <template>"

    def test_format_compact(self):
        err = TemplateSyntaxError(
            "Bad", lineno=3, name="p", source=self.SOURCE, code=ErrorCode.UNCLOSED_BLOCK
        )
        assert err.format_compact() == "D-PAR-001: Bad\n  --> p:3\n  {% if user %}"

    def test_from_parser(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("ok\n{{ x|nope }}", name="page.html")
        err = exc_info.value
        assert err.snippet is not None
        assert err.snippet.text == "{{ x|nope }}"
        assert "page.html:2:0" in str(err)


class TestSourceSnippet:
    """build_source_snippet."""

    def test_window(self):
        source = "\n".join(f"l{i}" for i in range(1, 11))
        snippet = build_source_snippet(source, 5, context_lines=1)
        assert snippet.lines == ((4, "l4"), (5, "l5"), (6, "l6"))
        assert snippet.text == "l5"

    def test_edges(self):
        snippet = build_source_snippet("a\nb", 1)
        assert [n for n, _ in snippet.lines] == [1, 2]

    def test_caret(self):
        snippet = build_source_snippet("abc {{ x", 1, column=4)
        assert "     |     ^" in snippet.format()


class TestRuntimeErrorFormatting:
    """TemplateRuntimeError details."""

    def test_full_message(self):
        err = TemplateRuntimeError(
            "Something broke",
            template_name="page.html",
            lineno=4,
            suggestion="Fix it",
            template_stack=[("base.html", 2)],
        )
        text = str(err)
        assert "Runtime Error: Something broke" in text
        assert "Location: page.html:4" in text
        assert "• base.html:2" in text
        assert "Suggestion: Fix it" in text

    def test_depth_exceeded(self):
        err = DepthExceededError(50, "loop.html", template_name="page.html")
        assert err.max_depth == 50
        assert err.target == "loop.html"
        assert "Maximum include/extends depth exceeded (50) when loading 'loop.html'" in str(err)

    def test_format_compact_prefixes_code(self):
        err = TemplateNotFoundError("Template 'x' not found", name="x")
        assert err.format_compact() == "D-TPL-001: Template 'x' not found"

    def test_registry_error_code(self):
        assert RegistryError("x").code is ErrorCode.DUPLICATE_NAME
        assert RegistryError("x", code=ErrorCode.REGISTRY_FROZEN).code is ErrorCode.REGISTRY_FROZEN
