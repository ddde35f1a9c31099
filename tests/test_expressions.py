"""Tests for variable expressions: literals, paths and filter chains."""

import pytest

from dtl import ErrorCode, Markup, TemplateSyntaxError
from dtl.nodes import Const, FilterExpr, Name, Translated


def expr_of(env, source):
    node = env.from_string(source).nodes[0]
    assert isinstance(node.expr, FilterExpr)
    return node.expr


class TestLiterals:
    """Literal operands."""

    def test_string_literal_is_safe(self, env):
        expr = expr_of(env, "{{ '<b>' }}")
        assert isinstance(expr.base, Const)
        assert isinstance(expr.base.value, Markup)
        assert env.from_string("{{ '<b>' }}").render() == "<b>"

    def test_double_quoted(self, env):
        assert env.from_string('{{ "hi there" }}').render() == "hi there"

    def test_escaped_quote(self, env):
        assert env.from_string(r"{{ 'it\'s' }}").render() == "it's"

    @pytest.mark.parametrize(
        ("text", "value"),
        [("42", 42), ("-3", -3), ("+7", 7), ("3.5", 3.5), (".5", 0.5), ("1e3", 1000.0)],
    )
    def test_numbers(self, env, text, value):
        expr = expr_of(env, "{{ %s }}" % text)
        assert expr.base.value == value
        assert type(expr.base.value) is type(value)

    def test_number_renders(self, env):
        assert env.from_string("{{ 3.5 }}|{{ -2 }}").render() == "3.5|-2"

    def test_translated(self, env):
        expr = expr_of(env, '{{ _("Hello") }}')
        assert isinstance(expr.base, Translated)
        assert expr.base.message == "Hello"

    def test_builtin_names(self, env):
        assert env.from_string("{{ True }} {{ False }} {{ None }}").render() == "True False None"


class TestPaths:
    """Dotted variable paths."""

    def test_name_lookups(self, env):
        expr = expr_of(env, "{{ user.orders.0.total }}")
        assert isinstance(expr.base, Name)
        assert expr.base.lookups == ("user", "orders", "0", "total")
        assert expr.base.text == "user.orders.0.total"

    def test_underscore_rejected(self, env):
        with pytest.raises(TemplateSyntaxError, match="may not begin with underscores"):
            env.from_string("{{ user._secret }}")

    def test_leading_underscore_rejected(self, env):
        with pytest.raises(TemplateSyntaxError, match="may not begin with underscores"):
            env.from_string("{{ _private }}")

    def test_empty_segment(self, env):
        with pytest.raises(TemplateSyntaxError, match="Invalid variable path: 'a..b'"):
            env.from_string("{{ a..b }}")

    def test_remainder(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("{{ a-b }}")
        assert exc_info.value.message == "Could not parse the remainder: '-b' from 'a-b'"
        assert exc_info.value.code is ErrorCode.INVALID_EXPRESSION


class TestFilterChains:
    """Filter expressions."""

    def test_chain_order(self, env):
        expr = expr_of(env, "{{ name|lower|capfirst }}")
        assert [f.name for f in expr.filters] == ["lower", "capfirst"]
        assert env.from_string("{{ name|lower|capfirst }}").render(name="ADA") == "Ada"

    def test_spaces_around_pipes(self, env):
        assert env.from_string("{{ name | upper }}").render(name="ada") == "ADA"

    def test_literal_argument(self, env):
        expr = expr_of(env, "{{ x|default:'none' }}")
        assert expr.filters[0].arg.value == "none"

    def test_variable_argument(self, env):
        assert env.from_string("{{ x|default:fallback }}").render(fallback="fb") == "fb"

    def test_pipe_inside_quotes(self, env):
        assert env.from_string("{{ 'a|b' }}").render() == "a|b"

    def test_colon_inside_quoted_argument(self, env):
        assert env.from_string("{{ x|default:'a:b' }}").render() == "a:b"

    def test_translated_argument(self, env_noescape):
        env_noescape.gettext = lambda s: s.upper()
        assert env_noescape.from_string("{{ x|default:_('none') }}").render() == "NONE"

    def test_filter_on_literal(self, env):
        assert env.from_string("{{ 'abc'|upper }}").render() == "ABC"


class TestExpressionErrors:
    """Malformed expressions."""

    @pytest.mark.parametrize(
        ("source", "message"),
        [
            ("{{ }}", "Empty variable tag on line 1"),
            ("{{ x|upper:1 }}", "upper requires 1 arguments, 2 provided"),
            ("{{ x|cut }}", "cut requires 2 arguments, 1 provided"),
            ("{{ x|default: }}", "Expected an argument after 'default:' in 'x|default:'"),
            ("{{ x|upper! }}", "Could not parse the remainder: '|upper!' from 'x|upper!'"),
            ("{{ 'abc' x }}", "Could not parse the remainder: ' x' from ''abc' x'"),
            ("{{ 'abc }}", "Expected a complete string literal: 'abc"),
            ("{{ 1. }}", "Invalid numeric literal: '1.'"),
            ("{{ 9.9.9 }}", "Invalid numeric literal: '9.9.9'"),
            ("{{ foo|default:9.9.9 }}", "Invalid numeric literal: '9.9.9'"),
            ("{{ 1abc }}", "Invalid numeric literal: '1abc'"),
            ("{{ _(x) }}", "Expected a string literal within translation: _(x)"),
            ("{{ _('x' }}", "Expected a complete translation string: _('x'"),
            ("{{ x| }}", "Could not parse the remainder: '|' from 'x|'"),
        ],
    )
    def test_message(self, env, source, message):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string(source)
        assert exc_info.value.message == message
