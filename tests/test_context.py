"""Tests for Context scoping and the per-render RenderContext."""

import pytest

from dtl import (
    Context,
    ContextPopError,
    DepthExceededError,
    RenderContext,
    TemplateError,
    get_render_context,
    get_render_context_required,
    render_context,
)


class TestContext:
    """Scope stack behavior."""

    def test_lookup(self):
        ctx = Context({"a": 1})
        assert ctx["a"] == 1
        assert ctx.get("b", "d") == "d"
        with pytest.raises(KeyError):
            ctx["b"]

    def test_builtins(self):
        ctx = Context()
        assert ctx["True"] is True
        assert ctx["False"] is False
        assert ctx["None"] is None

    def test_values_shadow_builtins(self):
        assert Context({"None": "x"})["None"] == "x"

    def test_push_shadows_and_pop_restores(self):
        ctx = Context({"user": "ada"})
        ctx.push(user="grace")
        assert ctx["user"] == "grace"
        assert ctx.depth == 1
        assert ctx.pop() == {"user": "grace"}
        assert ctx["user"] == "ada"
        assert ctx.depth == 0

    def test_push_as_context_manager(self):
        ctx = Context({"a": 1})
        with ctx.push({"a": 2}, b=3) as scope:
            assert scope == {"a": 2, "b": 3}
            assert ctx["a"] == 2
        assert ctx["a"] == 1
        assert "b" not in ctx

    def test_context_manager_pops_on_error(self):
        ctx = Context()
        with pytest.raises(RuntimeError):
            with ctx.push(a=1):
                raise RuntimeError("boom")
        assert ctx.depth == 0

    def test_assignment_goes_innermost(self):
        ctx = Context({"a": 1})
        with ctx.push():
            ctx["a"] = 2
            assert ctx["a"] == 2
        assert ctx["a"] == 1

    def test_set_upward(self):
        ctx = Context({"a": 1})
        with ctx.push():
            ctx.set_upward("a", 2)
            ctx.set_upward("b", 3)
            assert ctx["b"] == 3
        assert ctx["a"] == 2
        assert "b" not in ctx

    def test_pop_initial_frames(self):
        ctx = Context({"a": 1})
        with pytest.raises(ContextPopError):
            ctx.pop()
        assert ctx["a"] == 1

    def test_pop_error_is_not_template_error(self):
        assert not issubclass(ContextPopError, TemplateError)

    def test_unbalanced_pop(self):
        ctx = Context()
        ctx.push()
        ctx.pop()
        with pytest.raises(ContextPopError):
            ctx.pop()

    def test_autoescape_is_scoped(self):
        ctx = Context(autoescape=True)
        with ctx.push(autoescape=False):
            assert ctx.autoescape is False
            with ctx.push():
                assert ctx.autoescape is False
        assert ctx.autoescape is True

    def test_flatten(self):
        ctx = Context({"a": 1, "b": 1})
        with ctx.push(b=2):
            flat = ctx.flatten()
        assert flat["a"] == 1
        assert flat["b"] == 2
        assert flat["True"] is True
        assert "a" in list(ctx)

    def test_new(self):
        ctx = Context({"a": 1}, autoescape=False)
        fresh = ctx.new({"b": 2})
        assert "a" not in fresh
        assert fresh["b"] == 2
        assert fresh.autoescape is False


class TestRenderContext:
    """Per-render state."""

    def test_none_outside_render(self):
        assert get_render_context() is None
        with pytest.raises(RuntimeError, match="Not in a render context"):
            get_render_context_required()

    def test_render_context_manager(self):
        with render_context(template_name="page.html", max_depth=3) as rc:
            assert get_render_context() is rc
            assert rc.template_name == "page.html"
            assert rc.max_depth == 3
            assert rc.depth == 0
        assert get_render_context() is None

    def test_nested_render_contexts_restore(self):
        with render_context(template_name="outer") as outer:
            with render_context(template_name="inner"):
                assert get_render_context_required().template_name == "inner"
            assert get_render_context() is outer

    def test_child_context(self):
        rc = RenderContext(template_name="page.html", line=7, max_depth=5)
        rc.cycle_state[1] = "state"
        child = rc.child_context("nav.html")
        assert child.depth == 1
        assert child.template_name == "nav.html"
        assert child.template_stack == [("page.html", 7)]
        assert child.cycle_state == {}
        assert child.block_context is None
        assert rc.template_stack == []

    def test_check_depth(self):
        rc = RenderContext(template_name="page.html", depth=2, max_depth=2, line=4)
        with pytest.raises(DepthExceededError) as exc_info:
            rc.check_depth("loop.html")
        err = exc_info.value
        assert err.target == "loop.html"
        assert err.template_name == "page.html"
        assert err.lineno == 4

    def test_render_state_visible_to_tags(self, env):
        seen = []

        @env.simple_tag
        def where():
            rc = get_render_context_required()
            seen.append((rc.template_name, rc.line))
            return ""

        env.from_string("a\n\n{% where %}", name="page.html").render()
        assert seen == [("page.html", 3)]
