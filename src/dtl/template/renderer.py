"""Tree-walking renderer.

The Renderer walks a template's node tree against a Context and returns
the output text. Each node type maps to one method through a dispatch
table built once per Renderer; adding a node type means adding an entry.

Per-render state (current template, nesting depth, cycle positions, block
stacks) lives in the RenderContext, not on the Renderer, so one Renderer
serves every thread of its Environment.

Inheritance:
A template with ``{% extends %}`` is rendered by walking up its parent
chain, collecting every template's blocks into a BlockContext
(most-derived last), then rendering the root template's body. Each hop up
the chain counts one nesting level against ``max_depth``.

"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from markupsafe import Markup

from dtl.environment.exceptions import (
    DepthExceededError,
    TemplateNotFoundError,
    TemplateRuntimeError,
)
from dtl.nodes import (
    Autoescape,
    Block,
    Cycle,
    CustomTag,
    Data,
    Extends,
    FirstOf,
    For,
    If,
    Include,
    Node,
    Output,
    Spaceless,
    With,
)
from dtl.render_context import (
    get_render_context,
    get_render_context_required,
    reset_render_context,
    set_render_context,
)
from dtl.resolution import UNDEFINED
from dtl.template.evaluate import evaluate, evaluate_condition
from dtl.template.inheritance import BlockContext, BlockReference
from dtl.template.loop_context import ForLoop
from dtl.utils.html import conditional_escape, strip_spaces_between_tags

if TYPE_CHECKING:
    from dtl.context import Context
    from dtl.environment.core import Environment
    from dtl.nodes import Expr
    from dtl.template.core import Template

logger = logging.getLogger(__name__)


class Renderer:
    """Render node trees for one Environment.

    Example:
        >>> renderer = Renderer(env)
        >>> renderer.render_template(template, Context({"name": "World"}))
        'Hello, World!'
    """

    __slots__ = ("_dispatch", "env")

    def __init__(self, env: Environment):
        self.env = env
        self._dispatch: dict[type[Node], Callable[[Any, Context], str]] = {
            Data: self._render_data,
            Output: self._render_output,
            Autoescape: self._render_autoescape,
            Spaceless: self._render_spaceless,
            If: self._render_if,
            For: self._render_for,
            With: self._render_with,
            Cycle: self._render_cycle,
            FirstOf: self._render_firstof,
            CustomTag: self._render_custom,
            Block: self.render_block,
            Extends: self._render_extends,
            Include: self._render_include,
        }

    # -- entry points --------------------------------------------------------

    def render_template(self, template: Template, context: Context) -> str:
        """Render ``template``, following its ``extends`` chain.

        Must run inside a RenderContext (see ``dtl.render_context``).
        """
        if template.extends is None:
            return self.render_nodes(template.nodes, context)

        rc = get_render_context_required()
        if rc.block_context is None:
            rc.block_context = BlockContext()
        start_depth = rc.depth
        try:
            current = template
            while current.extends is not None:
                rc.block_context.add_blocks(current.blocks)
                parent = self._resolve_parent(current, context)
                rc.check_depth(parent.name or "<string>")
                rc.depth += 1
                current = parent
            rc.block_context.add_blocks(current.blocks)
            return self.render_nodes(current.nodes, context)
        finally:
            rc.depth = start_depth

    def render_nodes(self, nodes: Sequence[Node], context: Context) -> str:
        """Render a node sequence and concatenate the results."""
        rc = get_render_context()
        dispatch = self._dispatch
        buf: list[str] = []
        for node in nodes:
            if rc is not None:
                rc.line = node.lineno
            handler = dispatch.get(type(node))
            if handler is None:
                raise TemplateRuntimeError(
                    f"No renderer for node type {type(node).__name__}",
                    template_name=rc.template_name if rc else None,
                    lineno=node.lineno,
                )
            buf.append(handler(node, context))
        return "".join(buf)

    def render_value(self, value: Any, context: Context) -> str:
        """Convert a value to output text, escaping when autoescape is on.

        Undefined renders as ``""``; so does an object whose string
        conversion raises.
        """
        if value is UNDEFINED:
            return ""
        try:
            if context.autoescape:
                return str(conditional_escape(value))
            return str(value)
        except Exception:
            logger.debug("Converting %s to text failed", type(value).__name__, exc_info=True)
            return ""

    def evaluate(self, expr: Expr, context: Context, *, ignore_failures: bool = False) -> Any:
        """Evaluate an expression with this renderer's environment."""
        return evaluate(expr, context, self.env, ignore_failures=ignore_failures)

    # -- output --------------------------------------------------------------

    def _render_data(self, node: Data, context: Context) -> str:
        return node.value

    def _render_output(self, node: Output, context: Context) -> str:
        return self.render_value(self.evaluate(node.expr, context), context)

    def _render_autoescape(self, node: Autoescape, context: Context) -> str:
        with context.push(autoescape=node.enabled):
            return self.render_nodes(node.body, context)

    def _render_spaceless(self, node: Spaceless, context: Context) -> str:
        return strip_spaces_between_tags(self.render_nodes(node.body, context))

    # -- control flow ----------------------------------------------------------

    def _render_if(self, node: If, context: Context) -> str:
        for condition, body in node.branches:
            if evaluate_condition(condition, context, self.env):
                return self.render_nodes(body, context)
        if node.else_ is not None:
            return self.render_nodes(node.else_, context)
        return ""

    def _render_for(self, node: For, context: Context) -> str:
        source = self.evaluate(node.iter, context, ignore_failures=True)
        items = self._materialize(source)
        if node.reversed:
            items.reverse()
        if not items:
            return self.render_nodes(node.empty, context)

        targets = node.targets
        loop = ForLoop(len(items), context.get("forloop"))
        buf: list[str] = []
        for index, item in enumerate(items):
            loop.advance(index)
            with context.push() as scope:
                scope["forloop"] = loop
                if len(targets) == 1:
                    scope[targets[0]] = item
                else:
                    scope.update(self._unpack(targets, item))
                buf.append(self.render_nodes(node.body, context))
        return "".join(buf)

    @staticmethod
    def _materialize(source: Any) -> list[Any]:
        if source is None or source is UNDEFINED:
            return []
        try:
            return list(source)
        except TypeError:
            return []
        except Exception:
            logger.debug("Iterating %s failed", type(source).__name__, exc_info=True)
            return []

    @staticmethod
    def _unpack(targets: Sequence[str], item: Any) -> dict[str, Any]:
        """Bind ``targets`` to the items of ``item``; missing ones are undefined."""
        try:
            values = list(item)
        except TypeError:
            values = [item]
        return dict(itertools.zip_longest(targets, values[: len(targets)], fillvalue=UNDEFINED))

    def _render_with(self, node: With, context: Context) -> str:
        values = {name: self.evaluate(expr, context) for name, expr in node.bindings}
        with context.push(values):
            return self.render_nodes(node.body, context)

    def _render_cycle(self, node: Cycle, context: Context) -> str:
        rc = get_render_context_required()
        state = rc.cycle_state.get(id(node))
        if state is None:
            state = rc.cycle_state[id(node)] = itertools.cycle(node.values)
        value = self.evaluate(next(state), context)
        if node.variable:
            context.set_upward(node.variable, value)
        if node.silent:
            return ""
        return self.render_value(value, context)

    def _render_firstof(self, node: FirstOf, context: Context) -> str:
        first = ""
        for expr in node.values:
            value = self.evaluate(expr, context, ignore_failures=True)
            if value:
                first = self.render_value(value, context)
                break
        if node.variable:
            context[node.variable] = Markup(first) if context.autoescape else first
            return ""
        return first

    def _render_custom(self, node: CustomTag, context: Context) -> str:
        return node.render(context, self)

    # -- structure -------------------------------------------------------------

    def render_block(self, node: Block, context: Context) -> str:
        """Render the most-derived version of ``node``'s block.

        Also renders ``{{ block.super }}``: the version being rendered is
        popped off its stack for the duration, so a nested ``super`` sees
        the next one up.
        """
        rc = get_render_context()
        block_context = rc.block_context if rc is not None else None
        if block_context is None:
            with context.push(block=BlockReference(node, context, self)):
                return self.render_nodes(node.body, context)

        pushed = block_context.pop(node.name)
        block = pushed if pushed is not None else node
        try:
            with context.push() as scope:
                scope["block"] = BlockReference(block, context, self)
                return self.render_nodes(block.body, context)
        finally:
            if pushed is not None:
                block_context.push(node.name, pushed)

    def _render_extends(self, node: Extends, context: Context) -> str:
        # Handled by render_template before the body is walked
        return ""

    def _resolve_parent(self, template: Template, context: Context) -> Template:
        node = template.extends
        assert node is not None
        if node.parent_name is not None:
            return self.env.get_template(node.parent_name)
        value = self.evaluate(node.template, context)
        if _is_template(value):
            return value
        if isinstance(value, str) and value:
            return self.env.get_template(value)
        rc = get_render_context()
        raise TemplateRuntimeError(
            f"Invalid template name in 'extends' tag: {value!r}. "
            f"Got this from the '{_expr_text(node.template)}' variable.",
            template_name=template.name,
            lineno=node.lineno,
            template_stack=rc.template_stack if rc else None,
        )

    def _render_include(self, node: Include, context: Context) -> str:
        template = self._resolve_include(node, context)
        values = {name: self.evaluate(expr, context) for name, expr in node.extra}

        rc = get_render_context_required()
        child = rc.child_context(template.name)
        child.filename = template.filename
        child.source = template.source
        token = set_render_context(child)
        try:
            if node.isolated:
                return self.render_template(template, context.new(values))
            with context.push(values):
                return self.render_template(template, context)
        except RecursionError:
            # The Python stack ran out before max_depth did.
            raise DepthExceededError(
                rc.max_depth,
                template.name or "<string>",
                template_name=rc.template_name,
                lineno=node.lineno,
                template_stack=child.template_stack,
            ) from None
        finally:
            reset_render_context(token)

    def _resolve_include(self, node: Include, context: Context) -> Template:
        value = self.evaluate(node.template, context)
        if _is_template(value):
            return value
        if isinstance(value, str):
            names: Iterable[Any] = (value,)
        elif isinstance(value, (list, tuple)):
            names = value
        else:
            names = ()
        tried: list[str] = []
        for name in names:
            try:
                return self.env.get_template(str(name))
            except TemplateNotFoundError:
                tried.append(str(name))
        rc = get_render_context()
        if tried:
            raise TemplateNotFoundError(
                f"Template '{', '.join(tried)}' not found (included from "
                f"{rc.template_name if rc and rc.template_name else '<string>'}:"
                f"{node.lineno})",
                name=tried[0],
            )
        raise TemplateRuntimeError(
            f"Invalid template name in 'include' tag: {value!r}",
            template_name=rc.template_name if rc else None,
            lineno=node.lineno,
        )


def _is_template(value: Any) -> bool:
    return callable(getattr(value, "render", None)) and hasattr(value, "nodes")


def _expr_text(expr: Expr) -> str:
    return getattr(expr, "token", "") or type(expr).__name__

