"""RenderContext: per-render state kept out of the user's Context.

The renderer needs bookkeeping that must not leak into template
variables: which template is rendering (for error messages), how deep the
include/extends chain is, the state of every ``{% cycle %}`` and the block
stacks used by ``{% extends %}``. It lives in a RenderContext held by a
ContextVar, so each thread (and each asyncio task) sees its own.

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dtl.environment.exceptions import DepthExceededError

if TYPE_CHECKING:
    from dtl.template.inheritance import BlockContext

DEFAULT_MAX_DEPTH = 50


@dataclass
class RenderContext:
    """Per-render state isolated from user context.

    Thread Safety:
        ContextVars are thread-local by design. Each thread/async task
        has its own RenderContext instance.

    Attributes:
        template_name: Current template name for error messages
        filename: Source file path for error messages
        source: Current template source for error snippets
        line: Line of the node being rendered
        depth: Include/extends nesting level of the current template
        max_depth: Nesting level at which DepthExceededError is raised
        template_stack: (template_name, line) pairs of the include chain
        cycle_state: Position of each ``{% cycle %}`` node, keyed by node id
        block_context: Block stacks of the current inheritance chain
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    line: int = 0

    depth: int = 0
    max_depth: int = DEFAULT_MAX_DEPTH

    template_stack: list[tuple[str, int]] = field(default_factory=list)

    cycle_state: dict[int, Any] = field(default_factory=dict)
    block_context: BlockContext | None = None

    def check_depth(self, target: str) -> None:
        """Fail before entering ``target`` one level deeper than allowed.

        Raises:
            DepthExceededError: If ``depth`` has reached ``max_depth``
        """
        if self.depth >= self.max_depth:
            raise DepthExceededError(
                self.max_depth,
                target,
                template_name=self.template_name,
                lineno=self.line or None,
                template_stack=self.template_stack,
            )

    def child_context(self, template_name: str | None = None) -> RenderContext:
        """Create the context for an included template, one level deeper.

        The include chain grows by the current location. Cycle state and
        block stacks start fresh.

        Raises:
            DepthExceededError: If the include would exceed ``max_depth``
        """
        target = template_name or "<string>"
        self.check_depth(target)
        new_stack = self.template_stack.copy()
        if self.template_name and self.line > 0:
            new_stack.append((self.template_name, self.line))
        return RenderContext(
            template_name=template_name,
            depth=self.depth + 1,
            max_depth=self.max_depth,
            template_stack=new_stack,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "dtl_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Get current render context, raise if not in render.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Iterator[RenderContext]:
    """Set a fresh RenderContext for the duration of the with block.

    Example:
        with render_context(template_name="page.html") as ctx:
            html = renderer.render_nodes(template.nodes, context)
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        source=source,
        max_depth=max_depth,
    )
    token = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


def set_render_context(ctx: RenderContext) -> Token[RenderContext | None]:
    """Set a RenderContext and return the reset token.

    Used by ``{% include %}``, which enters a child context and must restore
    the parent's afterwards.
    """
    return _render_context.set(ctx)


def reset_render_context(token: Token[RenderContext | None]) -> None:
    """Reset render context using a token from set_render_context."""
    _render_context.reset(token)
