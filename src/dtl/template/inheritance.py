"""Block bookkeeping for ``{% extends %}`` and ``{{ block.super }}``.

Rendering a child template collects the blocks of every template in its
chain into one BlockContext, most-derived last. Rendering a ``block``
node pops the most-derived version of that name, renders it and pushes it
back, so ``{{ block.super }}`` inside it renders the next one up.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from typing import TYPE_CHECKING

from markupsafe import Markup

from dtl.render_context import get_render_context

if TYPE_CHECKING:
    from dtl.context import Context
    from dtl.nodes import Block
    from dtl.template.renderer import Renderer


class BlockContext:
    """Per-name stacks of Block nodes along an inheritance chain."""

    __slots__ = ("blocks",)

    def __init__(self) -> None:
        self.blocks: defaultdict[str, list[Block]] = defaultdict(list)

    def add_blocks(self, blocks: Mapping[str, Block]) -> None:
        """Add one template's blocks beneath everything added before.

        Call for the child first, then each ancestor in turn.
        """
        for name, block in blocks.items():
            self.blocks[name].insert(0, block)

    def pop(self, name: str) -> Block | None:
        try:
            return self.blocks[name].pop()
        except IndexError:
            return None

    def push(self, name: str, block: Block) -> None:
        self.blocks[name].append(block)

    def get_block(self, name: str) -> Block | None:
        try:
            return self.blocks[name][-1]
        except IndexError:
            return None

    def __repr__(self) -> str:
        return f"<BlockContext {dict(self.blocks)!r}>"


class BlockReference:
    """The ``block`` variable bound while a block body renders.

    Attributes:
        name: Block name
    """

    __slots__ = ("_block", "_context", "_renderer", "name")

    def __init__(self, block: Block, context: Context, renderer: Renderer):
        self._block = block
        self._context = context
        self._renderer = renderer
        self.name = block.name

    def super(self) -> Markup:
        """Render the overridden parent version of this block.

        Empty when there is no parent version.
        """
        rc = get_render_context()
        block_context = rc.block_context if rc is not None else None
        if block_context is None or block_context.get_block(self.name) is None:
            return Markup("")
        return Markup(self._renderer.render_block(self._block, self._context))

    def __repr__(self) -> str:
        return f"<BlockReference {self.name!r}>"
