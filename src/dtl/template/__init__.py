"""dtl Template package: compiled templates and the renderer that walks them."""

from dtl.template.core import Template
from dtl.template.inheritance import BlockContext, BlockReference
from dtl.template.loop_context import ForLoop
from dtl.template.renderer import Renderer

__all__ = [
    "BlockContext",
    "BlockReference",
    "ForLoop",
    "Renderer",
    "Template",
]
