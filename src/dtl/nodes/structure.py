"""Template structure nodes: inheritance and inclusion."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from dtl.nodes.base import Node
from dtl.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Block(Node):
    """Overridable region: {% block name %}...{% endblock %}"""

    name: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Extends(Node):
    """Parent template reference: {% extends "base.html" %}

    ``parent_name`` is set when the target is a string literal.
    """

    template: Expr
    parent_name: str | None = None


@dataclass(frozen=True, slots=True)
class Include(Node):
    """Render another template inline: {% include "x.html" with a=1 only %}"""

    template: Expr
    extra: Sequence[tuple[str, Expr]] = ()
    isolated: bool = False


@dataclass(frozen=True, slots=True)
class TemplateNode(Node):
    """Root of a parsed template.

    Attributes:
        body: Top-level nodes
        name: Template name (None for ``from_string``)
        blocks: Every ``block`` in the template, nested ones included
        extends: The ``extends`` node, if the template has a parent
    """

    body: Sequence[Node]
    name: str | None = None
    blocks: dict[str, Block] | None = None
    extends: Extends | None = None
