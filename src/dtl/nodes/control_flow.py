"""Control flow nodes: conditionals, loops and scoped bindings."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dtl.nodes.base import Node
from dtl.nodes.expressions import Expr

if TYPE_CHECKING:
    from dtl.context import Context
    from dtl.template.renderer import Renderer


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional: {% if %}...{% elif %}...{% else %}...{% endif %}

    ``branches`` holds (condition, body) pairs tried in order.
    """

    branches: Sequence[tuple[Expr, Sequence[Node]]]
    else_: Sequence[Node] | None = None


@dataclass(frozen=True, slots=True)
class For(Node):
    """Loop: {% for x in seq [reversed] %}...{% empty %}...{% endfor %}"""

    targets: tuple[str, ...]
    iter: Expr
    body: Sequence[Node]
    empty: Sequence[Node] = ()
    reversed: bool = False


@dataclass(frozen=True, slots=True)
class With(Node):
    """Scoped bindings: {% with a=b c=d %}...{% endwith %}"""

    bindings: Sequence[tuple[str, Expr]]
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Cycle(Node):
    """Rotate through values on each render: {% cycle 'odd' 'even' %}"""

    values: Sequence[Expr]
    variable: str | None = None
    silent: bool = False


@dataclass(frozen=True, slots=True)
class FirstOf(Node):
    """First truthy value: {% firstof a b 'fallback' %}"""

    values: Sequence[Expr]
    variable: str | None = None


@dataclass(frozen=True, slots=True)
class CustomTag(Node):
    """Tag supplied through the registry.

    ``render`` receives the active context and renderer and returns the
    already-final output text.
    """

    name: str
    render: Callable[[Context, Renderer], str]
    body: Sequence[Node] = ()
