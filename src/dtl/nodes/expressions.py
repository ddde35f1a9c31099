"""Expression nodes: the ``var|filter:arg`` model and ``if`` conditions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dtl.nodes.base import Node

if TYPE_CHECKING:
    from dtl.environment.registry import FilterSpec


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for anything that resolves to a value."""


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """Literal value: ``"text"``, ``'text'``, ``42``, ``3.5``.

    String literals are stored already marked safe.
    """

    value: Any


@dataclass(frozen=True, slots=True)
class Translated(Expr):
    """Translated string literal: ``_("text")``."""

    message: str


@dataclass(frozen=True, slots=True)
class Name(Expr):
    """Dotted variable path: ``user.profile.name`` or ``items.0``."""

    lookups: tuple[str, ...]

    @property
    def text(self) -> str:
        return ".".join(self.lookups)


@dataclass(frozen=True, slots=True)
class ListLiteral(Expr):
    """List literal, accepted as the source of a ``for`` loop: ``[1, 2, x]``."""

    items: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class FilterCall(Node):
    """One ``|name`` or ``|name:arg`` application.

    ``spec`` is bound when the template is compiled, so unknown filters fail
    at compile time.
    """

    name: str
    spec: FilterSpec
    arg: Expr | None = None


@dataclass(frozen=True, slots=True)
class FilterExpr(Expr):
    """Base expression followed by zero or more filters, applied left to right."""

    base: Expr
    filters: Sequence[FilterCall]
    token: str = ""


@dataclass(frozen=True, slots=True)
class BoolOp(Expr):
    """``left and right`` / ``left or right`` inside ``{% if %}``."""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class Not(Expr):
    """``not operand`` inside ``{% if %}``."""

    operand: Expr


@dataclass(frozen=True, slots=True)
class Compare(Expr):
    """Binary comparison inside ``{% if %}``.

    ``op`` is one of ``== != < > <= >= in not in is is not``.
    """

    op: str
    left: Expr
    right: Expr
