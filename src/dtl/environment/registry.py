"""Filter and tag registries for the dtl environment.

A Registry maps names to descriptors. Lookups are exact-match and
case-sensitive. Registering a name twice raises ``RegistryError``.

Lifecycle:
Registries are filled at startup (built-in catalog, constructor arguments,
``Environment.add_filter`` and friends) and frozen the first time the
environment compiles a template. After that they are read-only, so the
parser and renderer read them without locks. Mutations before the freeze
use copy-on-write under a single guard lock.
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from dtl.environment.exceptions import ErrorCode, RegistryError

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.nodes import Node
    from dtl.parser.core import Parser, Section

T = TypeVar("T")


class Arity(Enum):
    """How many arguments a filter accepts after the value."""

    NONE = "none"
    OPTIONAL = "optional"
    REQUIRED = "required"


def filter_arity(func: Callable[..., Any], needs_autoescape: bool = False) -> Arity:
    """Derive a filter's arity from its signature.

    The first positional parameter receives the value; a second one is the
    argument. ``autoescape`` is passed by keyword and does not count.
    """
    params = [
        p
        for p in inspect.signature(func).parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        and not (needs_autoescape and p.name == "autoescape")
    ]
    if len(params) < 2:
        return Arity.NONE
    if params[1].default is inspect.Parameter.empty:
        return Arity.REQUIRED
    return Arity.OPTIONAL


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Filter descriptor.

    Attributes:
        name: Registered name
        func: ``func(value)`` or ``func(value, arg)``
        arity: Whether the filter takes an argument
        is_safe: Output keeps the safe mark when the input had it
        needs_autoescape: ``func`` receives ``autoescape=`` keyword
    """

    name: str
    func: Callable[..., Any]
    arity: Arity = Arity.NONE
    is_safe: bool = False
    needs_autoescape: bool = False

    @classmethod
    def from_function(
        cls,
        name: str,
        func: Callable[..., Any],
        *,
        is_safe: bool | None = None,
        needs_autoescape: bool | None = None,
    ) -> FilterSpec:
        """Build a spec, reading defaults from attributes set on ``func``."""
        if is_safe is None:
            is_safe = getattr(func, "is_safe", False)
        if needs_autoescape is None:
            needs_autoescape = getattr(func, "needs_autoescape", False)
        return cls(
            name=name,
            func=func,
            arity=filter_arity(func, needs_autoescape),
            is_safe=is_safe,
            needs_autoescape=needs_autoescape,
        )

    @property
    def max_args(self) -> int:
        return 0 if self.arity is Arity.NONE else 1

    @property
    def min_args(self) -> int:
        return 1 if self.arity is Arity.REQUIRED else 0


@dataclass(frozen=True, slots=True)
class TagSpec:
    """Tag descriptor.

    Simple tags set ``compile``: ``compile(parser, token) -> Node``.

    Block tags set ``build``: ``build(parser, sections, end_token) -> Node``,
    called once the closing tag is reached, with one Section per opening or
    intermediate tag. ``raw`` block tags keep their body unparsed.

    Attributes:
        name: Registered (opening) tag name
        compile: Compile function for simple tags
        build: Build function for block tags
        end: Closing tag names
        intermediates: Tag names that start a new section (``elif``, ``empty``)
        raw: Body tokens are collected as source text instead of parsed
    """

    name: str
    compile: Callable[[Parser, Token], Node] | None = None
    build: Callable[[Parser, list[Section], Token], Node | None] | None = None
    end: frozenset[str] = frozenset()
    intermediates: frozenset[str] = frozenset()
    raw: bool = False

    @property
    def opens_scope(self) -> bool:
        """True for block tags, which own child node sequences."""
        return self.build is not None


class Registry(Generic[T]):
    """Dict-like, write-once registry of named descriptors.

    Supports:
        - registry.register('name', spec)
        - spec = registry['name']
        - 'name' in registry
        - registry.get('name')

    """

    __slots__ = ("_entries", "_frozen", "_kind", "_lock")

    def __init__(self, kind: str, entries: Mapping[str, T] | None = None):
        self._kind = kind
        self._entries: dict[str, T] = dict(entries or {})
        self._frozen = False
        self._lock = threading.Lock()

    def register(self, name: str, item: T) -> None:
        """Bind ``name``.

        Raises:
            RegistryError: If ``name`` is already bound, or the registry
                has been frozen by a compilation.
        """
        with self._lock:
            if self._frozen:
                raise RegistryError(
                    f"Cannot register {self._kind} '{name}': templates have already "
                    f"been compiled with this environment",
                    code=ErrorCode.REGISTRY_FROZEN,
                )
            if name in self._entries:
                raise RegistryError(f"{self._kind.capitalize()} '{name}' is already registered")
            new = self._entries.copy()
            new[name] = item
            self._entries = new

    def freeze(self) -> None:
        """Make the registry read-only. Idempotent."""
        if not self._frozen:
            with self._lock:
                self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __getitem__(self, name: str) -> T:
        return self._entries[name]

    def get(self, name: str, default: T | None = None) -> T | None:
        return self._entries.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<Registry {self._kind} ({len(self._entries)} entries, {state})>"
