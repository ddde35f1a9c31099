"""Context: the scoped stack of named values available while rendering.

A Context is an ordered stack of scopes. Lookups search innermost to
outermost; assignments go to the innermost scope. Each scope also records
the autoescape flag in force, so ``{% autoescape %}`` is scoped exactly like
a variable.

The stack starts with two frames that can never be popped: the builtins
frame (``True``, ``False``, ``None``) and the caller's values.

Example:
    >>> ctx = Context({"user": "ada"})
    >>> with ctx.push(user="grace"):
    ...     ctx["user"]
    'grace'
    >>> ctx["user"]
    'ada'

Thread-Safety:
A Context belongs to exactly one render call. Share compiled templates
between threads, never contexts.

"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from dtl.environment.exceptions import ContextPopError

if TYPE_CHECKING:
    from dtl.environment.core import Environment

BUILTINS: dict[str, Any] = {"True": True, "False": False, "None": None}


class ScopeGuard:
    """Returned by ``Context.push()``; pops the scope on ``__exit__``.

    Using it as a context manager guarantees the pop on every exit path,
    including exceptions propagating out of a loop body.
    """

    __slots__ = ("_context", "scope")

    def __init__(self, context: Context, scope: dict[str, Any]):
        self._context = context
        self.scope = scope

    def __enter__(self) -> dict[str, Any]:
        return self.scope

    def __exit__(self, *exc_info: object) -> None:
        self._context.pop()


class Context:
    """Scoped stack of template variables.

    Attributes:
        environment: The Environment rendering with this context (set by
            ``Template.render``; used for filters' configuration)
    """

    __slots__ = ("_autoescape", "_scopes", "environment")

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        autoescape: bool = True,
        environment: Environment | None = None,
    ):
        self._scopes: list[dict[str, Any]] = [dict(BUILTINS), dict(values or {})]
        self._autoescape: list[bool] = [autoescape, autoescape]
        self.environment = environment

    # -- scope management --------------------------------------------------

    def push(
        self,
        values: Mapping[str, Any] | None = None,
        /,
        *,
        autoescape: bool | None = None,
        **kwargs: Any,
    ) -> ScopeGuard:
        """Push a new innermost scope.

        Args:
            values: Initial bindings for the scope
            autoescape: Autoescape flag for the scope (inherits when None)
            **kwargs: Additional bindings

        Returns:
            A guard usable as ``with ctx.push(...):`` to pop automatically.
        """
        scope = dict(values or {})
        scope.update(kwargs)
        self._scopes.append(scope)
        self._autoescape.append(self.autoescape if autoescape is None else autoescape)
        return ScopeGuard(self, scope)

    def pop(self) -> dict[str, Any]:
        """Pop the innermost scope.

        Raises:
            ContextPopError: If only the initial frames remain.
        """
        if len(self._scopes) <= 2:
            raise ContextPopError("pop() has been called more times than push()")
        self._autoescape.pop()
        return self._scopes.pop()

    @property
    def depth(self) -> int:
        """Number of scopes pushed on top of the initial frames."""
        return len(self._scopes) - 2

    @property
    def autoescape(self) -> bool:
        return self._autoescape[-1]

    def new(self, values: Mapping[str, Any] | None = None) -> Context:
        """Fresh context with the same autoescape state and environment.

        Used by ``{% include ... only %}``.
        """
        return Context(values, autoescape=self.autoescape, environment=self.environment)

    # -- mapping interface -------------------------------------------------

    def __getitem__(self, name: str) -> Any:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        raise KeyError(name)

    def get(self, name: str, default: Any = None) -> Any:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return default

    def __setitem__(self, name: str, value: Any) -> None:
        self._scopes[-1][name] = value

    def __contains__(self, name: object) -> bool:
        return any(name in scope for scope in self._scopes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.flatten())

    def set_upward(self, name: str, value: Any) -> None:
        """Rebind ``name`` in the innermost scope that defines it."""
        for scope in reversed(self._scopes[1:]):
            if name in scope:
                scope[name] = value
                return
        self._scopes[-1][name] = value

    def flatten(self) -> dict[str, Any]:
        """Merge all scopes into one dict, inner scopes winning."""
        flat: dict[str, Any] = {}
        for scope in self._scopes:
            flat.update(scope)
        return flat

    def __repr__(self) -> str:
        return f"<Context depth={self.depth} autoescape={self.autoescape}>"
