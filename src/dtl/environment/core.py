"""dtl Environment: configuration, registries, compilation and the template cache.

An Environment owns everything templates share:

- configuration (autoescape, string_if_invalid, max_depth, gettext, the
  host object protocol)
- the filter and tag registries, seeded with the built-in catalog
- the loader and the compiled-template cache
- the Renderer that walks compiled templates

Lifecycle:
Register custom filters and tags first. The first compilation freezes both
registries; registering afterwards raises ``RegistryError``. From then on
the environment is read-only apart from its cache, so any number of threads
may compile and render through it.

Example:
    >>> from dtl import Environment, DictLoader
    >>> env = Environment(loader=DictLoader({"hi.html": "Hi {{ name|capfirst }}"}))
    >>> env.render("hi.html", name="ada")
    'Hi Ada'

"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, overload

from dtl.environment.cache import TemplateCache
from dtl.environment.exceptions import TemplateNotFoundError
from dtl.environment.filters import DEFAULT_FILTERS
from dtl.environment.loaders import Loader
from dtl.environment.registry import FilterSpec, Registry, TagSpec
from dtl.lexer import Lexer
from dtl.parser import Parser
from dtl.parser.blocks import DEFAULT_TAGS
from dtl.parser.blocks.custom import simple_tag_spec
from dtl.render_context import DEFAULT_MAX_DEPTH
from dtl.resolution import DEFAULT_PROTOCOL, ObjectProtocol
from dtl.template import Renderer, Template

F = Callable[..., Any]


def _identity(message: str) -> str:
    return message


class Environment:
    """Central configuration and template factory.

    Args:
        loader: Source of named templates (``get_template``, ``extends``,
            ``include``)
        autoescape: Escape output by default
        string_if_invalid: Output for undefined variables; ``%s`` is
            replaced by the variable name
        max_depth: Maximum include/extends nesting
        gettext: Translation function for ``_("...")`` literals
        object_protocol: Host object lookups used by variable resolution
        filters: Extra filters (name → function or FilterSpec)
        tags: Extra tags (name → compile function or TagSpec)
        on_compile: Hook called with the template name before each cached
            compilation

    Attributes:
        filters: Filter registry
        tags: Tag registry
        renderer: The Renderer for this environment
    """

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        autoescape: bool = True,
        string_if_invalid: str = "",
        max_depth: int = DEFAULT_MAX_DEPTH,
        gettext: Callable[[str], str] | None = None,
        object_protocol: ObjectProtocol | None = None,
        filters: Mapping[str, F | FilterSpec] | None = None,
        tags: Mapping[str, F | TagSpec] | None = None,
        on_compile: Callable[[str], Any] | None = None,
    ):
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.loader = loader
        self.autoescape = autoescape
        self.string_if_invalid = string_if_invalid
        self.max_depth = max_depth
        self.gettext = gettext or _identity
        self.object_protocol = object_protocol or DEFAULT_PROTOCOL

        self.filters: Registry[FilterSpec] = Registry("filter", DEFAULT_FILTERS)
        self.tags: Registry[TagSpec] = Registry("tag", DEFAULT_TAGS)
        for name, func in (filters or {}).items():
            self.add_filter(name, func)
        for name, compile_func in (tags or {}).items():
            self.add_tag(name, compile_func)

        self._cache = TemplateCache(on_compile=on_compile)
        self.renderer = Renderer(self)

    # -- extension API ---------------------------------------------------------

    def add_filter(
        self,
        name: str,
        func: F | FilterSpec,
        *,
        is_safe: bool | None = None,
        needs_autoescape: bool | None = None,
    ) -> None:
        """Register a filter.

        ``is_safe`` and ``needs_autoescape`` default to the same-named
        attributes on ``func``, then to False.

        Raises:
            RegistryError: If ``name`` is taken or templates were compiled
        """
        if isinstance(func, FilterSpec):
            spec = func
        else:
            spec = FilterSpec.from_function(
                name, func, is_safe=is_safe, needs_autoescape=needs_autoescape
            )
        self.filters.register(name, spec)

    @overload
    def filter(self, name: F) -> F: ...

    @overload
    def filter(
        self,
        name: str | None = None,
        *,
        is_safe: bool | None = None,
        needs_autoescape: bool | None = None,
    ) -> Callable[[F], F]: ...

    def filter(
        self,
        name: str | F | None = None,
        *,
        is_safe: bool | None = None,
        needs_autoescape: bool | None = None,
    ) -> Any:
        """Decorator registering a filter under ``name`` (default: function name).

        Example:
            >>> @env.filter()
            ... def double(value):
            ...     return value * 2
            >>> @env.filter("money", is_safe=True)
            ... def format_money(value):
            ...     return f"${value:,.2f}"
        """
        if callable(name):
            self.add_filter(name.__name__, name)
            return name

        def decorator(func: F) -> F:
            self.add_filter(
                name or func.__name__,
                func,
                is_safe=is_safe,
                needs_autoescape=needs_autoescape,
            )
            return func

        return decorator

    def add_tag(self, name: str, compile_func: F | TagSpec) -> None:
        """Register a simple tag: ``compile_func(parser, token) -> Node``.

        Raises:
            RegistryError: If ``name`` is taken or templates were compiled
        """
        if isinstance(compile_func, TagSpec):
            spec = compile_func
        else:
            spec = TagSpec(name, compile=compile_func)
        self.tags.register(name, spec)

    def add_block_tag(
        self,
        name: str,
        build: F,
        *,
        end: Iterable[str] | None = None,
        intermediates: Iterable[str] = (),
        raw: bool = False,
    ) -> None:
        """Register a block tag.

        ``build(parser, sections, end_token)`` runs when the closing tag is
        reached and returns the node to insert (or None for no output).
        ``end`` defaults to ``{"end" + name}``.

        Example:
            >>> def build_upper(parser, sections, end):
            ...     body = sections[0].nodes
            ...     return CustomTag(
            ...         end.lineno, end.col_offset, "upper",
            ...         lambda ctx, r: r.render_nodes(body, ctx).upper(),
            ...     )
            >>> env.add_block_tag("upper", build_upper)
        """
        self.tags.register(
            name,
            TagSpec(
                name,
                build=build,
                end=frozenset(end) if end is not None else frozenset({f"end{name}"}),
                intermediates=frozenset(intermediates),
                raw=raw,
            ),
        )

    @overload
    def simple_tag(self, func: F) -> F: ...

    @overload
    def simple_tag(
        self,
        func: None = None,
        *,
        name: str | None = None,
        takes_context: bool = False,
    ) -> Callable[[F], F]: ...

    def simple_tag(
        self,
        func: F | None = None,
        *,
        name: str | None = None,
        takes_context: bool = False,
    ) -> Any:
        """Decorator registering ``func`` as a tag whose output is its return value.

        Example:
            >>> @env.simple_tag
            ... def greet(name):
            ...     return f"Hello, {name}"
            >>> @env.simple_tag(takes_context=True)
            ... def current_user(context):
            ...     return context.get("user")
        """

        def decorator(f: F) -> F:
            tag_name = name or f.__name__
            self.tags.register(tag_name, simple_tag_spec(tag_name, f, takes_context=takes_context))
            return f

        if func is not None:
            return decorator(func)
        return decorator

    # -- templates -------------------------------------------------------------

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Compile ``source`` directly, bypassing the loader and the cache.

        Raises:
            TemplateSyntaxError: If the source is malformed
        """
        return self._compile(source, name, None)

    def get_template(self, name: str) -> Template:
        """Load and compile ``name`` through the cache.

        Concurrent first requests for the same name compile it once.

        Raises:
            TemplateNotFoundError: If the loader cannot find it
            TemplateSyntaxError: If the source is malformed
        """
        return self._cache.get_or_compile(name, lambda: self._load(name))

    def select_template(self, names: Iterable[str]) -> Template:
        """Return the first of ``names`` that exists.

        Raises:
            TemplateNotFoundError: If none of them exists
        """
        tried: list[str] = []
        for name in names:
            try:
                return self.get_template(name)
            except TemplateNotFoundError:
                tried.append(name)
        raise TemplateNotFoundError(
            f"None of the templates exist: {', '.join(tried) or '(none given)'}",
            name=tried[0] if tried else None,
        )

    def render(self, name: str, /, *args: Any, **kwargs: Any) -> str:
        """Shortcut for ``get_template(name).render(*args, **kwargs)``."""
        return self.get_template(name).render(*args, **kwargs)

    def _load(self, name: str) -> Template:
        if self.loader is None:
            raise TemplateNotFoundError(
                f"Template '{name}' not found: no loader configured", name=name
            )
        source, filename = self.loader.get_source(name)
        return self._compile(source, name, filename)

    def _compile(self, source: str, name: str | None, filename: str | None) -> Template:
        self.filters.freeze()
        self.tags.freeze()
        parser = Parser(Lexer(source, name), self, name=name, source=source)
        tree = parser.parse()
        return Template(self, tree, name, filename, source)

    # -- cache -----------------------------------------------------------------

    @property
    def cache(self) -> TemplateCache:
        return self._cache

    def clear_cache(self, name: str | None = None) -> None:
        """Drop ``name`` (or every template) from the compiled-template cache."""
        self._cache.invalidate(name)

    def cache_info(self) -> dict[str, int]:
        return self._cache.cache_info()

    def __repr__(self) -> str:
        return (
            f"<Environment loader={type(self.loader).__name__ if self.loader else None} "
            f"filters={len(self.filters)} tags={len(self.tags)}>"
        )
