"""dtl Template: a compiled node tree ready for rendering.

Architecture:
    ```
    Template
    ├── _env: Environment               # Registries, loader, settings
    ├── _tree: TemplateNode             # Parsed node tree
    └── _name, _filename, _source       # For error messages
    ```

Thread-Safety:
- Templates are immutable after construction
- ``render()`` keeps all state in the Context it builds and in a
  RenderContext bound to the calling thread
- Multiple threads can call ``render()`` concurrently

"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from dtl.context import Context
from dtl.environment.exceptions import TemplateError, TemplateRuntimeError
from dtl.render_context import render_context

if TYPE_CHECKING:
    from dtl.environment.core import Environment
    from dtl.nodes import Block, Extends, Node, TemplateNode
    from dtl.render_context import RenderContext


class Template:
    """Compiled template ready for rendering.

    Attributes:
        name: Template identifier (None for ``from_string``)
        filename: Source file path (for error messages)
        source: Template source (for error snippets)

    Example:
            >>> from dtl import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, {{ name|upper }}!")
            >>> t.render(name="World")
            'Hello, WORLD!'

            >>> t.render({"name": "World"})  # Dict context also works
            'Hello, WORLD!'

    """

    __slots__ = ("_env", "_filename", "_name", "_source", "_tree")

    def __init__(
        self,
        env: Environment,
        tree: TemplateNode,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._env = env
        self._tree = tree
        self._name = name
        self._filename = filename
        self._source = source

    @property
    def environment(self) -> Environment:
        return self._env

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def tree(self) -> TemplateNode:
        return self._tree

    @property
    def nodes(self) -> Sequence[Node]:
        """Top-level nodes."""
        return self._tree.body

    @property
    def blocks(self) -> Mapping[str, Block]:
        """Every ``{% block %}`` in the template, nested ones included."""
        return self._tree.blocks or {}

    @property
    def block_names(self) -> list[str]:
        return sorted(self.blocks)

    @property
    def extends(self) -> Extends | None:
        return self._tree.extends

    @property
    def parent_name(self) -> str | None:
        """Name of the parent template when ``extends`` names it literally."""
        extends = self._tree.extends
        return extends.parent_name if extends is not None else None

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the template.

        Args:
            *args: At most one mapping or Context of variables
            **kwargs: Variables as keyword arguments (win over ``args``)

        Returns:
            Rendered template as string

        Raises:
            TemplateNotFoundError: An ``extends``/``include`` target is missing
            DepthExceededError: Include/extends nesting exceeded ``max_depth``
            TemplateRuntimeError: A custom tag or filter failed unexpectedly

        Example:
            >>> t.render(name="World")
            'Hello, World!'
            >>> t.render(Context({"name": "World"}))
            'Hello, World!'
        """
        if len(args) > 1:
            raise TypeError(
                f"render() takes at most 1 positional argument (a mapping), got {len(args)}"
            )
        env = self._env
        given = args[0] if args else None

        if isinstance(given, Context):
            context = given
            if context.environment is None:
                context.environment = env
            if kwargs:
                with context.push(kwargs):
                    return self._render(context)
            return self._render(context)

        values: dict[str, Any] = dict(given or {})
        values.update(kwargs)
        context = Context(values, autoescape=env.autoescape, environment=env)
        return self._render(context)

    def _render(self, context: Context) -> str:
        env = self._env
        with render_context(
            template_name=self._name,
            filename=self._filename,
            source=self._source,
            max_depth=env.max_depth,
        ) as rc:
            try:
                return env.renderer.render_template(self, context)
            except TemplateError:
                raise
            except Exception as e:
                raise self._enhance_error(e, rc) from e

    def _enhance_error(self, error: Exception, rc: RenderContext) -> TemplateRuntimeError:
        """Wrap an unexpected exception (from a custom tag, say) with location."""
        detail = str(error).strip()
        name = type(error).__name__
        return TemplateRuntimeError(
            f"{name}: {detail}" if detail else name,
            template_name=rc.template_name,
            lineno=rc.line or None,
            template_stack=rc.template_stack,
        )

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'!r}>"
