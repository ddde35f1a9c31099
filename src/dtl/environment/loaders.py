"""Template loaders for the dtl environment.

A loader turns a template name into source text. The Environment consults
it on a cache miss, and the renderer reaches it through the Environment
when an ``{% extends %}`` or ``{% include %}`` names another template.

Every loader implements `get_source(name)` returning `(source, filename)`
and raises `TemplateNotFoundError` (carrying the requested name) when it
cannot find the template.

Built-in Loaders:
- `FileSystemLoader`: Load from filesystem directories
- `DictLoader`: Load from an in-memory mapping (tests, embedded templates)
- `ChoiceLoader`: Try several loaders in order (theme fallback)
- `FunctionLoader`: Wrap a callable

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM templates WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found", name=name)
            return row.source, f"db://{name}"
    ```

Thread-Safety:
``get_source()`` may be called from several threads at once. The built-in
loaders hold no mutable state.

"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from difflib import get_close_matches
from pathlib import Path
from typing import Protocol

from dtl.environment.exceptions import TemplateNotFoundError


class Loader(Protocol):
    """Anything with ``get_source(name) -> (source, filename | None)``."""

    def get_source(self, name: str) -> tuple[str, str | None]: ...


class FileSystemLoader:
    """Load templates from one or more directories.

    Directories are searched in order and the first file found wins. Names
    that would resolve outside a search directory (``../secret.txt``) are
    treated as not found in that directory.

    Example:
            >>> loader = FileSystemLoader(["themes/custom/", "themes/default/"])
            >>> source, filename = loader.get_source("pages/about.html")
            >>> filename
            'themes/default/pages/about.html'

    Raises:
        TemplateNotFoundError: If no search directory holds the template
    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | Sequence[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def _candidate(self, base: Path, name: str) -> Path | None:
        root = base.resolve()
        path = (root / name).resolve()
        if path != root and root not in path.parents:
            return None
        return path

    def get_source(self, name: str) -> tuple[str, str]:
        for base in self._paths:
            path = self._candidate(base, name)
            if path is not None and path.is_file():
                return path.read_text(self._encoding), str(path)

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}",
            name=name,
        )

    def list_templates(self) -> list[str]:
        """Every file below the search directories, as template names."""
        templates: set[str] = set()
        for base in self._paths:
            if base.is_dir():
                for path in base.rglob("*"):
                    if path.is_file():
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory mapping of name → source.

    Example:
            >>> loader = DictLoader({
            ...     "base.html": "<html>{% block content %}{% endblock %}</html>",
            ...     "page.html": "{% extends 'base.html' %}{% block content %}Hi{% endblock %}",
            ... })
            >>> env = Environment(loader=loader)
            >>> env.get_template("page.html").render()
            '<html>Hi</html>'

    Raises:
        TemplateNotFoundError: If the name is not in the mapping; the
            message suggests a close match when there is one
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> tuple[str, None]:
        if name not in self._mapping:
            available = sorted(self._mapping)
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg, name=name)
        return self._mapping[name], None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping)


class ChoiceLoader:
    """Try several loaders in order, returning the first match.

    Example:
            >>> loader = ChoiceLoader([
            ...     DictLoader({"nav.html": "<nav>Custom</nav>"}),
            ...     FileSystemLoader("templates/"),
            ... ])

    Raises:
        TemplateNotFoundError: If no loader finds the template
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Sequence[Loader]):
        self._loaders = list(loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._loaders)} loaders",
            name=name,
        )

    def list_templates(self) -> list[str]:
        templates: set[str] = set()
        for loader in self._loaders:
            if hasattr(loader, "list_templates"):
                templates.update(loader.list_templates())
        return sorted(templates)


class FunctionLoader:
    """Wrap a callable as a loader.

    The callable takes a template name and returns the source, a
    ``(source, filename)`` tuple, or ``None`` when the template does not
    exist.

    Example:
            >>> def load(name):
            ...     if name == "greeting.html":
            ...         return "Hello, {{ name }}!"
            ...     return None
            >>> env = Environment(loader=FunctionLoader(load))
            >>> env.get_template("greeting.html").render(name="World")
            'Hello, World!'
    """

    __slots__ = ("_load_func",)

    def __init__(
        self,
        load_func: Callable[[str], str | tuple[str, str | None] | None],
    ):
        self._load_func = load_func

    def get_source(self, name: str) -> tuple[str, str | None]:
        result = self._load_func(name)
        if result is None:
            raise TemplateNotFoundError(f"Template '{name}' not found", name=name)
        if isinstance(result, str):
            return result, None
        return result
