"""dtl environment: configuration, registries, loaders, cache and errors.

``Environment`` is imported lazily: the parser and renderer modules import
the leaf modules of this package, and the Environment imports them.
"""

from dtl.environment.cache import TemplateCache
from dtl.environment.exceptions import (
    ContextPopError,
    DepthExceededError,
    ErrorCode,
    RegistryError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from dtl.environment.filters import DEFAULT_FILTERS, stringfilter
from dtl.environment.loaders import (
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    FunctionLoader,
    Loader,
)
from dtl.environment.registry import Arity, FilterSpec, Registry, TagSpec

__all__ = [
    "Arity",
    "ChoiceLoader",
    "ContextPopError",
    "DEFAULT_FILTERS",
    "DepthExceededError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FilterSpec",
    "FunctionLoader",
    "Loader",
    "Registry",
    "RegistryError",
    "SourceSnippet",
    "TagSpec",
    "TemplateCache",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "build_source_snippet",
    "stringfilter",
]


def __getattr__(name: str) -> object:
    if name == "Environment":
        from dtl.environment.core import Environment

        globals()["Environment"] = Environment
        return Environment
    raise AttributeError(f"module 'dtl.environment' has no attribute {name!r}")
