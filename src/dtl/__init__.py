"""dtl: a Django Template Language engine in pure Python.

Compiles Django-syntax templates into immutable node trees and renders
them with a tree-walking renderer. Templates compile once and render
concurrently from any number of threads.

Quickstart:
    >>> from dtl import Environment
    >>> env = Environment()
    >>> template = env.from_string("Hello, {{ name|title }}!")
    >>> template.render(name="ada lovelace")
    'Hello, Ada Lovelace!'

File-based templates:
    >>> from dtl import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"))
    >>> env.get_template("index.html").render(page=page)

Architecture:
Template Source → Lexer → Parser → Node tree → (cache) → Renderer → str

Pipeline stages:
1. **Lexer**: Splits source into TEXT / VARIABLE / BLOCK / COMMENT tokens
2. **Parser**: Builds the node tree, resolving tags and filters against the
   environment's registries (unknown names fail at compile time)
3. **Template**: Immutable compiled tree plus inheritance metadata
4. **Renderer**: Walks the tree against a scoped Context

Lenient Resolution:
As in Django, a variable that does not resolve is not an error. It renders
as the empty string (or ``string_if_invalid``) and is falsy in conditions:

    >>> env.from_string("[{{ missing.attr }}]").render()
    '[]'
    >>> env.from_string("{{ missing|default:'N/A' }}").render()
    'N/A'

Thread-Safety:
- Compiled templates and frozen registries are immutable
- Each render keeps its state in its own Context and RenderContext
- The template cache compiles each name at most once, even under
  concurrent first requests

"""

from dtl._types import Token, TokenType
from dtl.context import Context
from dtl.environment import (
    DEFAULT_FILTERS,
    ChoiceLoader,
    ContextPopError,
    DepthExceededError,
    DictLoader,
    ErrorCode,
    FileSystemLoader,
    FilterSpec,
    FunctionLoader,
    RegistryError,
    SourceSnippet,
    TagSpec,
    TemplateCache,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
    stringfilter,
)
from dtl.environment.core import Environment
from dtl.lexer import Lexer, tokenize
from dtl.render_context import (
    RenderContext,
    get_render_context,
    get_render_context_required,
    render_context,
)
from dtl.resolution import UNDEFINED, ObjectProtocol, Undefined
from dtl.template import ForLoop, Template
from dtl.utils.html import Markup, escape, mark_safe

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_FILTERS",
    "UNDEFINED",
    "ChoiceLoader",
    "Context",
    "ContextPopError",
    "DepthExceededError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FilterSpec",
    "ForLoop",
    "FunctionLoader",
    "Lexer",
    "Markup",
    "ObjectProtocol",
    "RegistryError",
    "RenderContext",
    "SourceSnippet",
    "TagSpec",
    "Template",
    "TemplateCache",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "Undefined",
    "__version__",
    "build_source_snippet",
    "escape",
    "get_render_context",
    "get_render_context_required",
    "mark_safe",
    "render_context",
    "stringfilter",
    "tokenize",
]


# Free-threading declaration (PEP 703)
def __getattr__(name: str) -> object:
    """Module-level getattr for the free-threading declaration."""
    if name == "_Py_mod_gil":
        # 0 = Py_MOD_GIL_NOT_USED
        return 0
    raise AttributeError(f"module 'dtl' has no attribute {name!r}")
