"""Exceptions for the dtl template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # Template not found by loader
├── TemplateSyntaxError       # Lex/parse-time error, always fatal to compilation
├── TemplateRuntimeError      # Render-time error with template location
│   └── DepthExceededError    # include/extends nesting beyond max_depth
└── RegistryError             # Duplicate filter/tag name, late registration

ContextPopError is deliberately *not* a TemplateError: popping the context
past its initial frame is a programming bug in a tag implementation, never a
consequence of template input.

Variable resolution never raises. A path that does not resolve yields the
undefined value (see ``dtl.resolution``).

Example:
    ```
    Syntax Error: Unclosed tag on line 3: 'if'. Looking for one of: elif, else, endif
      --> page.html:3:0
       |
      3 | {% if user %}
       | ^
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Searchable error codes for dtl template errors.

    Format: D-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), TPL (template loading),
    REG (registry)
    """

    # Lexer errors (D-LEX-xxx)
    UNCLOSED_TAG = "D-LEX-001"
    UNCLOSED_COMMENT = "D-LEX-002"
    UNCLOSED_VARIABLE = "D-LEX-003"

    # Parser errors (D-PAR-xxx)
    UNCLOSED_BLOCK = "D-PAR-001"
    INVALID_TAG = "D-PAR-002"
    INVALID_EXPRESSION = "D-PAR-003"
    INVALID_FILTER = "D-PAR-004"
    INVALID_INHERITANCE = "D-PAR-005"
    DUPLICATE_BLOCK = "D-PAR-006"

    # Runtime errors (D-RUN-xxx)
    DEPTH_EXCEEDED = "D-RUN-001"
    RUNTIME_ERROR = "D-RUN-002"

    # Template loading errors (D-TPL-xxx)
    TEMPLATE_NOT_FOUND = "D-TPL-001"
    SYNTAX_ERROR = "D-TPL-002"

    # Registry errors (D-REG-xxx)
    DUPLICATE_NAME = "D-REG-001"
    REGISTRY_FROZEN = "D-REG-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "TPL": "template",
            "REG": "registry",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


def format_template_stack(stack: list[tuple[str, int]] | None) -> str:
    """Format the include/extends chain for error messages.

    Example:
        >>> print(format_template_stack([("base.html", 4), ("nav.html", 12)]))
        Template stack:
          • base.html:4
          • nav.html:12
    """
    if not stack:
        return ""
    lines = ["Template stack:"]
    for template_name, line_num in stack:
        lines.append(f"  • {template_name}:{line_num}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional 0-based column for the caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format the snippet in compiler-diagnostic style."""
        parts: list[str] = ["   |"]
        for lineno, content in self.lines:
            marker = ">" if lineno == self.error_line else " "
            parts.append(f"{marker}{lineno:>3} | {content}")
            if lineno == self.error_line and self.column is not None:
                parts.append(f"     | {' ' * self.column}^")
        parts.append("   |")
        return "\n".join(parts)

    @property
    def text(self) -> str:
        """The offending source line itself."""
        for lineno, content in self.lines:
            if lineno == self.error_line:
                return content
        return ""


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class TemplateError(Exception):
    """Base exception for all dtl template errors.

        >>> try:
        ...     template.render(context)
        ... except TemplateError as e:
        ...     log.error("Template error: %s", e)

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a one-screen summary without traceback noise."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """A loader could not locate the named template.

    Raised by ``Environment.get_template`` and by ``{% include %}`` /
    ``{% extends %}`` when the target does not exist.

    Attributes:
        name: The requested template name (None when unknown).
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message)


class TemplateSyntaxError(TemplateError):
    """Malformed template source.

    Raised by the lexer and parser; never recovered internally. Carries the
    template name, line, column and a snippet of the offending source.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        *,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    @property
    def snippet(self) -> SourceSnippet | None:
        """Source context around the error, when source and line are known."""
        if not self.source or not self.lineno:
            return None
        return build_source_snippet(self.source, self.lineno, column=self.col_offset)

    @property
    def location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"
        return location

    def _format_message(self) -> str:
        header = f"Syntax Error: {self.message}\n  --> {self.location}"
        snippet = self.snippet
        if snippet is not None and snippet.lines:
            return f"{header}\n{snippet.format()}"
        return header

    def format_compact(self) -> str:
        parts: list[str] = []
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts.append(f"{code_prefix}{self.message}")
        parts.append(f"  --> {self.location}")
        snippet = self.snippet
        if snippet is not None and snippet.lines:
            parts.append(f"  {snippet.text.strip()}")
        return "\n".join(parts)


class TemplateRuntimeError(TemplateError):
    """Render-time failure with best-effort location.

    Variable resolution never produces this error; it is only raised for
    include/extends failures such as exceeding the nesting limit.

    Attributes:
        message: Error description
        template_name: Name of the template being rendered
        lineno: Line of the node being rendered, when known
        suggestion: Actionable fix suggestion
        template_stack: (template_name, line) pairs of the include chain
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        template_stack: list[tuple[str, int]] | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.template_stack = template_stack or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            loc = self.template_name or "<template>"
            if self.lineno:
                loc += f":{self.lineno}"
            parts.append(f"  Location: {loc}")
        if self.template_stack:
            parts.append(format_template_stack(self.template_stack))
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(parts)


class DepthExceededError(TemplateRuntimeError):
    """Include/extends nesting went past the environment's ``max_depth``.

    Raised instead of letting recursive includes overflow the Python stack:
        >>> env = Environment(loader=DictLoader({"a.html": "{% include 'a.html' %}"}))
        >>> env.get_template("a.html").render()
        DepthExceededError: Maximum include/extends depth exceeded (50) ...
    """

    code: ErrorCode | None = ErrorCode.DEPTH_EXCEEDED

    def __init__(self, max_depth: int, target: str, **kwargs: Any):
        self.max_depth = max_depth
        self.target = target
        super().__init__(
            f"Maximum include/extends depth exceeded ({max_depth}) "
            f"when loading '{target}'",
            suggestion="Check for circular includes or extends: A → B → A",
            **kwargs,
        )


class RegistryError(TemplateError):
    """Invalid filter or tag registration."""

    code: ErrorCode | None = ErrorCode.DUPLICATE_NAME

    def __init__(self, message: str, *, code: ErrorCode | None = None):
        if code is not None:
            self.code = code
        super().__init__(message)


class ContextPopError(Exception):
    """``Context.pop()`` called more often than ``Context.push()``."""
