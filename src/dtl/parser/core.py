"""Parser core: token stream → node tree.

The parser keeps an explicit stack of open block-tag frames instead of
recursing:

- a registered block tag (``if``, ``for``, ``block``, ...) pushes a frame
  whose first Section collects the child nodes;
- an intermediate tag of the innermost frame (``elif``, ``else``,
  ``empty``) starts a new Section;
- a closing tag of the innermost frame pops it and hands its Sections to
  the tag's ``build`` function, attaching the resulting node to the parent;
- reaching the end of input with frames still open is an "Unclosed tag"
  error located at the innermost opening tag.

Tag and filter names are resolved against the environment's registries
while parsing, so unknown names fail at compile time.

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dtl._types import Token, TokenType
from dtl.environment.exceptions import ErrorCode, TemplateSyntaxError
from dtl.nodes import Block, Data, Extends, Node, Output, TemplateNode
from dtl.parser.conditions import ConditionParser
from dtl.parser.expressions import compile_filter, compile_operand

if TYPE_CHECKING:
    from dtl.environment.core import Environment
    from dtl.environment.registry import FilterSpec, TagSpec
    from dtl.nodes import Expr, FilterExpr


@dataclass(slots=True)
class Section:
    """One branch of a block tag: the tag that opened it plus its body.

    Attributes:
        token: The opening or intermediate tag token
        bits: ``token.split_contents()``
        nodes: Parsed child nodes (or Data nodes of source text for raw tags)
    """

    token: Token
    bits: list[str]
    nodes: list[Node] = field(default_factory=list)

    @property
    def command(self) -> str:
        return self.bits[0]


@dataclass(slots=True)
class _Frame:
    spec: TagSpec
    sections: list[Section]


class Parser:
    """Build a TemplateNode from tokens.

    Attributes:
        env: Environment whose registries resolve tag and filter names
        name: Template name for error messages
        source: Template source for error snippets
        blocks: Every ``block`` parsed so far, by name
        extends: The template's ``extends`` node, once seen

    Example:
        >>> parser = Parser(tokenize(source), env, source=source)
        >>> tree = parser.parse()
    """

    __slots__ = (
        "_nontext_seen",
        "_stack",
        "blocks",
        "env",
        "extends",
        "name",
        "source",
        "tokens",
    )

    def __init__(
        self,
        tokens: Iterable[Token],
        env: Environment,
        *,
        name: str | None = None,
        source: str | None = None,
    ):
        self.tokens = tokens
        self.env = env
        self.name = name
        self.source = source
        self.blocks: dict[str, Block] = {}
        self.extends: Extends | None = None
        self._stack: list[_Frame] = []
        self._nontext_seen = False

    # -- helpers for tag implementations -----------------------------------

    def error(
        self,
        message: str,
        token: Token,
        *,
        code: ErrorCode | None = None,
    ) -> TemplateSyntaxError:
        """Build a syntax error located at ``token``."""
        return TemplateSyntaxError(
            message,
            lineno=token.lineno,
            name=self.name,
            source=self.source,
            col_offset=token.col_offset,
            code=code,
        )

    def find_filter(self, name: str, token: Token) -> FilterSpec:
        spec = self.env.filters.get(name)
        if spec is None:
            raise self.error(
                f"Invalid filter: '{name}'", token, code=ErrorCode.INVALID_FILTER
            )
        return spec

    def compile_filter(self, text: str, token: Token) -> FilterExpr:
        """Parse ``var|filter:arg`` text into a FilterExpr."""
        return compile_filter(self, text, token)

    def compile_operand(self, text: str, token: Token) -> Expr:
        """Parse a single literal or variable path (no filters)."""
        return compile_operand(self, text, token)

    def compile_condition(self, bits: list[str], token: Token) -> Expr:
        """Parse ``{% if %}``-style condition words into an expression."""
        return ConditionParser(self, bits, token).parse()

    @property
    def depth(self) -> int:
        """Number of block tags currently open."""
        return len(self._stack)

    @property
    def nontext_seen(self) -> bool:
        """True once any variable or tag has been parsed."""
        return self._nontext_seen

    # -- main loop -----------------------------------------------------------

    def _append(self, root: list[Node], node: Node) -> None:
        if self._stack:
            self._stack[-1].sections[-1].nodes.append(node)
        else:
            root.append(node)

    def parse(self) -> TemplateNode:
        """Parse all tokens.

        Raises:
            TemplateSyntaxError: On any malformed construct, unknown tag or
                filter, unclosed block, or invalid inheritance structure.
        """
        root: list[Node] = []
        for token in self.tokens:
            if self._stack and self._stack[-1].spec.raw:
                self._raw_token(root, token)
                continue
            if token.type is TokenType.TEXT:
                self._append(root, Data(token.lineno, token.col_offset, token.value))
            elif token.type is TokenType.VARIABLE:
                expr = self.compile_filter(token.value, token)
                self._nontext_seen = True
                self._append(root, Output(token.lineno, token.col_offset, expr))
            elif token.type is TokenType.BLOCK:
                self._tag(root, token)
            # COMMENT tokens are dropped

        if self._stack:
            frame = self._stack[-1]
            opener = frame.sections[0].token
            raise self.error(
                f"Unclosed tag on line {opener.lineno}: '{frame.spec.name}'. "
                f"Looking for one of: {', '.join(self._expected(frame))}.",
                opener,
                code=ErrorCode.UNCLOSED_BLOCK,
            )

        if self.extends is not None:
            self._check_child_structure(root)

        return TemplateNode(
            lineno=1,
            col_offset=0,
            body=tuple(root),
            name=self.name,
            blocks=dict(self.blocks),
            extends=self.extends,
        )

    def _raw_token(self, root: list[Node], token: Token) -> None:
        frame = self._stack[-1]
        if token.type is TokenType.BLOCK:
            bits = token.split_contents()
            if bits and bits[0] in frame.spec.end:
                self._close(root, token)
                return
        raw = self.source[token.start : token.end] if self.source is not None else token.value
        frame.sections[-1].nodes.append(Data(token.lineno, token.col_offset, raw))

    def _tag(self, root: list[Node], token: Token) -> None:
        bits = token.split_contents()
        if not bits:
            raise self.error(
                f"Empty block tag on line {token.lineno}", token, code=ErrorCode.INVALID_TAG
            )
        command = bits[0]
        frame = self._stack[-1] if self._stack else None

        if frame is not None and command in frame.spec.intermediates:
            frame.sections.append(Section(token, bits))
            return
        if frame is not None and command in frame.spec.end:
            self._close(root, token)
            return

        spec = self.env.tags.get(command)
        if spec is None:
            raise self._invalid_tag(command, token)

        if spec.opens_scope:
            self._stack.append(_Frame(spec, [Section(token, bits)]))
            self._nontext_seen = True
            return

        assert spec.compile is not None
        node = spec.compile(self, token)
        self._nontext_seen = True
        self._append(root, node)

    def _close(self, root: list[Node], token: Token) -> None:
        frame = self._stack.pop()
        assert frame.spec.build is not None
        node = frame.spec.build(self, frame.sections, token)
        if node is not None:
            self._append(root, node)

    @staticmethod
    def _expected(frame: _Frame) -> list[str]:
        return sorted(frame.spec.intermediates) + sorted(frame.spec.end)

    def _invalid_tag(self, command: str, token: Token) -> TemplateSyntaxError:
        if self._stack:
            expected = self._expected(self._stack[-1])
            quoted = ", ".join(f"'{name}'" for name in expected)
            message = (
                f"Invalid block tag on line {token.lineno}: '{command}', "
                f"expected {quoted}. Did you forget to register this tag?"
            )
        else:
            message = (
                f"Invalid block tag on line {token.lineno}: '{command}'. "
                f"Did you forget to register this tag?"
            )
        return self.error(message, token, code=ErrorCode.INVALID_TAG)

    def _check_child_structure(self, root: list[Node]) -> None:
        """A template that extends another may only define blocks at top level."""
        for node in root:
            if isinstance(node, (Block, Extends)):
                continue
            if isinstance(node, Data) and not node.value.strip():
                continue
            raise TemplateSyntaxError(
                "Content outside of {% block %} tags is not allowed in a template "
                "that uses {% extends %}",
                lineno=node.lineno,
                name=self.name,
                source=self.source,
                col_offset=node.col_offset,
                code=ErrorCode.INVALID_INHERITANCE,
            )
