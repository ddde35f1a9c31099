"""Control flow tags: if, for, with, cycle, firstof."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dtl.environment.exceptions import ErrorCode
from dtl.environment.registry import TagSpec
from dtl.nodes import Cycle, FirstOf, For, If, ListLiteral, With
from dtl.utils.text import split_outside_quotes

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.nodes import Expr, Node
    from dtl.parser.core import Parser, Section

_KWARG_RE = re.compile(r"(\w+)=(.+)", re.DOTALL)
_INVALID_LOOPVAR_CHARS = frozenset(" \"'|")


def parse_kwargs(
    parser: Parser, bits: list[str], token: Token
) -> tuple[list[tuple[str, Expr]], list[str]]:
    """Consume leading ``name=value`` bits.

    Returns:
        The parsed bindings and the bits left over.
    """
    bindings: list[tuple[str, Expr]] = []
    seen: set[str] = set()
    for i, bit in enumerate(bits):
        match = _KWARG_RE.fullmatch(bit)
        if match is None:
            return bindings, bits[i:]
        name, value = match.groups()
        if name in seen:
            raise parser.error(
                f"The '{name}' keyword argument was given more than once",
                token,
                code=ErrorCode.INVALID_TAG,
            )
        seen.add(name)
        bindings.append((name, parser.compile_filter(value, token)))
    return bindings, []


def build_if(parser: Parser, sections: list[Section], end: Token) -> If:
    """Build {% if %}...{% elif %}...{% else %}...{% endif %}."""
    branches: list[tuple[Expr, tuple[Node, ...]]] = []
    else_body: tuple[Node, ...] | None = None
    for section in sections:
        if else_body is not None:
            raise parser.error(
                f"Invalid block tag on line {section.token.lineno}: "
                f"'{section.command}', expected 'endif'",
                section.token,
                code=ErrorCode.INVALID_TAG,
            )
        if section.command == "else":
            if len(section.bits) > 1:
                raise parser.error("'else' takes no arguments", section.token)
            else_body = tuple(section.nodes)
            continue
        condition = parser.compile_condition(section.bits[1:], section.token)
        branches.append((condition, tuple(section.nodes)))

    head = sections[0].token
    return If(head.lineno, head.col_offset, tuple(branches), else_body)


def _list_literal(parser: Parser, text: str, token: Token) -> ListLiteral:
    if not text.endswith("]"):
        raise parser.error(
            f"Expected a complete list literal: {text}",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    inner = text[1:-1].strip()
    items: list[Expr] = []
    if inner:
        for item in split_outside_quotes(inner, ","):
            items.append(parser.compile_filter(item, token))
    return ListLiteral(token.lineno, token.col_offset, tuple(items))


def build_for(parser: Parser, sections: list[Section], end: Token) -> For:
    """Build {% for a[, b] in seq [reversed] %}...{% empty %}...{% endfor %}."""
    head = sections[0]
    token = head.token
    bits = head.bits
    if len(bits) < 4:
        raise parser.error(
            f"'for' statements should have at least four words: {token.value}",
            token,
            code=ErrorCode.INVALID_TAG,
        )
    if "in" not in bits[2:]:
        raise parser.error(
            f"'for' statements should use the format 'for x in y': {token.value}",
            token,
            code=ErrorCode.INVALID_TAG,
        )
    in_index = bits.index("in", 2)
    targets = tuple(t.strip() for t in re.split(r" *, *", " ".join(bits[1:in_index])))
    for target in targets:
        if not target or not _INVALID_LOOPVAR_CHARS.isdisjoint(target):
            raise parser.error(
                f"'for' tag received an invalid argument: {token.value}",
                token,
                code=ErrorCode.INVALID_TAG,
            )

    source_bits = bits[in_index + 1 :]
    is_reversed = len(source_bits) > 1 and source_bits[-1] == "reversed"
    if is_reversed:
        source_bits = source_bits[:-1]
    if not source_bits:
        raise parser.error(
            f"'for' statements should use the format 'for x in y': {token.value}",
            token,
            code=ErrorCode.INVALID_TAG,
        )
    source_text = " ".join(source_bits)
    source: Expr
    if source_text.startswith("["):
        source = _list_literal(parser, source_text, token)
    else:
        if len(source_bits) > 1:
            raise parser.error(
                f"'for' tag received an invalid argument: {token.value}",
                token,
                code=ErrorCode.INVALID_TAG,
            )
        source = parser.compile_filter(source_text, token)

    if len(sections) > 2:
        extra = sections[2]
        raise parser.error(
            f"Invalid block tag on line {extra.token.lineno}: "
            f"'{extra.command}', expected 'endfor'",
            extra.token,
            code=ErrorCode.INVALID_TAG,
        )
    empty = tuple(sections[1].nodes) if len(sections) == 2 else ()

    return For(
        token.lineno,
        token.col_offset,
        targets,
        source,
        tuple(head.nodes),
        empty,
        is_reversed,
    )


def build_with(parser: Parser, sections: list[Section], end: Token) -> With:
    """Build {% with a=b %} or legacy {% with b as a %}."""
    head = sections[0]
    token = head.token
    bits = head.bits[1:]
    if len(bits) == 3 and bits[1] == "as":
        bindings = [(bits[2], parser.compile_filter(bits[0], token))]
        rest: list[str] = []
    else:
        bindings, rest = parse_kwargs(parser, bits, token)
    if not bindings:
        raise parser.error(
            "'with' expected at least one variable assignment", token, code=ErrorCode.INVALID_TAG
        )
    if rest:
        raise parser.error(
            f"'with' received an invalid token: '{rest[0]}'", token, code=ErrorCode.INVALID_TAG
        )
    return With(token.lineno, token.col_offset, tuple(bindings), tuple(head.nodes))


def compile_cycle(parser: Parser, token: Token) -> Cycle:
    """Compile {% cycle v1 v2 ... [as name [silent]] %}."""
    args = token.split_contents()[1:]
    silent = False
    variable: str | None = None
    if len(args) >= 3 and args[-1] == "silent" and args[-3] == "as":
        silent = True
        args = args[:-1]
    if len(args) >= 2 and args[-2] == "as":
        variable = args[-1]
        args = args[:-2]
    if not args:
        raise parser.error(
            "'cycle' tag requires at least one value", token, code=ErrorCode.INVALID_TAG
        )
    values = tuple(parser.compile_filter(arg, token) for arg in args)
    return Cycle(token.lineno, token.col_offset, values, variable, silent)


def compile_firstof(parser: Parser, token: Token) -> FirstOf:
    """Compile {% firstof v1 v2 ... [as name] %}."""
    args = token.split_contents()[1:]
    variable: str | None = None
    if len(args) >= 2 and args[-2] == "as":
        variable = args[-1]
        args = args[:-2]
    if not args:
        raise parser.error(
            "'firstof' statement requires at least one argument", token, code=ErrorCode.INVALID_TAG
        )
    values = tuple(parser.compile_filter(arg, token) for arg in args)
    return FirstOf(token.lineno, token.col_offset, values, variable)


CONTROL_FLOW_TAGS: dict[str, TagSpec] = {
    "if": TagSpec(
        "if",
        build=build_if,
        intermediates=frozenset({"elif", "else"}),
        end=frozenset({"endif"}),
    ),
    "for": TagSpec(
        "for",
        build=build_for,
        intermediates=frozenset({"empty"}),
        end=frozenset({"endfor"}),
    ),
    "with": TagSpec("with", build=build_with, end=frozenset({"endwith"})),
    "cycle": TagSpec("cycle", compile=compile_cycle),
    "firstof": TagSpec("firstof", compile=compile_firstof),
}
