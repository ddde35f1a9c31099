"""Template structure tags: block, extends, include."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dtl.environment.exceptions import ErrorCode
from dtl.environment.registry import TagSpec
from dtl.nodes import Block, Const, Extends, FilterExpr, Include
from dtl.parser.blocks.control_flow import parse_kwargs

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.parser.core import Parser, Section


def build_block(parser: Parser, sections: list[Section], end: Token) -> Block:
    """Build {% block name %}...{% endblock [name] %}."""
    head = sections[0]
    token = head.token
    if len(head.bits) != 2:
        raise parser.error(
            f"'block' tag takes only one argument: {token.value}",
            token,
            code=ErrorCode.INVALID_TAG,
        )
    name = head.bits[1]
    if name in parser.blocks:
        raise parser.error(
            f"'block' tag with name '{name}' appears more than once",
            token,
            code=ErrorCode.DUPLICATE_BLOCK,
        )
    end_bits = end.split_contents()
    if len(end_bits) > 2 or (len(end_bits) == 2 and end_bits[1] != name):
        raise parser.error(
            f"Mismatched '{end.value}': expected 'endblock' or 'endblock {name}'",
            end,
            code=ErrorCode.INVALID_TAG,
        )
    block = Block(token.lineno, token.col_offset, name, tuple(head.nodes))
    parser.blocks[name] = block
    return block


def compile_extends(parser: Parser, token: Token) -> Extends:
    """Compile {% extends "base.html" %} or {% extends parent_var %}."""
    bits = token.split_contents()
    if len(bits) != 2:
        raise parser.error(
            "'extends' takes one argument", token, code=ErrorCode.INVALID_INHERITANCE
        )
    if parser.extends is not None:
        raise parser.error(
            "'extends' cannot appear more than once in the same template",
            token,
            code=ErrorCode.INVALID_INHERITANCE,
        )
    if parser.depth or parser.nontext_seen:
        raise parser.error(
            "'extends' must be the first tag in the template",
            token,
            code=ErrorCode.INVALID_INHERITANCE,
        )
    expr = parser.compile_filter(bits[1], token)
    parent_name: str | None = None
    if isinstance(expr, FilterExpr) and not expr.filters and isinstance(expr.base, Const):
        parent_name = str(expr.base.value)
    node = Extends(token.lineno, token.col_offset, expr, parent_name)
    parser.extends = node
    return node


def compile_include(parser: Parser, token: Token) -> Include:
    """Compile {% include name [with a=b ...] [only] %}."""
    bits = token.split_contents()
    if len(bits) < 2:
        raise parser.error(
            "'include' tag takes at least one argument: the name of the template "
            "to be included.",
            token,
            code=ErrorCode.INVALID_TAG,
        )
    template = parser.compile_filter(bits[1], token)
    extra: list = []
    isolated = False
    seen: set[str] = set()
    remaining = bits[2:]
    while remaining:
        option, remaining = remaining[0], remaining[1:]
        if option in seen:
            raise parser.error(
                f"The '{option}' option was specified more than once.",
                token,
                code=ErrorCode.INVALID_TAG,
            )
        seen.add(option)
        if option == "with":
            extra, remaining = parse_kwargs(parser, remaining, token)
            if not extra:
                raise parser.error(
                    "'with' in 'include' tag needs at least one keyword argument.",
                    token,
                    code=ErrorCode.INVALID_TAG,
                )
        elif option == "only":
            isolated = True
        else:
            raise parser.error(
                f"Unknown argument for 'include' tag: '{option}'.",
                token,
                code=ErrorCode.INVALID_TAG,
            )
    return Include(token.lineno, token.col_offset, template, tuple(extra), isolated)


TEMPLATE_STRUCTURE_TAGS: dict[str, TagSpec] = {
    "block": TagSpec("block", build=build_block, end=frozenset({"endblock"})),
    "extends": TagSpec("extends", compile=compile_extends),
    "include": TagSpec("include", compile=compile_include),
}
