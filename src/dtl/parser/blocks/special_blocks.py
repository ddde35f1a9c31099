"""Special block tags: autoescape, spaceless, comment, verbatim."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dtl.environment.exceptions import ErrorCode
from dtl.environment.registry import TagSpec
from dtl.nodes import Autoescape, Data, Spaceless

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.parser.core import Parser, Section


def build_autoescape(parser: Parser, sections: list[Section], end: Token) -> Autoescape:
    """Build {% autoescape on|off %}...{% endautoescape %}."""
    head = sections[0]
    token = head.token
    if len(head.bits) != 2:
        raise parser.error(
            "'autoescape' tag requires exactly one argument.", token, code=ErrorCode.INVALID_TAG
        )
    arg = head.bits[1]
    if arg not in ("on", "off"):
        raise parser.error(
            "'autoescape' argument should be 'on' or 'off'", token, code=ErrorCode.INVALID_TAG
        )
    return Autoescape(token.lineno, token.col_offset, arg == "on", tuple(head.nodes))


def build_spaceless(parser: Parser, sections: list[Section], end: Token) -> Spaceless:
    head = sections[0]
    token = head.token
    if len(head.bits) != 1:
        raise parser.error(
            "'spaceless' tag takes no arguments", token, code=ErrorCode.INVALID_TAG
        )
    return Spaceless(token.lineno, token.col_offset, tuple(head.nodes))


def build_comment(parser: Parser, sections: list[Section], end: Token) -> None:
    """{% comment %} bodies produce no node at all."""
    return None


def build_verbatim(parser: Parser, sections: list[Section], end: Token) -> Data:
    """Join the raw body of {% verbatim %} back into one Data node."""
    token = sections[0].token
    text = "".join(node.value for node in sections[0].nodes if isinstance(node, Data))
    return Data(token.lineno, token.col_offset, text)


SPECIAL_TAGS: dict[str, TagSpec] = {
    "autoescape": TagSpec("autoescape", build=build_autoescape, end=frozenset({"endautoescape"})),
    "spaceless": TagSpec("spaceless", build=build_spaceless, end=frozenset({"endspaceless"})),
    "comment": TagSpec("comment", build=build_comment, end=frozenset({"endcomment"}), raw=True),
    "verbatim": TagSpec("verbatim", build=build_verbatim, end=frozenset({"endverbatim"}), raw=True),
}
