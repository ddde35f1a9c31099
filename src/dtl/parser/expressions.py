"""Variable expression parsing: ``base|filter:arg|filter``.

The text is split on ``|`` outside quoted literals; each filter segment is
split on its first ``:`` outside quotes into name and argument. The base
and arguments are classified as:

- string literal (``"..."`` or ``'...'``, backslash escapes allowed)
- translated literal (``_("...")``)
- number literal (``42``, ``-3``, ``3.5``, ``1e3``)
- dotted variable path, each segment matching ``\\w+`` and not starting
  with an underscore

"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from markupsafe import Markup

from dtl.environment.exceptions import ErrorCode
from dtl.nodes import Const, Expr, FilterCall, FilterExpr, Name, Translated
from dtl.utils.text import find_closing_quote, split_outside_quotes, unescape_string_literal

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.parser.core import Parser

_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
_PATH_RE = re.compile(r"[\w.]+")
_NUMBER_START_RE = re.compile(r"[-+]?\.?\d")
_FILTER_NAME_RE = re.compile(r"\w+")


def compile_filter(parser: Parser, text: str, token: Token) -> FilterExpr:
    """Parse a full filter expression.

    Raises:
        TemplateSyntaxError: For an empty expression, an unknown filter, a
            wrong number of filter arguments or a malformed operand.
    """
    text = text.strip()
    if not text:
        raise parser.error(
            f"Empty variable tag on line {token.lineno}",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )

    base_text, *filter_texts = split_outside_quotes(text, "|")
    base = compile_operand(parser, base_text.strip(), token, whole=text)

    filters: list[FilterCall] = []
    for segment in filter_texts:
        name, *rest = split_outside_quotes(segment.strip(), ":", maxsplit=1)
        name = name.strip()
        if not _FILTER_NAME_RE.fullmatch(name):
            raise parser.error(
                f"Could not parse the remainder: '|{segment}' from '{text}'",
                token,
                code=ErrorCode.INVALID_EXPRESSION,
            )
        spec = parser.find_filter(name, token)

        arg: Expr | None = None
        if rest:
            arg_text = rest[0].strip()
            if not arg_text:
                raise parser.error(
                    f"Expected an argument after '{name}:' in '{text}'",
                    token,
                    code=ErrorCode.INVALID_EXPRESSION,
                )
            arg = compile_operand(parser, arg_text, token, whole=text)

        provided = 0 if arg is None else 1
        if not spec.min_args <= provided <= spec.max_args:
            raise parser.error(
                f"{name} requires {spec.min_args + 1} arguments, {provided + 1} provided",
                token,
                code=ErrorCode.INVALID_FILTER,
            )
        filters.append(FilterCall(token.lineno, token.col_offset, name, spec, arg))

    return FilterExpr(token.lineno, token.col_offset, base, tuple(filters), text)


def compile_operand(
    parser: Parser,
    text: str,
    token: Token,
    *,
    whole: str | None = None,
) -> Expr:
    """Classify one operand as a literal or a variable path."""
    whole = whole or text
    if not text:
        raise parser.error(
            f"Could not parse an expression from '{whole}'",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )

    if text[0] in "'\"":
        return Const(token.lineno, token.col_offset, Markup(_string_literal(parser, text, token)))

    if text.startswith("_("):
        return _translated(parser, text, token)

    if _NUMBER_RE.fullmatch(text):
        if "." in text or "e" in text.lower():
            if text.endswith("."):
                raise parser.error(
                    f"Invalid numeric literal: '{text}'",
                    token,
                    code=ErrorCode.INVALID_EXPRESSION,
                )
            return Const(token.lineno, token.col_offset, float(text))
        return Const(token.lineno, token.col_offset, int(text))

    if _NUMBER_START_RE.match(text):
        raise parser.error(
            f"Invalid numeric literal: '{text}'",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )

    match = _PATH_RE.match(text)
    if match is None or match.end() != len(text):
        remainder = text[match.end() :] if match else text
        raise parser.error(
            f"Could not parse the remainder: '{remainder}' from '{whole}'",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    segments = text.split(".")
    if any(not segment for segment in segments):
        raise parser.error(
            f"Invalid variable path: '{text}'", token, code=ErrorCode.INVALID_EXPRESSION
        )
    if any(segment.startswith("_") for segment in segments):
        raise parser.error(
            f"Variables and attributes may not begin with underscores: '{text}'",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    return Name(token.lineno, token.col_offset, tuple(segments))


def _string_literal(parser: Parser, text: str, token: Token) -> str:
    end = find_closing_quote(text)
    if end == -1:
        raise parser.error(
            f"Expected a complete string literal: {text}",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    if end != len(text) - 1:
        raise parser.error(
            f"Could not parse the remainder: '{text[end + 1:]}' from '{text}'",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    return unescape_string_literal(text)


def _translated(parser: Parser, text: str, token: Token) -> Translated:
    inner = text[2:].strip()
    if not inner or inner[0] not in "'\"":
        raise parser.error(
            f"Expected a string literal within translation: {text}",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    end = find_closing_quote(inner)
    if end == -1 or inner[end + 1 :].strip() != ")":
        raise parser.error(
            f"Expected a complete translation string: {text}",
            token,
            code=ErrorCode.INVALID_EXPRESSION,
        )
    return Translated(token.lineno, token.col_offset, unescape_string_literal(inner[: end + 1]))
