"""``simple_tag``: turn a plain function into a template tag.

    >>> @env.simple_tag
    ... def greet(name, punctuation="!"):
    ...     return f"Hello, {name}{punctuation}"
    >>> # {% greet user.name punctuation="?" %}
    >>> # {% greet user.name as greeting %}{{ greeting }}

Positional arguments come first, then ``name=value`` keyword arguments.
Both are full filter expressions. The call is checked against the
function's signature when the template compiles.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from dtl.environment.exceptions import ErrorCode
from dtl.environment.registry import TagSpec
from dtl.nodes import CustomTag
from dtl.parser.blocks.control_flow import parse_kwargs

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.context import Context
    from dtl.nodes import Expr
    from dtl.parser.core import Parser
    from dtl.template.renderer import Renderer

_KWARG_RE = re.compile(r"\w+=.+", re.DOTALL)


def simple_tag_spec(
    name: str,
    func: Callable[..., Any],
    *,
    takes_context: bool = False,
) -> TagSpec:
    """Build the TagSpec for a simple tag wrapping ``func``."""
    signature = inspect.signature(func)
    if takes_context:
        params = list(signature.parameters.values())
        if not params or params[0].name != "context":
            raise TypeError(
                f"Tag '{name}' is registered with takes_context=True, so its first "
                f"argument must be 'context'"
            )
        signature = signature.replace(parameters=params[1:])

    def compile_simple_tag(parser: Parser, token: Token) -> CustomTag:
        bits = token.split_contents()[1:]
        target: str | None = None
        if len(bits) >= 2 and bits[-2] == "as":
            target = bits[-1]
            bits = bits[:-2]

        args: list[Expr] = []
        while bits and not _KWARG_RE.fullmatch(bits[0]):
            args.append(parser.compile_filter(bits[0], token))
            bits = bits[1:]
        kwarg_list, rest = parse_kwargs(parser, bits, token)
        if rest:
            raise parser.error(
                f"'{name}' received a positional argument after a keyword argument: '{rest[0]}'",
                token,
                code=ErrorCode.INVALID_TAG,
            )
        kwargs = dict(kwarg_list)
        try:
            signature.bind(*args, **kwargs)
        except TypeError as exc:
            raise parser.error(
                f"'{name}' {exc}", token, code=ErrorCode.INVALID_TAG
            ) from None

        def render(context: Context, renderer: Renderer) -> str:
            values = [renderer.evaluate(arg, context) for arg in args]
            options = {key: renderer.evaluate(expr, context) for key, expr in kwargs.items()}
            if takes_context:
                result = func(context, *values, **options)
            else:
                result = func(*values, **options)
            if target is not None:
                context[target] = result
                return ""
            return renderer.render_value(result, context)

        return CustomTag(token.lineno, token.col_offset, name, render)

    return TagSpec(name, compile=compile_simple_tag)
