"""Expression evaluation.

``evaluate`` turns an expression node into a value: it resolves the base
(literal, translated literal or variable path) and applies the filter
chain left to right. It never raises for template input:

- a variable path that does not resolve yields ``UNDEFINED``
- a filter that raises is logged and yields ``UNDEFINED``
- a comparison that raises inside ``{% if %}`` is false

With ``ignore_failures`` (used by ``if``, ``for`` and ``firstof``), an
undefined base becomes ``None`` and ``string_if_invalid`` does not apply.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from markupsafe import Markup

from dtl.nodes import (
    BoolOp,
    Compare,
    Const,
    FilterCall,
    FilterExpr,
    ListLiteral,
    Name,
    Not,
    Translated,
)
from dtl.resolution import UNDEFINED, resolve_path

if TYPE_CHECKING:
    from dtl.context import Context
    from dtl.environment.core import Environment
    from dtl.nodes import Expr

logger = logging.getLogger(__name__)

_COMPARISONS: dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
    "in": lambda x, y: x in y,
    "not in": lambda x, y: x not in y,
    "is": operator.is_,
    "is not": operator.is_not,
}


def evaluate(
    expr: Expr,
    context: Context,
    env: Environment,
    *,
    ignore_failures: bool = False,
) -> Any:
    """Evaluate ``expr`` against ``context``."""
    if isinstance(expr, FilterExpr):
        return _evaluate_filter_expr(expr, context, env, ignore_failures)
    if isinstance(expr, Name):
        value = resolve_path(context, expr.lookups, env.object_protocol)
        if ignore_failures and value is UNDEFINED:
            return None
        return value
    if isinstance(expr, Const):
        return expr.value
    if isinstance(expr, Translated):
        return Markup(env.gettext(expr.message))
    if isinstance(expr, ListLiteral):
        return [evaluate(item, context, env) for item in expr.items]
    if isinstance(expr, (BoolOp, Not, Compare)):
        return evaluate_condition(expr, context, env)
    raise TypeError(f"Cannot evaluate {type(expr).__name__}")


def _evaluate_filter_expr(
    expr: FilterExpr,
    context: Context,
    env: Environment,
    ignore_failures: bool,
) -> Any:
    value = evaluate(expr.base, context, env)
    if value is UNDEFINED:
        if ignore_failures:
            value = None
        elif env.string_if_invalid:
            text = expr.base.text if isinstance(expr.base, Name) else expr.token
            return env.string_if_invalid.replace("%s", text)
    for call in expr.filters:
        value = apply_filter(call, value, context, env)
    return value


def apply_filter(call: FilterCall, value: Any, context: Context, env: Environment) -> Any:
    """Apply one filter, keeping the safe mark for ``is_safe`` filters."""
    spec = call.spec
    args = [] if call.arg is None else [evaluate(call.arg, context, env)]
    kwargs = {"autoescape": context.autoescape} if spec.needs_autoescape else {}
    try:
        result = spec.func(value, *args, **kwargs)
    except Exception:
        logger.warning(
            "Filter %r raised on line %d; using undefined", spec.name, call.lineno, exc_info=True
        )
        return UNDEFINED
    if spec.is_safe and isinstance(value, Markup) and isinstance(result, str):
        return Markup(result)
    return result


def evaluate_condition(expr: Expr, context: Context, env: Environment) -> Any:
    """Evaluate an ``{% if %}`` condition.

    Undefined operands compare as ``None``; a comparison that raises is
    false.
    """
    if isinstance(expr, BoolOp):
        left = evaluate_condition(expr.left, context, env)
        if expr.op == "or":
            return left or evaluate_condition(expr.right, context, env)
        return left and evaluate_condition(expr.right, context, env)
    if isinstance(expr, Not):
        return not evaluate_condition(expr.operand, context, env)
    if isinstance(expr, Compare):
        left = evaluate_condition(expr.left, context, env)
        right = evaluate_condition(expr.right, context, env)
        try:
            return _COMPARISONS[expr.op](left, right)
        except Exception:
            return False
    value = evaluate(expr, context, env, ignore_failures=True)
    return None if value is UNDEFINED else value
