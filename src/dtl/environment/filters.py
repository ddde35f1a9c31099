"""Built-in filters for dtl templates.

Filters transform a resolved value: `{{ value|filter }}` or
`{{ value|filter:arg }}`. Chains apply left to right.

Categories:
**String Filters**:
    - `capfirst`: First character uppercased
    - `cut(s)`: Remove every occurrence of s
    - `lower` / `upper`: Change case
    - `title`: Titlecase each word
    - `truncate(n)`: First n characters
    - `truncatechars(n)`: At most n characters, ending in an ellipsis
    - `wordcount`: Number of words

**Escaping**:
    - `escape`: Escape unless already safe
    - `force_escape`: Escape unconditionally
    - `safe`: Mark as safe (no escaping on output)

**Sequence Filters**:
    - `first` / `last`: First or last item
    - `join(sep)`: Join items, escaping each when autoescape is on
    - `length`: Number of items

**Defaults and Logic**:
    - `add(n)`: Numeric addition, falling back to concatenation
    - `default(v)`: v when the value is falsy
    - `default_if_none(v)`: v when the value is None
    - `yesno("yes,no,maybe")`: Map True/False/None to words

Every built-in filter is total: bad input yields a fallback value, never an
exception.

Safety:
A filter flagged ``is_safe`` keeps the safe mark when its input had it and
its output is a string. Filters wrapped in ``stringfilter`` receive a plain
``str``, so their own output is unmarked unless they mark it.

Custom Filters:
    >>> @env.filter(is_safe=True)
    ... def shout(value):
    ...     return str(value).upper() + "!"
    >>> # {{ name|shout }}

"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from typing import Any

from dtl.environment.registry import FilterSpec
from dtl.utils.html import Markup, conditional_escape, force_escape, mark_safe

F = Callable[..., Any]


def stringfilter(func: F) -> F:
    """Coerce the filter's first argument to a plain ``str``."""

    @functools.wraps(func)
    def wrapper(value: Any, *args: Any, **kwargs: Any) -> Any:
        return func(str.__str__(str(value)), *args, **kwargs)

    return wrapper


def _flags(*, is_safe: bool = False, needs_autoescape: bool = False) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        func.is_safe = is_safe  # type: ignore[attr-defined]
        func.needs_autoescape = needs_autoescape  # type: ignore[attr-defined]
        return func

    return decorator


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# -- string filters ----------------------------------------------------------


@_flags(is_safe=True)
@stringfilter
def _filter_capfirst(value: str) -> str:
    """Capitalize the first character."""
    return value[:1].upper() + value[1:]


@stringfilter
def _filter_cut(value: str, arg: Any) -> str:
    """Remove all occurrences of ``arg``."""
    return value.replace(str(arg), "")


@_flags(is_safe=True)
@stringfilter
def _filter_lower(value: str) -> str:
    return value.lower()


@stringfilter
def _filter_upper(value: str) -> str:
    return value.upper()


@_flags(is_safe=True)
@stringfilter
def _filter_title(value: str) -> str:
    """Titlecase, without capitalizing after apostrophes or digits."""
    titled = re.sub(r"([a-z])'([A-Z])", lambda m: m[0].lower(), value.title())
    return re.sub(r"\d([A-Z])", lambda m: m[0].lower(), titled)


@stringfilter
def _filter_truncate(value: str, arg: Any) -> str:
    """Plain cut to ``arg`` characters."""
    length = _to_int(arg)
    if length is None:
        return value
    return value[: max(length, 0)]


@_flags(is_safe=True)
@stringfilter
def _filter_truncatechars(value: str, arg: Any) -> str:
    """Truncate to ``arg`` characters including a trailing ellipsis."""
    length = _to_int(arg)
    if length is None:
        return value
    if length <= 0:
        return ""
    if len(value) <= length:
        return value
    return value[: length - 1] + "…"


@stringfilter
def _filter_wordcount(value: str) -> int:
    return len(value.split())


# -- escaping ----------------------------------------------------------------


@_flags(is_safe=True)
def _filter_escape(value: Any) -> Markup:
    """Escape, leaving already-safe values untouched."""
    return conditional_escape(value)


@_flags(is_safe=True)
def _filter_force_escape(value: Any) -> Markup:
    return force_escape(value)


@_flags(is_safe=True)
@stringfilter
def _filter_safe(value: str) -> Markup:
    return mark_safe(value)


# -- sequences ---------------------------------------------------------------


def _filter_first(value: Any) -> Any:
    try:
        return value[0]
    except (IndexError, KeyError, TypeError):
        return ""


def _filter_last(value: Any) -> Any:
    try:
        return value[-1]
    except (IndexError, KeyError, TypeError):
        return ""


@_flags(is_safe=True, needs_autoescape=True)
def _filter_join(value: Any, arg: Any, autoescape: bool = True) -> Any:
    """Join items with ``arg``.

    With autoescape on, the separator and each item are escaped unless
    already safe. A non-iterable value is returned unchanged.
    """
    try:
        if autoescape:
            return conditional_escape(arg).join(conditional_escape(v) for v in value)
        return mark_safe(str(arg).join(str(v) for v in value))
    except TypeError:
        return value


@_flags(is_safe=True)
def _filter_length(value: Any) -> int:
    try:
        return len(value)
    except (TypeError, ValueError):
        return 0


# -- defaults and logic --------------------------------------------------------


def _filter_add(value: Any, arg: Any) -> Any:
    """Add as integers when both sides convert, otherwise with ``+``."""
    try:
        return int(value) + int(arg)
    except (TypeError, ValueError):
        try:
            return value + arg
        except Exception:
            return ""


def _filter_default(value: Any, arg: Any) -> Any:
    return value or arg


def _filter_default_if_none(value: Any, arg: Any) -> Any:
    if value is None:
        return arg
    return value


def _filter_yesno(value: Any, arg: Any = None) -> Any:
    """Map truthy / falsy / None to words from ``"yes,no,maybe"``.

    With only two words, None maps to the second. With fewer than two,
    the value is returned unchanged.
    """
    bits = str(arg if arg is not None else "yes,no,maybe").split(",")
    if len(bits) < 2:
        return value
    if len(bits) == 2:
        yes, no, maybe = bits[0], bits[1], bits[1]
    else:
        yes, no, maybe = bits[0], bits[1], bits[2]
    if value is None:
        return maybe
    if value:
        return yes
    return no


_BUILTIN_FILTERS: dict[str, F] = {
    "add": _filter_add,
    "capfirst": _filter_capfirst,
    "cut": _filter_cut,
    "default": _filter_default,
    "default_if_none": _filter_default_if_none,
    "escape": _filter_escape,
    "first": _filter_first,
    "force_escape": _filter_force_escape,
    "join": _filter_join,
    "last": _filter_last,
    "length": _filter_length,
    "lower": _filter_lower,
    "safe": _filter_safe,
    "title": _filter_title,
    "truncate": _filter_truncate,
    "truncatechars": _filter_truncatechars,
    "upper": _filter_upper,
    "wordcount": _filter_wordcount,
    "yesno": _filter_yesno,
}

# Default filters
DEFAULT_FILTERS: dict[str, FilterSpec] = {
    name: FilterSpec.from_function(name, func) for name, func in _BUILTIN_FILTERS.items()
}
