"""Text helpers for tag contents and string literals."""

from __future__ import annotations

import re

# Whitespace-separated chunks, keeping "quoted" and 'quoted' runs (with
# backslash escapes) together, also when glued to surrounding text such as
# with="a b" or _("a b").
_SMART_SPLIT_RE = re.compile(
    r"""
    ((?:
        [^\s'"]*
        (?:
            (?:"(?:[^"\\]|\\.)*" | '(?:[^'\\]|\\.)*')
            [^\s'"]*
        )+
    ) | \S+)
    """,
    re.VERBOSE,
)


def smart_split(text: str) -> list[str]:
    """Split on whitespace outside of quoted strings."""
    return [m.group(0) for m in _SMART_SPLIT_RE.finditer(text)]


def split_outside_quotes(text: str, sep: str, maxsplit: int = -1) -> list[str]:
    """Split ``text`` on ``sep`` characters that are not inside a quoted string.

    Backslash escapes inside quotes are honoured. An unterminated quote runs
    to the end of the text; the caller reports it when classifying the part.
    """
    parts: list[str] = []
    quote: str | None = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote is not None:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == sep and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return parts


def find_closing_quote(text: str) -> int:
    """Return the index of the quote closing the literal opened at ``text[0]``.

    Returns -1 if the literal is not terminated.
    """
    quote = text[0]
    i = 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


def unescape_string_literal(literal: str) -> str:
    """Strip the quotes of a string literal and undo its escapes.

    Example:
        >>> unescape_string_literal('"abc"')
        'abc'
        >>> unescape_string_literal("'a \\\\'b\\\\' c'")
        "a 'b' c"
    """
    quote = literal[0]
    if quote not in "'\"" or literal[-1] != quote or len(literal) < 2:
        raise ValueError(f"Not a string literal: {literal!r}")
    return literal[1:-1].replace(f"\\{quote}", quote).replace("\\\\", "\\")
