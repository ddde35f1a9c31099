"""Condition parsing for ``{% if %}`` / ``{% elif %}``.

Top-down operator precedence parser over the tag's words. Binding power,
loosest first:

    or < and < not (prefix) < in, not in < is, is not, ==, !=, <, >, <=, >=

Operands are full filter expressions, so ``{% if items|length > 2 %}``
works. Operators must be separated from operands by whitespace.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dtl.environment.exceptions import ErrorCode
from dtl.nodes import BoolOp, Compare, Not

if TYPE_CHECKING:
    from dtl._types import Token
    from dtl.environment.exceptions import TemplateSyntaxError
    from dtl.nodes import Expr
    from dtl.parser.core import Parser

_INFIX_BINDING: dict[str, int] = {
    "or": 6,
    "and": 7,
    "in": 9,
    "not in": 9,
    "is": 10,
    "is not": 10,
    "==": 10,
    "!=": 10,
    ">": 10,
    ">=": 10,
    "<": 10,
    "<=": 10,
}
_NOT_BINDING = 8


def _merge_operators(bits: list[str]) -> list[str]:
    """Join the two-word operators ``not in`` and ``is not``."""
    merged: list[str] = []
    i = 0
    while i < len(bits):
        bit = bits[i]
        nxt = bits[i + 1] if i + 1 < len(bits) else None
        if bit == "not" and nxt == "in":
            merged.append("not in")
            i += 2
        elif bit == "is" and nxt == "not":
            merged.append("is not")
            i += 2
        else:
            merged.append(bit)
            i += 1
    return merged


class ConditionParser:
    """Parse condition words into BoolOp / Not / Compare / FilterExpr nodes."""

    __slots__ = ("_parser", "_pos", "_token", "_words")

    def __init__(self, parser: Parser, bits: list[str], token: Token):
        self._parser = parser
        self._token = token
        self._words = _merge_operators(bits)
        self._pos = 0

    def parse(self) -> Expr:
        expr = self._expression(0)
        if self._pos < len(self._words):
            raise self._error(f"Unused '{self._words[self._pos]}' at end of if expression.")
        return expr

    def _error(self, message: str) -> TemplateSyntaxError:
        return self._parser.error(message, self._token, code=ErrorCode.INVALID_EXPRESSION)

    def _peek(self) -> str | None:
        return self._words[self._pos] if self._pos < len(self._words) else None

    def _next(self) -> str | None:
        word = self._peek()
        self._pos += 1
        return word

    def _expression(self, rbp: int) -> Expr:
        left = self._nud(self._next())
        while (word := self._peek()) is not None and _INFIX_BINDING.get(word, 0) > rbp:
            self._pos += 1
            left = self._led(word, left)
        return left

    def _nud(self, word: str | None) -> Expr:
        if word is None:
            raise self._error("Unexpected end of expression in if tag.")
        token = self._token
        if word == "not":
            return Not(token.lineno, token.col_offset, self._expression(_NOT_BINDING))
        if word in _INFIX_BINDING:
            raise self._error(f"Not expecting '{word}' in this position in if tag.")
        return self._parser.compile_filter(word, token)

    def _led(self, op: str, left: Expr) -> Expr:
        right = self._expression(_INFIX_BINDING[op])
        token = self._token
        if op in ("and", "or"):
            return BoolOp(token.lineno, token.col_offset, op, left, right)
        return Compare(token.lineno, token.col_offset, op, left, right)
