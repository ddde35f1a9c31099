"""Token types shared by the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from dtl.utils.text import smart_split


class TokenType(Enum):
    """Kinds of lexical token.

    Each construct produces exactly one token; its ``start``/``end`` offsets
    cover the opening and closing delimiters.
    """

    TEXT = "text"
    VARIABLE = "variable"
    BLOCK = "block"
    COMMENT = "comment"


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token with its source span.

    Attributes:
        type: Token kind
        value: Raw text for TEXT tokens, stripped inner contents otherwise
        start: Offset of the first character (the opening delimiter)
        end: Offset one past the last character
        lineno: 1-based line of ``start``
        col_offset: 0-based column of ``start``
    """

    type: TokenType
    value: str
    start: int
    end: int
    lineno: int
    col_offset: int

    def split_contents(self) -> list[str]:
        """Split tag contents on whitespace, keeping quoted strings whole.

        Example:
            >>> tok.value
            'include "my page.html" with a=1'
            >>> tok.split_contents()
            ['include', '"my page.html"', 'with', 'a=1']
        """
        return smart_split(self.value)

    def __repr__(self) -> str:
        preview = self.value[:20].replace("\n", "\\n")
        return f"<Token {self.type.name} {preview!r} at {self.lineno}:{self.col_offset}>"
