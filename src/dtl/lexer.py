"""Lexer: template source → token stream.

Splits source into TEXT runs and ``{{ }}``, ``{% %}`` and ``{# #}``
constructs in a single forward pass. Delimiters are recognized greedily and
never nest; the parser deals with block structure.

After a ``{% verbatim %}`` (or ``{% verbatim name %}``) tag the lexer stops
recognizing delimiters until the matching ``{% endverbatim %}`` (or
``{% endverbatim name %}``), emitting the enclosed source as a single TEXT
token.

Example:
    >>> [t.type.name for t in tokenize("Hi {{ name }}!")]
    ['TEXT', 'VARIABLE', 'TEXT']

"""

from __future__ import annotations

import re
from collections.abc import Iterator

from dtl._types import Token, TokenType
from dtl.environment.exceptions import ErrorCode, TemplateSyntaxError

_OPEN_RE = re.compile(r"\{[{%#]")
_VERBATIM_TAG_RE = re.compile(r"\{%(.*?)%\}", re.DOTALL)

_CLOSERS: dict[str, tuple[str, TokenType, ErrorCode, str]] = {
    "{{": ("}}", TokenType.VARIABLE, ErrorCode.UNCLOSED_VARIABLE, "variable"),
    "{%": ("%}", TokenType.BLOCK, ErrorCode.UNCLOSED_TAG, "tag"),
    "{#": ("#}", TokenType.COMMENT, ErrorCode.UNCLOSED_COMMENT, "comment"),
}

DELIMITER_LEN = 2


class Lexer:
    """Single-pass, lazy tokenizer for one template source.

    Iterating a Lexer yields tokens as they are found; it is not restartable.

    Attributes:
        source: The full template text
        name: Template name used in error messages
    """

    __slots__ = ("_line_start", "_lineno", "_scanned", "name", "source")

    def __init__(self, source: str, name: str | None = None):
        self.source = source
        self.name = name
        self._lineno = 1
        self._line_start = 0
        self._scanned = 0

    def _position(self, offset: int) -> tuple[int, int]:
        """Line and column of ``offset``; offsets must be non-decreasing."""
        newlines = self.source.count("\n", self._scanned, offset)
        if newlines:
            self._lineno += newlines
            self._line_start = self.source.rfind("\n", self._scanned, offset) + 1
        self._scanned = offset
        return self._lineno, offset - self._line_start

    def _token(self, type_: TokenType, value: str, start: int, end: int) -> Token:
        lineno, col = self._position(start)
        return Token(type_, value, start, end, lineno, col)

    def _error(self, message: str, offset: int, code: ErrorCode) -> TemplateSyntaxError:
        lineno, col = self._position(offset)
        return TemplateSyntaxError(
            message,
            lineno=lineno,
            name=self.name,
            source=self.source,
            col_offset=col,
            code=code,
        )

    def __iter__(self) -> Iterator[Token]:
        source = self.source
        pos = 0
        length = len(source)
        while pos < length:
            match = _OPEN_RE.search(source, pos)
            if match is None:
                yield self._token(TokenType.TEXT, source[pos:], pos, length)
                return
            start = match.start()
            if start > pos:
                yield self._token(TokenType.TEXT, source[pos:start], pos, start)

            closer, type_, code, label = _CLOSERS[match.group()]
            close = source.find(closer, start + DELIMITER_LEN)
            if close == -1:
                raise self._error(
                    f"Unclosed {label}: '{match.group()}' has no matching '{closer}'",
                    start,
                    code,
                )
            end = close + DELIMITER_LEN
            contents = source[start + DELIMITER_LEN : close].strip()
            yield self._token(type_, contents, start, end)
            pos = end

            if type_ is TokenType.BLOCK and (
                contents == "verbatim" or contents.startswith("verbatim ")
            ):
                pos = yield from self._lex_verbatim(contents, pos)

    def _lex_verbatim(self, opener: str, pos: int) -> Iterator[Token]:
        """Emit everything up to the matching endverbatim as one TEXT token.

        Returns the offset where normal lexing resumes. If no matching closer
        exists the rest of the source is text and the parser reports the
        unclosed ``verbatim`` tag.
        """
        source = self.source
        wanted = "end" + opener
        for match in _VERBATIM_TAG_RE.finditer(source, pos):
            if match.group(1).strip() != wanted:
                continue
            if match.start() > pos:
                yield self._token(TokenType.TEXT, source[pos : match.start()], pos, match.start())
            yield self._token(TokenType.BLOCK, wanted, match.start(), match.end())
            return match.end()
        if pos < len(source):
            yield self._token(TokenType.TEXT, source[pos:], pos, len(source))
        return len(source)


def tokenize(source: str, name: str | None = None) -> list[Token]:
    """Tokenize ``source`` eagerly.

    Raises:
        TemplateSyntaxError: For an unterminated ``{{``, ``{%`` or ``{#``,
            located at the opening delimiter.
    """
    return list(Lexer(source, name))
