"""dtl parser: tokens → node tree."""

from dtl.parser.core import Parser, Section

__all__ = ["Parser", "Section"]
