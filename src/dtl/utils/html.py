"""HTML escaping helpers built on markupsafe.

``Markup`` is the safe mark: a ``str`` subclass whose content is trusted
and never escaped again. ``escape`` always returns Markup, so escaping
twice is the same as escaping once.
"""

from __future__ import annotations

import re
from typing import Any

from markupsafe import Markup, escape

__all__ = [
    "Markup",
    "conditional_escape",
    "escape",
    "force_escape",
    "mark_safe",
    "strip_spaces_between_tags",
]

_SPACES_BETWEEN_TAGS_RE = re.compile(r">\s+<")


def mark_safe(value: Any) -> Markup:
    """Mark ``value`` as safe without escaping it."""
    if isinstance(value, Markup):
        return value
    return Markup(value)


def conditional_escape(value: Any) -> Markup:
    """Escape ``value`` unless it is already marked safe."""
    return escape(value)


def force_escape(value: Any) -> Markup:
    """Escape ``value`` even when it is marked safe."""
    return escape(str(value))


def strip_spaces_between_tags(value: str) -> str:
    """Remove whitespace between HTML tags."""
    return _SPACES_BETWEEN_TAGS_RE.sub("><", str(value).strip())
