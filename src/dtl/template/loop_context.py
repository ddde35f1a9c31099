"""Loop iteration metadata for dtl ``{% for %}`` blocks."""

from __future__ import annotations

from typing import Any


class ForLoop:
    """Loop metadata accessible as `forloop` inside `{% for %}` blocks.

    Properties:
        counter: 1-based iteration count (1, 2, 3, ...)
        counter0: 0-based iteration count (0, 1, 2, ...)
        revcounter: Iterations left including this one (counts down to 1)
        revcounter0: Iterations left after this one (counts down to 0)
        first: True on the first iteration
        last: True on the final iteration
        length: Total number of items
        parentloop: The enclosing loop's `forloop` (``{}`` at the outermost level)

    Example:
            ```django
            {% for row in rows %}
                {% for cell in row %}
                    {{ forloop.parentloop.counter }}.{{ forloop.counter }}
                {% endfor %}
            {% endfor %}
            ```

    """

    __slots__ = ("_index", "_length", "parentloop")

    def __init__(self, length: int, parentloop: Any = None) -> None:
        self._length = length
        self._index = 0
        self.parentloop = parentloop if parentloop is not None else {}

    def advance(self, index: int) -> None:
        """Move to the ``index``-th item (0-based)."""
        self._index = index

    @property
    def counter(self) -> int:
        return self._index + 1

    @property
    def counter0(self) -> int:
        return self._index

    @property
    def revcounter(self) -> int:
        return self._length - self._index

    @property
    def revcounter0(self) -> int:
        return self._length - self._index - 1

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return self._index == self._length - 1

    @property
    def length(self) -> int:
        return self._length

    def __repr__(self) -> str:
        return f"<ForLoop {self.counter}/{self._length}>"
