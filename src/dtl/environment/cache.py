"""Compiled-template cache with single-flight compilation.

Hits read a plain dict without locking. A miss registers an in-flight
entry for the name under one short-held lock; concurrent callers for the
same name wait on that entry's event and reuse its result instead of
compiling again. Different names compile fully in parallel.

A failed compilation is re-raised to the caller and every waiter, and is
not retained: the next request compiles again.

Example:
    >>> cache = TemplateCache()
    >>> template = cache.get_or_compile("page.html", lambda: env.from_string(source))
    >>> cache.compile_count
    1

"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dtl.template import Template

logger = logging.getLogger(__name__)


class _Flight:
    """One in-progress compilation that other threads can wait on."""

    __slots__ = ("done", "error", "result")

    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Template | None = None
        self.error: BaseException | None = None


class TemplateCache:
    """Name → compiled Template, with at most one compilation per name in flight.

    Attributes:
        on_compile: Optional hook called with the name before each compilation
    """

    __slots__ = ("_compile_count", "_entries", "_in_flight", "_lock", "on_compile")

    def __init__(self, on_compile: Callable[[str], Any] | None = None):
        self._entries: dict[str, Template] = {}
        self._in_flight: dict[str, _Flight] = {}
        self._lock = threading.Lock()
        self._compile_count = 0
        self.on_compile = on_compile

    def get_or_compile(self, name: str, compile: Callable[[], Template]) -> Template:
        """Return the cached template for ``name``, compiling it on a miss.

        Args:
            name: Template identity
            compile: Zero-argument callable producing the Template

        Raises:
            Whatever ``compile`` raises (TemplateNotFoundError,
            TemplateSyntaxError, ...), for the compiling caller and for
            every caller that waited on it.
        """
        template = self._entries.get(name)
        if template is not None:
            return template

        with self._lock:
            template = self._entries.get(name)
            if template is not None:
                return template
            flight = self._in_flight.get(name)
            owner = flight is None
            if flight is None:
                flight = self._in_flight[name] = _Flight()
                self._compile_count += 1

        if not owner:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            assert flight.result is not None
            return flight.result

        try:
            if self.on_compile is not None:
                self.on_compile(name)
            logger.debug("Compiling template %r", name)
            template = compile()
        except BaseException as exc:
            flight.error = exc
            with self._lock:
                del self._in_flight[name]
            flight.done.set()
            raise

        flight.result = template
        with self._lock:
            self._entries[name] = template
            del self._in_flight[name]
        flight.done.set()
        logger.debug("Compiled template %r", name)
        return template

    @property
    def compile_count(self) -> int:
        """Number of compilations started through this cache."""
        return self._compile_count

    def get(self, name: str) -> Template | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def invalidate(self, name: str | None = None) -> None:
        """Drop ``name``, or every entry when ``name`` is None.

        In-flight compilations are not affected.
        """
        with self._lock:
            if name is None:
                self._entries.clear()
            else:
                self._entries.pop(name, None)

    def cache_info(self) -> dict[str, int]:
        """Return ``size``, ``in_flight`` and ``compile_count``."""
        return {
            "size": len(self._entries),
            "in_flight": len(self._in_flight),
            "compile_count": self._compile_count,
        }
