"""Variable resolution: the undefined value and the host object protocol.

Dotted lookups such as ``{{ user.orders.0.total }}`` resolve one segment at a
time. For each segment the first rule that succeeds wins:

1. mapping-key lookup (``value["orders"]``)
2. attribute lookup (``value.orders``)
3. sequence-index lookup when the segment is a non-negative integer (``value[0]``)

After each segment, a callable result is invoked with no arguments unless it
is marked ``do_not_call_in_templates``; a callable marked ``alters_data``
resolves to undefined.

Resolution never raises. A failed lookup, and any exception escaping the
host object (a HostProtocolFailure), yields ``UNDEFINED``.

Thread-Safety:
Resolution reads its inputs only; ObjectProtocol holds no state.

"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dtl.context import Context

logger = logging.getLogger(__name__)


class Undefined:
    """The value of a variable path that failed to resolve.

    Falsy, empty, zero-length and iterable-as-empty, so it renders as ``""``
    and takes the ``{% empty %}`` branch of a loop. There is one instance,
    ``UNDEFINED``.
    """

    __slots__ = ()

    _instance: Undefined | None = None

    def __new__(cls) -> Undefined:
        if cls._instance is None:
            cls._instance = object.__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self) -> Iterator[Any]:
        return iter(())

    def __str__(self) -> str:
        return ""

    def __html__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = Undefined()

# Sentinel for "this capability does not apply / the lookup missed".
MISSING: Any = object()

_LOOKUP_ERRORS = (TypeError, AttributeError, KeyError, ValueError, IndexError)


class ObjectProtocol:
    """Capability probes used to look into host objects.

    Each probe returns the found value, or ``MISSING`` when the capability
    does not apply or the lookup misses. Probes may raise for unexpected
    failures; the resolver treats those as a miss.

    Subclass to adapt resolution to a host framework, e.g. to expose lazy
    model fields:

        >>> class ModelProtocol(ObjectProtocol):
        ...     def get_attr(self, obj, name):
        ...         if isinstance(obj, Model) and name in obj.deferred:
        ...             return obj.load(name)
        ...         return super().get_attr(obj, name)
        >>> env = Environment(object_protocol=ModelProtocol())
    """

    __slots__ = ()

    def get_item(self, obj: Any, key: str) -> Any:
        """Mapping-key lookup."""
        if isinstance(obj, (str, bytes, Sequence)) or not hasattr(obj, "__getitem__"):
            return MISSING
        try:
            return obj[key]
        except _LOOKUP_ERRORS:
            return MISSING

    def get_attr(self, obj: Any, name: str) -> Any:
        """Attribute lookup."""
        try:
            return getattr(obj, name)
        except AttributeError:
            return MISSING

    def get_index(self, obj: Any, index: int) -> Any:
        """Sequence-index lookup."""
        if not hasattr(obj, "__getitem__"):
            return MISSING
        try:
            return obj[index]
        except _LOOKUP_ERRORS:
            return MISSING

    def call(self, obj: Any) -> Any:
        """Zero-argument invocation of a callable member."""
        if getattr(obj, "do_not_call_in_templates", False):
            return obj
        if getattr(obj, "alters_data", False):
            return UNDEFINED
        try:
            return obj()
        except TypeError:
            # Requires arguments: not callable from a template
            return UNDEFINED


DEFAULT_PROTOCOL = ObjectProtocol()


def lookup_segment(current: Any, segment: str, protocol: ObjectProtocol) -> Any:
    """Apply the mapping → attribute → index rules for one path segment."""
    value = protocol.get_item(current, segment)
    if value is not MISSING:
        return value
    value = protocol.get_attr(current, segment)
    if value is not MISSING:
        return value
    if segment.isdigit():
        return protocol.get_index(current, int(segment))
    return MISSING


def resolve_path(
    context: Context,
    lookups: Sequence[str],
    protocol: ObjectProtocol = DEFAULT_PROTOCOL,
) -> Any:
    """Resolve a dotted path against ``context``.

    Args:
        context: Scope stack to search for the first segment
        lookups: Path segments, e.g. ``("user", "name")``
        protocol: Host object protocol used for the remaining segments

    Returns:
        The resolved value, or ``UNDEFINED``.
    """
    first, *rest = lookups
    current = context.get(first, MISSING)
    if current is MISSING:
        return UNDEFINED
    try:
        if callable(current):
            current = protocol.call(current)
        for segment in rest:
            if current is UNDEFINED:
                return UNDEFINED
            current = lookup_segment(current, segment, protocol)
            if current is MISSING:
                return UNDEFINED
            if callable(current):
                current = protocol.call(current)
    except Exception:
        logger.debug("Lookup of %r failed in host object", ".".join(lookups), exc_info=True)
        return UNDEFINED
    return current
