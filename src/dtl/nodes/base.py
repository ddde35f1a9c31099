"""Base node class for the dtl node tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all nodes.

    All nodes track their source location for error reporting.
    Nodes are immutable so a compiled tree can be shared between threads.

    """

    lineno: int
    col_offset: int
