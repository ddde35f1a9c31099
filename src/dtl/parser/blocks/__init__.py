"""Built-in tag catalog.

Each module contributes a name → TagSpec mapping; ``DEFAULT_TAGS`` merges
them into the set every Environment starts with.
"""

from __future__ import annotations

from dtl.environment.registry import TagSpec
from dtl.parser.blocks.control_flow import CONTROL_FLOW_TAGS, parse_kwargs
from dtl.parser.blocks.special_blocks import SPECIAL_TAGS
from dtl.parser.blocks.template_structure import TEMPLATE_STRUCTURE_TAGS

DEFAULT_TAGS: dict[str, TagSpec] = {
    **CONTROL_FLOW_TAGS,
    **TEMPLATE_STRUCTURE_TAGS,
    **SPECIAL_TAGS,
}

__all__ = ["DEFAULT_TAGS", "parse_kwargs"]
