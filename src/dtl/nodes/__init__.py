"""dtl node tree.

Nodes are frozen dataclasses forming a strict tree: block-structured nodes
own their bodies as tuples and never reference their parent.

Categories:
- **Expressions**: Const, Translated, Name, ListLiteral, FilterExpr, BoolOp, Not, Compare
- **Output**: Data, Output, Autoescape, Spaceless
- **Control flow**: If, For, With, Cycle, FirstOf, CustomTag
- **Structure**: Block, Extends, Include, TemplateNode

"""

from dtl.nodes.base import Node
from dtl.nodes.control_flow import Cycle, CustomTag, FirstOf, For, If, With
from dtl.nodes.expressions import (
    BoolOp,
    Compare,
    Const,
    Expr,
    FilterCall,
    FilterExpr,
    ListLiteral,
    Name,
    Not,
    Translated,
)
from dtl.nodes.output import Autoescape, Data, Output, Spaceless
from dtl.nodes.structure import Block, Extends, Include, TemplateNode

__all__ = [
    "Autoescape",
    "Block",
    "BoolOp",
    "Compare",
    "Const",
    "CustomTag",
    "Data",
    "Expr",
    "Extends",
    "FilterCall",
    "FilterExpr",
    "FirstOf",
    "For",
    "If",
    "Include",
    "ListLiteral",
    "Name",
    "Node",
    "Not",
    "Output",
    "Spaceless",
    "TemplateNode",
    "Translated",
    "With",
]
