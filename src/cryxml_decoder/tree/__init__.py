"""Tree reconstruction for CryXmlB decoding.

This module rebuilds a document tree from decoded CryXmlB tables.

Key Components:
    HierarchyBuilder: Breadth-first reconstruction through the hierarchy table
    ElementBuilder: Node record plus attributes to element, with namespace rules
    ElementArena: Index-based store the hierarchy is built into
    XMLDocument: Root document container with metadata and navigation
    XMLElement: Individual element with namespace, attributes, text and children
    DecodeResult: Result object with document, diagnostics and metrics
"""

from .builder import (
    XMLNS_ATTRIBUTE,
    DecodeResult,
    ElementArena,
    ElementBuilder,
    HierarchyBuilder,
)
from .document import (
    XMLAttribute,
    XMLDocument,
    XMLElement,
    clark_name,
)

__all__ = [
    "XMLNS_ATTRIBUTE",
    "DecodeResult",
    "ElementArena",
    "ElementBuilder",
    "HierarchyBuilder",
    "XMLAttribute",
    "XMLDocument",
    "XMLElement",
    "clark_name",
]
