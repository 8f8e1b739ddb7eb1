"""Tree reconstruction from CryXmlB tables.

This module turns decoded node and attribute records into document
elements and reassembles the element hierarchy from the flattened hierarchy
table, breadth-first from the root node.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple

from cryxml_decoder.binary import (
    AttributeRecord,
    CryXmlTables,
    DecodeError,
    NodeRecord,
)
from cryxml_decoder.shared import (
    DecodeMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)

from .document import XMLAttribute, XMLDocument, XMLElement

XMLNS_ATTRIBUTE = "xmlns"


class ElementArena:
    """Append-only store of elements with children tracked by index.

    Element ids are positions in ``elements``; the first element added is
    the root.
    """

    root_id = 0

    def __init__(self) -> None:
        self.elements: List[XMLElement] = []
        self.children: List[List[int]] = []
        self.depths: List[int] = []

    def __len__(self) -> int:
        return len(self.elements)

    def add(self, element: XMLElement, parent_id: Optional[int] = None) -> int:
        """Append ``element``, as the next child of ``parent_id`` if given."""
        element_id = len(self.elements)
        self.elements.append(element)
        self.children.append([])

        if parent_id is None:
            self.depths.append(0)
        else:
            self.depths.append(self.depths[parent_id] + 1)
            self.children[parent_id].append(element_id)
            self.elements[parent_id].add_child(element)

        return element_id

    @property
    def root(self) -> Optional[XMLElement]:
        return self.elements[self.root_id] if self.elements else None

    def children_of(self, element_id: int) -> List[int]:
        return list(self.children[element_id])

    def depth_of(self, element_id: int) -> int:
        return self.depths[element_id]


class ElementBuilder:
    """Builds one element from a node record and its attribute records.

    An ``xmlns`` attribute sets the element's own namespace and is not kept
    as an attribute. A prefixed attribute name ``prefix:local`` is kept with
    the literal prefix as its namespace; prefixes are not resolved against
    ``xmlns:prefix`` declarations. The namespace is not inherited by
    children.
    """

    def build(
        self, node: NodeRecord, attributes: Sequence[AttributeRecord]
    ) -> XMLElement:
        if not node.tag_name:
            raise DecodeError(f"Node {node.index} has an empty tag name")

        namespace = ""
        element_attributes: List[XMLAttribute] = []
        for attribute in attributes:
            if attribute.name == XMLNS_ATTRIBUTE:
                namespace = attribute.value
            elif ":" in attribute.name:
                prefix, _, local_name = attribute.name.partition(":")
                element_attributes.append(
                    XMLAttribute(name=local_name, value=attribute.value, namespace=prefix)
                )
            else:
                element_attributes.append(
                    XMLAttribute(name=attribute.name, value=attribute.value)
                )

        return XMLElement(
            tag=node.tag_name,
            namespace=namespace,
            attributes=element_attributes,
            text=node.value or None,
        )


class HierarchyBuilder:
    """Reassembles the element tree from the hierarchy table.

    Node 0 is the root and is never listed in the hierarchy table. Each node
    lists its children in hierarchy slots ``[first_children_reference,
    first_children_reference + children_number)``; every slot holds a node
    table index. Children are attached in slot order, which is document
    order.

    Input is trusted: a hierarchy table that references a node twice or
    points back at an ancestor is not detected.
    """

    def __init__(
        self,
        tables: CryXmlTables,
        element_builder: Optional[ElementBuilder] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.tables = tables
        self.element_builder = element_builder or ElementBuilder()
        self.logger = get_logger(__name__, correlation_id, "hierarchy_builder")

    def _build_element(self, node: NodeRecord) -> XMLElement:
        attributes = self.tables.attributes.read_for(node)
        return self.element_builder.build(node, attributes)

    def build(self) -> ElementArena:
        """Decode every reachable node into an arena rooted at node 0."""
        arena = ElementArena()
        root = self.tables.read_root()
        root_id = arena.add(self._build_element(root))

        queue: Deque[Tuple[NodeRecord, int]] = deque([(root, root_id)])
        while queue:
            node, element_id = queue.popleft()
            for child_index in self.tables.hierarchy.children_of(node):
                child = self.tables.nodes.read(child_index)
                child_id = arena.add(self._build_element(child), parent_id=element_id)

                if child.has_children:
                    queue.append((child, child_id))

        self.logger.debug(
            "Hierarchy rebuilt",
            extra={"element_count": len(arena), "max_depth": max(arena.depths)},
        )
        return arena


@dataclass
class DecodeResult:
    """Outcome of decoding one input.

    On failure ``document`` is ``None``; partial trees are never returned.
    """

    document: Optional[XMLDocument] = None
    success: bool = True
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: DecodeMetrics = field(default_factory=DecodeMetrics)
    source: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def tree(self) -> Optional[XMLDocument]:
        return self.document

    @property
    def element_count(self) -> int:
        return self.document.total_elements if self.document else 0

    @property
    def processing_time_ms(self) -> float:
        return self.metrics.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        offset: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                offset=offset,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for reporting."""
        return {
            "source": self.source,
            "success": self.success,
            "element_count": self.element_count,
            "attribute_count": self.document.total_attributes if self.document else 0,
            "max_depth": self.document.max_depth if self.document else 0,
            "metrics": self.metrics.to_dict(),
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
