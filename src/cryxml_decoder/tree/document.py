"""Document model for decoded CryXmlB trees.

Elements carry a namespace, a local name, an ordered list of attributes, an
optional text value and their children in document order. Elements own their
children; there are no parent back-references. Depths and construction order
are recorded by the document instead.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from cryxml_decoder.binary import CryXmlHeader


def clark_name(local_name: str, namespace: str = "") -> str:
    """Return ``{namespace}local_name``, or the bare name without a namespace."""
    if namespace:
        return f"{{{namespace}}}{local_name}"
    return local_name


@dataclass(frozen=True)
class XMLAttribute:
    """A single attribute, optionally qualified by a namespace.

    Namespaces of prefixed attributes are the literal prefix text
    (``ns:attr`` has namespace ``"ns"``), not a resolved URI.
    """

    name: str
    value: str
    namespace: str = ""

    @property
    def clark_name(self) -> str:
        return clark_name(self.name, self.namespace)

    @property
    def qualified_name(self) -> str:
        """Name as written in the source, ``prefix:name`` when namespaced."""
        if self.namespace:
            return f"{self.namespace}:{self.name}"
        return self.name


@dataclass(eq=False)
class XMLElement:
    """Represents a single XML element in the document tree."""

    tag: str
    namespace: str = ""
    attributes: List[XMLAttribute] = field(default_factory=list)
    text: Optional[str] = None
    children: List["XMLElement"] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate element values."""
        if not self.tag:
            raise ValueError("Element tag cannot be empty")

    @property
    def local_name(self) -> str:
        return self.tag

    @property
    def clark_tag(self) -> str:
        """Tag in ``{namespace}local`` notation."""
        return clark_name(self.tag, self.namespace)

    @property
    def full_text(self) -> str:
        """Get all text content including from child elements."""
        text_parts = []
        if self.text:
            text_parts.append(self.text)

        for child in self.children:
            child_text = child.full_text
            if child_text:
                text_parts.append(child_text)

        return " ".join(text_parts).strip()

    def add_child(self, child: "XMLElement") -> None:
        """Append a child element."""
        if not isinstance(child, XMLElement):
            raise TypeError("Child must be an XMLElement instance")
        self.children.append(child)

    def iter(self) -> Iterator["XMLElement"]:
        """Iterate over this element and its descendants in document order."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def _matches(self, tag: str, namespace: Optional[str]) -> bool:
        return self.tag == tag and (namespace is None or self.namespace == namespace)

    def find_child(
        self, tag: str, namespace: Optional[str] = None
    ) -> Optional["XMLElement"]:
        """Find first direct child with matching tag name.

        ``namespace=None`` matches any namespace.
        """
        for child in self.children:
            if child._matches(tag, namespace):
                return child
        return None

    def find_children(
        self, tag: str, namespace: Optional[str] = None
    ) -> List["XMLElement"]:
        """Find all direct children with matching tag name."""
        return [child for child in self.children if child._matches(tag, namespace)]

    def find(self, tag: str, namespace: Optional[str] = None) -> Optional["XMLElement"]:
        """Find first descendant element with matching tag name."""
        return next(
            (
                element for element in self.iter()
                if element is not self and element._matches(tag, namespace)
            ),
            None,
        )

    def find_all(self, tag: str, namespace: Optional[str] = None) -> List["XMLElement"]:
        """Find all descendant elements with matching tag name."""
        return [
            element for element in self.iter()
            if element is not self and element._matches(tag, namespace)
        ]

    def find_by_attribute(
        self, name: str, value: Optional[str] = None
    ) -> List["XMLElement"]:
        """Find this element and descendants carrying an unnamespaced attribute."""
        results = []
        for element in self.iter():
            attribute_value = element.get_attribute(name)
            if attribute_value is not None and (value is None or attribute_value == value):
                results.append(element)
        return results

    def get_attribute(
        self, name: str, namespace: str = "", default: Optional[str] = None
    ) -> Optional[str]:
        """Get attribute value with optional default."""
        for attribute in self.attributes:
            if attribute.name == name and attribute.namespace == namespace:
                return attribute.value
        return default

    def has_attribute(self, name: str, namespace: str = "") -> bool:
        return any(
            attribute.name == name and attribute.namespace == namespace
            for attribute in self.attributes
        )

    @property
    def attribute_map(self) -> Dict[str, str]:
        """Attributes keyed by Clark name; later duplicates win."""
        return {attribute.clark_name: attribute.value for attribute in self.attributes}

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {
            "tag": self.tag,
            "namespace": self.namespace,
            "attributes": [
                {"name": a.name, "namespace": a.namespace, "value": a.value}
                for a in self.attributes
            ],
        }

        if self.text is not None:
            result["text"] = self.text

        if self.children:
            result["children"] = [child.to_dict() for child in self.children]

        return result


@dataclass
class XMLDocument:
    """Root document container with declaration metadata and statistics.

    ``elements`` lists every element in the order it was decoded
    (breadth-first from the root) and ``depths`` holds the matching depth of
    each one; both are produced by the tree builder.
    """

    root: Optional[XMLElement] = None
    elements: List[XMLElement] = field(default_factory=list)
    depths: List[int] = field(default_factory=list)
    header: Optional[CryXmlHeader] = None
    encoding: str = "utf-8"
    version: str = "1.0"
    standalone: Optional[bool] = True

    total_elements: int = 0
    total_attributes: int = 0
    max_depth: int = 0

    source: Optional[str] = None
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Calculate document statistics."""
        if self.root is not None and not self.elements:
            self.elements = list(self.root.iter())
        if len(self.depths) != len(self.elements):
            self.depths = []

        self.total_elements = len(self.elements)
        self.total_attributes = sum(len(e.attributes) for e in self.elements)
        self.max_depth = max(self.depths, default=0)

    def iter_elements(self) -> List[XMLElement]:
        """Return all elements in document (depth-first) order."""
        if self.root is None:
            return []
        return list(self.root.iter())

    def find(self, tag: str, namespace: Optional[str] = None) -> Optional[XMLElement]:
        """Find first element with matching tag name, including the root."""
        if self.root is None:
            return None
        if self.root._matches(tag, namespace):
            return self.root
        return self.root.find(tag, namespace)

    def find_all(self, tag: str, namespace: Optional[str] = None) -> List[XMLElement]:
        """Find all elements with matching tag name, including the root."""
        if self.root is None:
            return []
        return [e for e in self.root.iter() if e._matches(tag, namespace)]

    def find_by_attribute(
        self, name: str, value: Optional[str] = None
    ) -> List[XMLElement]:
        if self.root is None:
            return []
        return self.root.find_by_attribute(name, value)

    def get_element_by_id(self, id_value: str) -> Optional[XMLElement]:
        """Find element by ID attribute value."""
        return next(iter(self.find_by_attribute("id", id_value)), None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        result: Dict[str, Any] = {
            "encoding": self.encoding,
            "version": self.version,
            "total_elements": self.total_elements,
            "total_attributes": self.total_attributes,
            "max_depth": self.max_depth,
        }

        if self.standalone is not None:
            result["standalone"] = self.standalone

        if self.header is not None:
            result["header"] = self.header.to_dict()

        if self.root is not None:
            result["root"] = self.root.to_dict()

        return result
