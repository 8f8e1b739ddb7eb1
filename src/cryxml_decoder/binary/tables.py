"""Record readers for the CryXmlB node, attribute and hierarchy tables.

The tables reference each other by index and reference the string pool by
byte offset::

    node record (28 bytes)       tag name offset, value offset,
                                 attribute count, child count,
                                 parent node index, first attribute index,
                                 first hierarchy slot
    attribute record (8 bytes)   name offset, value offset
    hierarchy slot (4 bytes)     node index

A node's children live in the hierarchy slots
``[first_children_reference, first_children_reference + children_number)``
and each slot holds the index of the child in the node table.
"""

import struct
from dataclasses import dataclass
from typing import List

from .errors import DecodeError
from .header import CryXmlHeader, read_header
from .source import ByteSource

NODE_RECORD = struct.Struct("<7I")
ATTRIBUTE_RECORD = struct.Struct("<2I")
HIERARCHY_ENTRY = struct.Struct("<I")

ROOT_NODE_INDEX = 0


@dataclass(frozen=True)
class NodeRecord:
    """One decoded entry of the node table."""

    index: int
    tag_name: str
    value: str
    attributes_number: int
    children_number: int
    parent_node_index: int
    first_attribute_id: int
    first_children_reference: int
    tag_name_offset: int = 0
    value_offset: int = 0

    @property
    def has_children(self) -> bool:
        return self.children_number > 0


@dataclass(frozen=True)
class AttributeRecord:
    """One decoded entry of the attribute table."""

    index: int
    name: str
    value: str
    name_offset: int = 0
    value_offset: int = 0


def resolve_string(
    source: ByteSource, pool_base: int, relative_offset: int, errors: str = "strict"
) -> str:
    """Decode the NUL-terminated UTF-8 string at ``pool_base + relative_offset``.

    ``errors`` is the codec error handler; with ``"strict"`` invalid bytes
    raise DecodeError.
    """
    offset = pool_base + relative_offset
    raw = source.read_cstring(offset)
    try:
        return raw.decode("utf-8", errors)
    except UnicodeDecodeError as e:
        raise DecodeError(
            f"String at 0x{offset:x} is not valid UTF-8: {e.reason}", offset=offset
        ) from e


class StringPool:
    """Strings addressed by byte offset from the start of the pool."""

    def __init__(self, source: ByteSource, base: int, errors: str = "strict") -> None:
        self.source = source
        self.base = base
        self.errors = errors
        self.resolved_count = 0

    def resolve(self, relative_offset: int) -> str:
        value = resolve_string(self.source, self.base, relative_offset, self.errors)
        self.resolved_count += 1
        return value


class NodeTable:
    """Reader for fixed-stride node records."""

    def __init__(self, source: ByteSource, offset: int, strings: StringPool) -> None:
        self.source = source
        self.offset = offset
        self.strings = strings
        self.read_count = 0

    def record_offset(self, node_index: int) -> int:
        return self.offset + node_index * NODE_RECORD.size

    def read(self, node_index: int) -> NodeRecord:
        """Decode the node record at ``node_index`` and resolve its strings."""
        (
            tag_name_offset,
            value_offset,
            attributes_number,
            children_number,
            parent_node_index,
            first_attribute_id,
            first_children_reference,
        ) = self.source.unpack_from(NODE_RECORD, self.record_offset(node_index))
        self.read_count += 1

        return NodeRecord(
            index=node_index,
            tag_name=self.strings.resolve(tag_name_offset),
            value=self.strings.resolve(value_offset),
            attributes_number=attributes_number,
            children_number=children_number,
            parent_node_index=parent_node_index,
            first_attribute_id=first_attribute_id,
            first_children_reference=first_children_reference,
            tag_name_offset=tag_name_offset,
            value_offset=value_offset,
        )


class AttributeTable:
    """Reader for fixed-stride attribute records."""

    def __init__(self, source: ByteSource, offset: int, strings: StringPool) -> None:
        self.source = source
        self.offset = offset
        self.strings = strings
        self.read_count = 0

    def record_offset(self, attr_index: int) -> int:
        return self.offset + attr_index * ATTRIBUTE_RECORD.size

    def read(self, attr_index: int) -> AttributeRecord:
        """Decode the attribute record at ``attr_index`` and resolve its strings."""
        name_offset, value_offset = self.source.unpack_from(
            ATTRIBUTE_RECORD, self.record_offset(attr_index)
        )
        self.read_count += 1

        return AttributeRecord(
            index=attr_index,
            name=self.strings.resolve(name_offset),
            value=self.strings.resolve(value_offset),
            name_offset=name_offset,
            value_offset=value_offset,
        )

    def read_for(self, node: NodeRecord) -> List[AttributeRecord]:
        """Decode the consecutive attribute records owned by ``node``."""
        return [
            self.read(node.first_attribute_id + i)
            for i in range(node.attributes_number)
        ]


class HierarchyTable:
    """Reader for the flattened child index table."""

    def __init__(self, source: ByteSource, offset: int) -> None:
        self.source = source
        self.offset = offset

    def node_index_at(self, slot: int) -> int:
        """Return the node index stored in hierarchy ``slot``."""
        (node_index,) = self.source.unpack_from(
            HIERARCHY_ENTRY, self.offset + slot * HIERARCHY_ENTRY.size
        )
        return node_index

    def children_of(self, node: NodeRecord) -> List[int]:
        """Return the node indices of ``node``'s children in document order."""
        return [
            self.node_index_at(node.first_children_reference + i)
            for i in range(node.children_number)
        ]


class CryXmlTables:
    """All table readers of one CryXmlB input, sharing a single source."""

    def __init__(
        self, source: ByteSource, header: CryXmlHeader, string_errors: str = "strict"
    ) -> None:
        self.source = source
        self.header = header
        self.strings = StringPool(source, header.string_list_offset, string_errors)
        self.nodes = NodeTable(source, header.node_info_offset, self.strings)
        self.attributes = AttributeTable(source, header.attributes_offset, self.strings)
        self.hierarchy = HierarchyTable(source, header.node_hierarchy_offset)

    @classmethod
    def open(cls, source: ByteSource, string_errors: str = "strict") -> "CryXmlTables":
        """Read the header of ``source`` and set up readers for its tables."""
        return cls(source, read_header(source), string_errors)

    def read_root(self) -> NodeRecord:
        return self.nodes.read(ROOT_NODE_INDEX)
