"""Binary layer for CryXmlB decoding.

This module reads the fixed-layout header and the node, attribute,
hierarchy and string tables of a CryXmlB file through random-access byte
sources.

Key Components:
    ByteSource: Offset-addressed reads over a buffer or a seekable stream
    CryXmlHeader: Table locations and sizes from the file preamble
    CryXmlTables: Record readers sharing one source and string pool
    NodeRecord / AttributeRecord: Decoded table entries
"""

from .errors import CryXmlError, DecodeError, FormatError
from .header import (
    FILE_SIZE_MASK,
    HEADER_SIZE,
    SIGNATURE,
    CryXmlHeader,
    check_signature,
    read_header,
)
from .source import BufferSource, ByteSource, StreamSource, open_source
from .tables import (
    ATTRIBUTE_RECORD,
    HIERARCHY_ENTRY,
    NODE_RECORD,
    ROOT_NODE_INDEX,
    AttributeRecord,
    AttributeTable,
    CryXmlTables,
    HierarchyTable,
    NodeRecord,
    NodeTable,
    StringPool,
    resolve_string,
)

__all__ = [
    "CryXmlError",
    "DecodeError",
    "FormatError",
    "FILE_SIZE_MASK",
    "HEADER_SIZE",
    "SIGNATURE",
    "CryXmlHeader",
    "check_signature",
    "read_header",
    "BufferSource",
    "ByteSource",
    "StreamSource",
    "open_source",
    "ATTRIBUTE_RECORD",
    "HIERARCHY_ENTRY",
    "NODE_RECORD",
    "ROOT_NODE_INDEX",
    "AttributeRecord",
    "AttributeTable",
    "CryXmlTables",
    "HierarchyTable",
    "NodeRecord",
    "NodeTable",
    "StringPool",
    "resolve_string",
]
