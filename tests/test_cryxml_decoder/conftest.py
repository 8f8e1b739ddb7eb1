"""Shared fixtures that assemble CryXmlB buffers for tests."""

import struct
from typing import Any, Callable, Dict, List, Optional

import pytest

CRYXML_SIGNATURE = b"CryXmlB\x00"
HEADER_FIELDS = struct.Struct("<9I2H5I")
NO_PARENT = 0xFFFFFFFF


def build_cryxml(
    nodes: List[Dict[str, Any]],
    file_size: Optional[int] = None,
    signature: bytes = CRYXML_SIGNATURE,
) -> bytes:
    """Assemble a CryXmlB file from node descriptions.

    Each node is a dict with ``tag`` and optional ``value``, ``attributes``
    (list of ``(name, value)`` pairs) and ``children`` (list of node
    indices, in document order). Node 0 is the root. Tables are laid out
    after the header in the order nodes, attributes, hierarchy, strings.
    """
    pool = bytearray()
    string_offsets: Dict[str, int] = {}

    def intern(text: str) -> int:
        if text not in string_offsets:
            string_offsets[text] = len(pool)
            pool.extend(text.encode("utf-8") + b"\x00")
        return string_offsets[text]

    intern("")

    parents = {0: NO_PARENT}
    for index, node in enumerate(nodes):
        for child in node.get("children", []):
            parents.setdefault(child, index)

    node_rows = []
    attribute_rows = []
    hierarchy: List[int] = []
    for index, node in enumerate(nodes):
        attributes = node.get("attributes", [])
        children = node.get("children", [])
        node_rows.append((
            intern(node["tag"]),
            intern(node.get("value", "")),
            len(attributes),
            len(children),
            parents.get(index, 0),
            len(attribute_rows),
            len(hierarchy),
        ))
        for name, value in attributes:
            attribute_rows.append((intern(name), intern(value)))
        hierarchy.extend(children)

    node_offset = len(CRYXML_SIGNATURE) + HEADER_FIELDS.size
    attribute_offset = node_offset + 28 * len(node_rows)
    hierarchy_offset = attribute_offset + 8 * len(attribute_rows)
    string_offset = hierarchy_offset + 4 * len(hierarchy)
    total_size = string_offset + len(pool)

    header = signature + HEADER_FIELDS.pack(
        total_size if file_size is None else file_size,
        node_offset, len(node_rows),
        attribute_offset, len(attribute_rows),
        hierarchy_offset, len(hierarchy),
        string_offset, len(pool),
        0, 0,
        0, 0, 0, 0,
        0,
    )

    body = bytearray(header)
    for row in node_rows:
        body.extend(struct.pack("<7I", *row))
    for row in attribute_rows:
        body.extend(struct.pack("<2I", *row))
    for node_index in hierarchy:
        body.extend(struct.pack("<I", node_index))
    body.extend(pool)
    return bytes(body)


SAMPLE_NODES = [
    {"tag": "Objects", "attributes": [("version", "2")], "children": [1, 2]},
    {
        "tag": "Entity",
        "attributes": [("id", "e1"), ("ns:attr", "v")],
        "children": [3],
    },
    {
        "tag": "Entity",
        "value": "hello",
        "attributes": [("id", "e2"), ("xmlns", "urn:x")],
    },
    {"tag": "Property", "value": "100", "attributes": [("name", "health")]},
]


@pytest.fixture
def cryxml_builder() -> Callable[..., bytes]:
    """Return the CryXmlB buffer builder."""
    return build_cryxml


@pytest.fixture
def sample_cryxml() -> bytes:
    """Four-element document with a namespaced element and a prefixed attribute.

    Decodes to::

        <Objects version="2">
          <Entity id="e1" ns:attr="v">
            <Property name="health">100</Property>
          </Entity>
          <Entity xmlns="urn:x" id="e2">hello</Entity>
        </Objects>
    """
    return build_cryxml(SAMPLE_NODES)


@pytest.fixture
def minimal_cryxml() -> bytes:
    """Single root element named ``root`` with no attributes."""
    return build_cryxml([{"tag": "root"}])
