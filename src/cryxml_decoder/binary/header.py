"""CryXmlB file header parsing.

The header is a fixed 68-byte little-endian preamble::

    signature                                  8 bytes, b"CryXmlB\\0"
    file size                                  u32, top 2 bits reserved
    node table offset / count                  u32, u32
    attribute table offset / count             u32, u32
    hierarchy table offset / count             u32, u32
    string pool offset / size                  u32, u32
    reserved                                   u16, u16
    reserved offsets                           4 x u32
    reserved                                   u32

All offsets are absolute from the start of the file.
"""

import struct
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .errors import FormatError
from .source import ByteSource

SIGNATURE = b"CryXmlB\x00"
FILE_SIZE_MASK = 0x3FFFFFFF

_HEADER_LAYOUT = struct.Struct("<9I2H5I")
HEADER_SIZE = len(SIGNATURE) + _HEADER_LAYOUT.size


@dataclass(frozen=True)
class CryXmlHeader:
    """Table locations and sizes read from the file preamble."""

    signature: bytes
    file_size: int
    node_info_offset: int
    node_info_count: int
    attributes_offset: int
    attributes_count: int
    node_hierarchy_offset: int
    node_hierarchy_count: int
    string_list_offset: int
    string_list_count: int
    reserved1: int = 0
    reserved2: int = 0
    reserved_offsets: Tuple[int, int, int, int] = (0, 0, 0, 0)
    reserved3: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert header to a JSON-friendly dictionary."""
        return {
            "signature": self.signature.decode("ascii", errors="replace").rstrip("\x00"),
            "file_size": self.file_size,
            "node_info_offset": self.node_info_offset,
            "node_info_count": self.node_info_count,
            "attributes_offset": self.attributes_offset,
            "attributes_count": self.attributes_count,
            "node_hierarchy_offset": self.node_hierarchy_offset,
            "node_hierarchy_count": self.node_hierarchy_count,
            "string_list_offset": self.string_list_offset,
            "string_list_count": self.string_list_count,
            "reserved1": self.reserved1,
            "reserved2": self.reserved2,
            "reserved_offsets": list(self.reserved_offsets),
            "reserved3": self.reserved3,
        }


def check_signature(source: ByteSource) -> bytes:
    """Return the signature bytes, raising FormatError if they do not match."""
    signature = source.read_upto(0, len(SIGNATURE))
    if signature != SIGNATURE:
        raise FormatError(
            f"Unrecognized signature {signature!r}, expected {SIGNATURE!r}",
            signature=signature,
        )
    return signature


def read_header(source: ByteSource) -> CryXmlHeader:
    """Read and validate the header at the start of ``source``.

    Only the signature is validated. Table offsets and counts are returned
    as stored, without checking them against the input length.

    Raises:
        FormatError: The first 8 bytes are not the CryXmlB signature.
        DecodeError: The input is shorter than the header.
    """
    signature = check_signature(source)
    fields = source.unpack_from(_HEADER_LAYOUT, len(SIGNATURE))

    return CryXmlHeader(
        signature=signature,
        file_size=fields[0] & FILE_SIZE_MASK,
        node_info_offset=fields[1],
        node_info_count=fields[2],
        attributes_offset=fields[3],
        attributes_count=fields[4],
        node_hierarchy_offset=fields[5],
        node_hierarchy_count=fields[6],
        string_list_offset=fields[7],
        string_list_count=fields[8],
        reserved1=fields[9],
        reserved2=fields[10],
        reserved_offsets=tuple(fields[11:15]),
        reserved3=fields[15],
    )
