"""Tests for CryXmlB header parsing."""

import pytest

from cryxml_decoder.binary import (
    FILE_SIZE_MASK,
    HEADER_SIZE,
    SIGNATURE,
    BufferSource,
    CryXmlError,
    DecodeError,
    FormatError,
    check_signature,
    read_header,
)


class RecordingSource(BufferSource):
    """Buffer source that records every read it serves."""

    def __init__(self, data):
        super().__init__(data)
        self.reads = []

    def read_upto(self, offset, size):
        self.reads.append((offset, size))
        return super().read_upto(offset, size)


class TestSignature:
    """Test signature detection."""

    def test_signature_constant(self):
        """The signature is the ASCII magic followed by a NUL byte."""
        assert SIGNATURE == b"CryXmlB\x00"
        assert len(SIGNATURE) == 8

    def test_valid_signature(self, minimal_cryxml):
        """A CryXmlB buffer passes the signature check."""
        assert check_signature(BufferSource(minimal_cryxml)) == SIGNATURE

    def test_plain_xml_rejected(self):
        """Text XML is not a CryXmlB file."""
        data = b"<?xml version='1.0'?><root/>" + b"\x00" * 64

        with pytest.raises(FormatError) as exc_info:
            read_header(BufferSource(data))

        assert exc_info.value.signature == data[:8]

    def test_nothing_read_after_bad_signature(self, minimal_cryxml):
        """Only the signature bytes are read when they do not match."""
        source = RecordingSource(b"NotCryX\x00" + minimal_cryxml[8:])

        with pytest.raises(FormatError):
            read_header(source)

        assert source.reads == [(0, 8)]

    def test_header_read_after_good_signature(self, minimal_cryxml):
        """A matching signature is followed by one read of the header fields."""
        source = RecordingSource(minimal_cryxml)

        read_header(source)

        assert source.reads == [(0, 8), (8, HEADER_SIZE - 8)]

    def test_signature_without_terminator_rejected(self, cryxml_builder):
        """The trailing NUL is part of the signature."""
        data = cryxml_builder([{"tag": "root"}], signature=b"CryXmlB!")

        with pytest.raises(FormatError):
            read_header(BufferSource(data))

    def test_empty_input_rejected(self):
        """Empty input fails the signature check."""
        with pytest.raises(FormatError):
            read_header(BufferSource(b""))

    def test_format_error_is_cryxml_error(self):
        """FormatError shares the package base exception."""
        assert issubclass(FormatError, CryXmlError)
        assert issubclass(DecodeError, CryXmlError)


class TestReadHeader:
    """Test header field decoding."""

    def test_header_size(self):
        """The fixed preamble is 68 bytes."""
        assert HEADER_SIZE == 68

    def test_table_locations(self, sample_cryxml):
        """Offsets and counts are read in declaration order."""
        header = read_header(BufferSource(sample_cryxml))

        assert header.signature == SIGNATURE
        assert header.file_size == len(sample_cryxml)
        assert header.node_info_offset == HEADER_SIZE
        assert header.node_info_count == 4
        assert header.attributes_offset == HEADER_SIZE + 4 * 28
        assert header.attributes_count == 6
        assert header.node_hierarchy_offset == header.attributes_offset + 6 * 8
        assert header.node_hierarchy_count == 3
        assert header.string_list_offset == header.node_hierarchy_offset + 3 * 4
        assert header.string_list_count == len(sample_cryxml) - header.string_list_offset

    def test_file_size_flag_bits_masked(self, cryxml_builder):
        """The top two bits of the size field are not part of the size."""
        data = cryxml_builder([{"tag": "root"}], file_size=0xC0000000 | 1234)

        header = read_header(BufferSource(data))

        assert header.file_size == 1234
        assert FILE_SIZE_MASK == 0x3FFFFFFF

    def test_reserved_fields_kept(self, minimal_cryxml):
        """Reserved fields are decoded but not interpreted."""
        header = read_header(BufferSource(minimal_cryxml))

        assert header.reserved1 == 0
        assert header.reserved2 == 0
        assert header.reserved_offsets == (0, 0, 0, 0)
        assert header.reserved3 == 0

    def test_truncated_header(self):
        """A valid signature followed by too few bytes is a decode error."""
        with pytest.raises(DecodeError) as exc_info:
            read_header(BufferSource(SIGNATURE + b"\x00" * 10))

        assert exc_info.value.offset == len(SIGNATURE)

    def test_offsets_not_checked_against_length(self, minimal_cryxml):
        """Header values are returned as stored, even when out of range."""
        data = bytearray(minimal_cryxml)
        data[12:16] = (10_000).to_bytes(4, "little")

        header = read_header(BufferSource(bytes(data)))

        assert header.node_info_offset == 10_000

    def test_to_dict(self, minimal_cryxml):
        """Header converts to a JSON-friendly dictionary."""
        header_dict = read_header(BufferSource(minimal_cryxml)).to_dict()

        assert header_dict["signature"] == "CryXmlB"
        assert header_dict["node_info_count"] == 1
        assert header_dict["reserved_offsets"] == [0, 0, 0, 0]
