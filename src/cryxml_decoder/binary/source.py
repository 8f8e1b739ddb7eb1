"""Random-access byte sources for CryXmlB decoding.

Every table lookup in a CryXmlB file is addressed by an absolute offset, so
the decoder never reads sequentially. Sources expose reads as functions of
``(offset, size)``: ``BufferSource`` slices an immutable buffer and has no
cursor at all, ``StreamSource`` works over a seekable binary stream and puts
the stream cursor back where it found it after every read.
"""

import io
import struct
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Tuple, Union

from .errors import DecodeError

BytesLike = Union[bytes, bytearray, memoryview]

_CSTRING_CHUNK_SIZE = 64


class ByteSource(ABC):
    """Read-only random access to the bytes of one CryXmlB input."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Total number of bytes available."""

    @abstractmethod
    def read_upto(self, offset: int, size: int) -> bytes:
        """Read at most ``size`` bytes at ``offset``; may return fewer."""

    @abstractmethod
    def read_cstring(self, offset: int) -> bytes:
        """Read the bytes at ``offset`` up to (not including) the next NUL."""

    def read_at(self, offset: int, size: int) -> bytes:
        """Read exactly ``size`` bytes at ``offset``."""
        data = self.read_upto(offset, size)
        if len(data) != size:
            raise DecodeError(
                f"Read of {size} bytes at 0x{offset:x} runs past end of input "
                f"({self.size} bytes)",
                offset=offset,
            )
        return data

    def unpack_from(self, layout: struct.Struct, offset: int) -> Tuple[int, ...]:
        """Unpack a fixed-size structure located at ``offset``."""
        return layout.unpack(self.read_at(offset, layout.size))


class BufferSource(ByteSource):
    """Source over an in-memory buffer.

    The buffer is copied once into an immutable ``bytes`` object, so reads
    are pure functions of the offset.
    """

    def __init__(self, data: BytesLike) -> None:
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    def read_upto(self, offset: int, size: int) -> bytes:
        return self._data[offset:offset + size]

    def read_cstring(self, offset: int) -> bytes:
        if offset >= len(self._data):
            raise DecodeError(
                f"String offset 0x{offset:x} is past end of input", offset=offset
            )
        end = self._data.find(b"\x00", offset)
        if end < 0:
            raise DecodeError(
                f"Unterminated string at 0x{offset:x}", offset=offset
            )
        return self._data[offset:end]


class StreamSource(ByteSource):
    """Source over a seekable binary stream.

    Each read relocates the stream cursor and restores it on every exit path,
    including failures, so callers sharing the stream never observe a moved
    position. The stream must not be read by anyone else while a decode is in
    progress.
    """

    def __init__(self, stream: BinaryIO) -> None:
        if not stream.seekable():
            raise DecodeError("Stream is not seekable")
        self._stream = stream
        with self._relocated(0, io.SEEK_END):
            self._size = stream.tell()

    @property
    def size(self) -> int:
        return self._size

    @contextmanager
    def _relocated(self, offset: int, whence: int = io.SEEK_SET) -> Iterator[BinaryIO]:
        saved = self._stream.tell()
        self._stream.seek(offset, whence)
        try:
            yield self._stream
        finally:
            self._stream.seek(saved)

    def read_upto(self, offset: int, size: int) -> bytes:
        with self._relocated(offset) as stream:
            return stream.read(size)

    def read_cstring(self, offset: int) -> bytes:
        if offset >= self._size:
            raise DecodeError(
                f"String offset 0x{offset:x} is past end of input", offset=offset
            )
        chunks = []
        with self._relocated(offset) as stream:
            while True:
                chunk = stream.read(_CSTRING_CHUNK_SIZE)
                if not chunk:
                    raise DecodeError(
                        f"Unterminated string at 0x{offset:x}", offset=offset
                    )
                end = chunk.find(b"\x00")
                if end >= 0:
                    chunks.append(chunk[:end])
                    return b"".join(chunks)
                chunks.append(chunk)


def open_source(data: Union[BytesLike, BinaryIO, ByteSource]) -> ByteSource:
    """Wrap raw input in the matching ``ByteSource``."""
    if isinstance(data, ByteSource):
        return data
    if isinstance(data, (bytes, bytearray, memoryview)):
        return BufferSource(data)
    if hasattr(data, "read") and hasattr(data, "seek"):
        return StreamSource(data)
    raise TypeError(f"Unsupported input type: {type(data).__name__}")
