"""Exception types raised by the CryXmlB binary layer."""

from typing import Optional


class CryXmlError(Exception):
    """Base exception for every CryXmlB decoding failure."""


class FormatError(CryXmlError):
    """The input does not start with the CryXmlB signature."""

    def __init__(self, message: str, signature: bytes = b"") -> None:
        super().__init__(message)
        self.signature = signature


class DecodeError(CryXmlError):
    """A table or string read could not be satisfied by the input.

    Raised for reads past the end of the buffer, strings without a NUL
    terminator and string bytes that are not valid UTF-8.
    """

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.offset = offset
