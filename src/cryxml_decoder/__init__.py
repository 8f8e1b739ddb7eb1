"""CryXmlB Decoder.

Reads CryEngine binary XML (CryXmlB) files and turns them into a navigable
document tree or plain XML text.

Progressive API Disclosure:
- Level 1: Simple functions - decode(), decode_file(), decode_stream()
- Level 2: Configured decoder - CryXmlDecoder class
- Level 3: Binary layer - header and table readers in cryxml_decoder.binary
"""

__version__ = "0.1.0"
__author__ = "CryXmlB Decoder Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured decoder
from .api import CryXmlDecoder, decode, decode_file, decode_stream

# Errors raised by the strict decoding path
from .binary import CryXmlError, DecodeError, FormatError

# Configuration classes for advanced usage
from .shared.config import ConverterConfig

# Core result objects for all API levels
from .tree import DecodeResult, XMLAttribute, XMLDocument, XMLElement

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple decoding functions
    "decode",
    "decode_file",
    "decode_stream",

    # Level 2: Configured decoder
    "CryXmlDecoder",

    # Result objects and data structures
    "DecodeResult",
    "XMLDocument",
    "XMLElement",
    "XMLAttribute",

    # Errors
    "CryXmlError",
    "DecodeError",
    "FormatError",

    # Configuration
    "ConverterConfig",
]
