"""Public decoding and output API."""

from .adapters import (
    AdapterMetadata,
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    get_adapter,
    list_available_adapters,
)
from .decoder import CryXmlDecoder, decode, decode_file, decode_stream

__all__ = [
    "AdapterMetadata",
    "ConversionResult",
    "ElementTreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "get_adapter",
    "list_available_adapters",
    "CryXmlDecoder",
    "decode",
    "decode_file",
    "decode_stream",
]
