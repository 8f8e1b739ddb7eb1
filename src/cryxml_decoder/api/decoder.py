"""Decoder API for CryXmlB files.

Two levels are offered. ``CryXmlDecoder.decode_bytes`` is the strict core: it
returns an ``XMLDocument`` or raises ``FormatError`` / ``DecodeError``. The
module functions ``decode``, ``decode_stream`` and ``decode_file`` (and
``CryXmlDecoder.decode``) wrap it for batch use: they always return a
``DecodeResult``, with ``success=False``, no document and a CRITICAL
diagnostic when the input cannot be decoded.
"""

import time
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Tuple, Union

from cryxml_decoder.binary import (
    ByteSource,
    CryXmlError,
    CryXmlTables,
    DecodeError,
    FormatError,
    StreamSource,
    open_source,
)
from cryxml_decoder.binary.source import BytesLike
from cryxml_decoder.shared import (
    ConverterConfig,
    DecodeMetrics,
    DiagnosticSeverity,
    get_logger,
)
from cryxml_decoder.tree import DecodeResult, HierarchyBuilder, XMLDocument

InputType = Union[bytes, bytearray, memoryview, BinaryIO, Path, str]

MS_PER_SECOND = 1000


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * MS_PER_SECOND


def _describe(input_data: Any) -> str:
    if isinstance(input_data, (str, Path)):
        return str(input_data)
    name = getattr(input_data, "name", None)
    if isinstance(name, str):
        return name
    return f"<{type(input_data).__name__}>"


class CryXmlDecoder:
    """Reusable CryXmlB decoder.

    Attributes:
        config: Converter configuration in effect
        correlation_id: Correlation ID attached to logs and diagnostics

    Examples:
        Strict decoding:
        >>> decoder = CryXmlDecoder()
        >>> document = decoder.decode_bytes(data)
        >>> document.root.tag
        'Objects'

        Batch-friendly decoding:
        >>> result = decoder.decode(Path('level.xml'))
        >>> result.success
        True
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ConverterConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "cryxml_decoder")

        self._decode_count = 0
        self._successful_decodes = 0
        self._total_processing_time = 0.0

    def _new_correlation_id(self) -> Optional[str]:
        if self.correlation_id:
            return self.correlation_id
        if self.config.global_.enable_correlation_tracking:
            return uuid.uuid4().hex
        return None

    def _decode_source(
        self,
        byte_source: ByteSource,
        label: Optional[str],
        correlation_id: Optional[str],
    ) -> Tuple[XMLDocument, DecodeMetrics]:
        start_time = time.perf_counter()
        logger = self.logger.bind(label)

        tables = CryXmlTables.open(byte_source, self.config.decoder.string_errors)
        header = tables.header
        logger.debug(
            "Header read",
            extra={
                "node_count": header.node_info_count,
                "attribute_count": header.attributes_count,
                "hierarchy_count": header.node_hierarchy_count,
                "string_pool_size": header.string_list_count,
            }
        )

        arena = HierarchyBuilder(tables, correlation_id=correlation_id).build()
        document = XMLDocument(
            root=arena.root,
            elements=arena.elements,
            depths=arena.depths,
            header=header if self.config.decoder.attach_header else None,
            encoding=self.config.output.encoding,
            standalone=self.config.output.standalone,
            source=label,
            correlation_id=correlation_id,
        )

        metrics = DecodeMetrics()
        if self.config.decoder.enable_metrics:
            metrics.processing_time_ms = _elapsed_ms(start_time)
            metrics.bytes_processed = byte_source.size
            metrics.nodes_decoded = tables.nodes.read_count
            metrics.attributes_decoded = tables.attributes.read_count
            metrics.strings_resolved = tables.strings.resolved_count

        logger.info(
            "Decode completed",
            extra={
                "element_count": document.total_elements,
                "max_depth": document.max_depth,
                "processing_time_ms": metrics.processing_time_ms,
            }
        )
        return document, metrics

    def decode_bytes(
        self,
        data: Union[BytesLike, BinaryIO, ByteSource],
        source: Optional[str] = None
    ) -> XMLDocument:
        """Decode a CryXmlB buffer or seekable stream into a document.

        Raises:
            FormatError: The input does not carry the CryXmlB signature.
            DecodeError: A table or string lies outside the input.
        """
        correlation_id = self._new_correlation_id()
        document, _ = self._decode_source(open_source(data), source, correlation_id)
        return document

    def decode(
        self,
        input_data: InputType,
        correlation_id_override: Optional[str] = None
    ) -> DecodeResult:
        """Decode bytes, a binary stream or a file path into a DecodeResult.

        Failures are reported in the result instead of being raised.
        """
        start_time = time.perf_counter()
        correlation_id = correlation_id_override or self._new_correlation_id()
        label = _describe(input_data)
        logger = self.logger.bind(label)
        result = DecodeResult(source=label, correlation_id=correlation_id)

        logger.info(
            "Starting decode",
            extra={"input_type": type(input_data).__name__}
        )

        try:
            if isinstance(input_data, (str, Path)):
                with Path(input_data).open("rb") as file:
                    byte_source: ByteSource = open_source(file.read())
            elif isinstance(input_data, (bytes, bytearray, memoryview)):
                byte_source = open_source(input_data)
            elif hasattr(input_data, "read"):
                byte_source = StreamSource(input_data)
            else:
                raise TypeError(
                    f"Unsupported input type: {type(input_data).__name__}"
                )

            document, metrics = self._decode_source(byte_source, label, correlation_id)
            result.document = document
            result.metrics = metrics

            if self.config.decoder.enable_diagnostics:
                result.add_diagnostic(
                    DiagnosticSeverity.INFO,
                    f"Decoded {document.total_elements} elements",
                    "cryxml_decoder",
                    details={"max_depth": document.max_depth},
                )

        except FormatError as e:
            logger.warning("Input is not a CryXmlB file", extra={"error": str(e)})
            self._fail(result, str(e), "header_parser", None, start_time)
        except DecodeError as e:
            logger.exception("Decode failed", extra={"offset": e.offset})
            self._fail(result, str(e), "table_reader", e.offset, start_time)
        except (CryXmlError, OSError, TypeError, ValueError) as e:
            logger.exception("Decode failed")
            self._fail(result, f"Decode failed: {e}", "cryxml_decoder", None, start_time)

        self._decode_count += 1
        self._total_processing_time += _elapsed_ms(start_time)
        if result.success:
            self._successful_decodes += 1

        return result

    def _fail(
        self,
        result: DecodeResult,
        message: str,
        component: str,
        offset: Optional[int],
        start_time: float,
    ) -> None:
        result.success = False
        result.document = None
        result.metrics = DecodeMetrics(processing_time_ms=_elapsed_ms(start_time))
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL, message, component, offset=offset
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get decoder usage statistics."""
        return {
            "total_decodes": self._decode_count,
            "successful_decodes": self._successful_decodes,
            "success_rate": (
                self._successful_decodes / self._decode_count
                if self._decode_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._decode_count
                if self._decode_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset decoder usage statistics."""
        self._decode_count = 0
        self._successful_decodes = 0
        self._total_processing_time = 0.0

        self.logger.info("Decoder statistics reset")


def decode(
    input_data: InputType,
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None
) -> DecodeResult:
    """Decode CryXmlB data from bytes, a binary stream or a path.

    Examples:
        >>> result = decode(Path('entities.xml'))
        >>> result.tree.root.tag
        'Entities'
    """
    return CryXmlDecoder(config, correlation_id).decode(input_data)


def decode_stream(
    stream: BinaryIO,
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None
) -> DecodeResult:
    """Decode a seekable binary stream without moving its position."""
    return CryXmlDecoder(config, correlation_id).decode(stream)


def decode_file(
    file_path: Union[str, Path],
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None
) -> DecodeResult:
    """Decode a CryXmlB file.

    Missing paths, directories and unreadable files produce a failed result.
    """
    path_obj = Path(file_path)
    decoder = CryXmlDecoder(config, correlation_id)

    error_message = None
    if not path_obj.exists():
        error_message = f"File not found: {path_obj}"
    elif not path_obj.is_file():
        error_message = f"Path is not a file: {path_obj}"

    if error_message:
        result = DecodeResult(
            success=False,
            source=str(path_obj),
            correlation_id=decoder._new_correlation_id(),
        )
        result.add_diagnostic(DiagnosticSeverity.CRITICAL, error_message, "file_reader")
        decoder.logger.bind(str(path_obj)).warning(error_message)
        return result

    return decoder.decode(path_obj)
