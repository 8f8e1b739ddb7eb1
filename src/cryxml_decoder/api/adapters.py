"""Adapters that hand decoded documents to standard XML libraries.

Decoded ``XMLDocument`` trees are converted into ``lxml.etree`` or
``xml.etree.ElementTree`` elements, which then take care of writing XML
text. Namespaced tags and attributes are passed in ``{namespace}local``
notation.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from cryxml_decoder.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    OutputConfig,
    get_logger,
)
from cryxml_decoder.tree import XMLDocument, XMLElement

_RESERVED_PREFIX = "xml"


@dataclass
class AdapterMetadata:
    """Metadata about an output adapter."""

    name: str
    version: str
    target_library: str
    description: str
    supports_standalone: bool = False


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Base class for document-to-library adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def _convert_element(self, element: XMLElement) -> Any:
        """Convert one element and its subtree into the target library."""

    @abstractmethod
    def serialize(
        self, document: XMLDocument, output: Optional[OutputConfig] = None
    ) -> bytes:
        """Write ``document`` as XML text in the configured encoding.

        Raises:
            ValueError: The document has no root, or the target library
                rejects a name or value.
        """

    def to_target(self, document: XMLDocument) -> ConversionResult:
        """Convert ``document`` into the target library's root element."""
        start_time = time.perf_counter()

        if document.root is None:
            return self._create_error_result(
                "Document has no root element", document, _elapsed_ms(start_time)
            )

        try:
            converted = self._convert_element(document.root)
        except ValueError as e:
            self._logger.warning(
                "Conversion rejected by target library", extra={"error": str(e)}
            )
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                document,
                _elapsed_ms(start_time),
            )

        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=document,
            conversion_time_ms=_elapsed_ms(start_time),
            metadata={"element_count": document.total_elements},
        )

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )

    def _require_root(self, document: XMLDocument) -> XMLElement:
        if document.root is None:
            raise ValueError("Document has no root element")
        return document.root


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


class LxmlAdapter(IntegrationAdapter):
    """Adapter for lxml.etree, the default emitter.

    Attribute prefixes are declared under their own name
    (``xmlns:ns="ns"``) when they are usable as prefixes.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            target_library="lxml",
            description="Conversion of decoded documents to lxml.etree",
            supports_standalone=True,
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def _convert_element(self, element: XMLElement) -> Any:
        from lxml import etree

        nsmap = {
            attribute.namespace: attribute.namespace
            for attribute in element.attributes
            if attribute.namespace.isidentifier()
            and not attribute.namespace.lower().startswith(_RESERVED_PREFIX)
        }
        lxml_element = etree.Element(element.clark_tag, nsmap=nsmap or None)

        for attribute in element.attributes:
            lxml_element.set(attribute.clark_name, attribute.value)

        if element.text is not None:
            lxml_element.text = element.text

        for child in element.children:
            lxml_element.append(self._convert_element(child))

        return lxml_element

    def serialize(
        self, document: XMLDocument, output: Optional[OutputConfig] = None
    ) -> bytes:
        from lxml import etree

        output = output or OutputConfig()
        root = self._convert_element(self._require_root(document))
        if output.pretty_print:
            etree.indent(root, space=output.indent)

        return etree.tostring(
            etree.ElementTree(root),
            xml_declaration=output.xml_declaration,
            encoding=output.encoding,
            standalone=output.standalone if output.xml_declaration else None,
        )


class ElementTreeAdapter(IntegrationAdapter):
    """Adapter for the standard library xml.etree.ElementTree.

    ElementTree cannot write ``standalone`` in the XML declaration; the
    setting is ignored.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            version="1.0.0",
            target_library="xml.etree.ElementTree",
            description="Conversion of decoded documents to ElementTree",
        )

    def is_available(self) -> bool:
        return True

    def _convert_element(self, element: XMLElement) -> Any:
        import xml.etree.ElementTree as ET

        et_element = ET.Element(element.clark_tag)

        for attribute in element.attributes:
            # ElementTree writes any name unchecked; lxml rejects these itself
            if not attribute.name:
                raise ValueError(
                    f"Invalid attribute name: {attribute.qualified_name!r}"
                )
            et_element.set(attribute.clark_name, attribute.value)

        if element.text is not None:
            et_element.text = element.text

        for child in element.children:
            et_element.append(self._convert_element(child))

        return et_element

    def serialize(
        self, document: XMLDocument, output: Optional[OutputConfig] = None
    ) -> bytes:
        import io
        import xml.etree.ElementTree as ET

        output = output or OutputConfig(backend="elementtree", standalone=None)
        if output.standalone is not None:
            self._logger.debug("standalone flag ignored by ElementTree output")

        root = self._convert_element(self._require_root(document))
        tree = ET.ElementTree(root)
        if output.pretty_print:
            ET.indent(tree, space=output.indent)

        buffer = io.BytesIO()
        tree.write(
            buffer,
            encoding=output.encoding,
            xml_declaration=output.xml_declaration,
        )
        return buffer.getvalue()


_ADAPTERS: Dict[str, Type[IntegrationAdapter]] = {
    "lxml": LxmlAdapter,
    "elementtree": ElementTreeAdapter,
}


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get an adapter instance by name, or None if unknown or unavailable."""
    adapter_class = _ADAPTERS.get(adapter_name)
    if adapter_class is None:
        return None
    adapter = adapter_class(correlation_id)
    return adapter if adapter.is_available() else None


def list_available_adapters() -> List[AdapterMetadata]:
    """List metadata of every adapter whose library is importable."""
    return [
        adapter.metadata
        for adapter in (cls() for cls in _ADAPTERS.values())
        if adapter.is_available()
    ]
