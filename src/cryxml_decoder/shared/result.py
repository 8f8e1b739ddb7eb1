"""Diagnostic and metrics types for CryXmlB decoding.

These objects travel with every decode result so callers processing batches
can report what happened to each input without catching exceptions.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()   # Decode aborted, no document produced


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    offset: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.offset is not None:
            result["offset"] = self.offset
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class DecodeMetrics:
    """Counters collected while decoding one input."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    nodes_decoded: int = 0
    attributes_decoded: int = 0
    strings_resolved: int = 0

    @property
    def bytes_per_second(self) -> float:
        """Calculate input bytes processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms

    @property
    def nodes_per_second(self) -> float:
        """Calculate node records decoded per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.nodes_decoded * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "bytes_processed": self.bytes_processed,
            "nodes_decoded": self.nodes_decoded,
            "attributes_decoded": self.attributes_decoded,
            "strings_resolved": self.strings_resolved,
        }
