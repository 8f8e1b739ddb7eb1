"""Shared utilities for CryXmlB decoding.

This module provides configuration objects, diagnostic and metrics types,
and logging helpers used across all decoding layers.
"""

from .result import (
    DecodeMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
)
from .config import (
    ConfigError,
    ConfigValidationError,
    ConverterConfig,
    DecoderConfig,
    GlobalConfig,
    OutputConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DecodeMetrics",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "ConfigError",
    "ConfigValidationError",
    "ConverterConfig",
    "DecoderConfig",
    "GlobalConfig",
    "OutputConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
