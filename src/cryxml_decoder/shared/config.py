"""Configuration classes for CryXmlB decoding and conversion.

This module provides configuration objects for the decoder, the output
emitters and process-wide settings, composed into one immutable
``ConverterConfig``.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

VALID_BACKENDS = ["lxml", "elementtree"]
VALID_STRING_ERRORS = ["strict", "replace", "ignore", "backslashreplace", "surrogateescape"]
VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_COMPONENTS = ["decoder", "output", "global_"]


@dataclass
class DecoderConfig:
    """Configuration for the binary decoder."""

    enable_metrics: bool = True
    enable_diagnostics: bool = True
    attach_header: bool = True
    string_errors: str = "strict"

    def __post_init__(self) -> None:
        """Validate decoder configuration."""
        for name in ("enable_metrics", "enable_diagnostics", "attach_header"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean")
        if self.string_errors not in VALID_STRING_ERRORS:
            raise ValueError(f"string_errors must be one of {VALID_STRING_ERRORS}")


@dataclass
class OutputConfig:
    """Configuration for serializing decoded documents."""

    backend: str = "lxml"
    encoding: str = "utf-8"
    xml_declaration: bool = True
    standalone: Optional[bool] = True
    pretty_print: bool = True
    indent: str = "  "
    suffix: str = "_new.xml"

    def __post_init__(self) -> None:
        """Validate output configuration."""
        if self.backend not in VALID_BACKENDS:
            raise ValueError(f"backend must be one of {VALID_BACKENDS}")
        if not self.encoding:
            raise ValueError("encoding cannot be empty")
        if self.indent.strip():
            raise ValueError("indent must contain only whitespace")
        if not self.suffix:
            raise ValueError("suffix cannot be empty")


@dataclass
class GlobalConfig:
    """Global settings that apply across all components."""

    logging_level: str = "WARNING"
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {VALID_LOGGING_LEVELS}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ConverterConfig:
    """Complete configuration for decoding and conversion.

    Immutable, so a single instance can be shared by every decoder and
    emitter in a batch.
    """

    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    version: str = "1.0.0"
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.decoder.__post_init__()
            self.output.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.output.backend == "elementtree" and self.output.standalone:
            raise ConfigValidationError(
                "The elementtree backend cannot write a standalone declaration",
                field_name="output.standalone",
                suggestions=["Use the lxml backend", "Set output.standalone to None"],
            )

    def override(self, **kwargs: Any) -> "ConverterConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ConverterConfig()
            >>> config.override(output__pretty_print=False).output.pretty_print
            False
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            component = next(
                (name for name in _COMPONENTS if key.startswith(f"{name}__")), None
            )
            if component is not None:
                field_name = key[len(component) + 2:]
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for component in _COMPONENTS:
            current = getattr(self, component)
            if component in nested_overrides:
                try:
                    new_fields[component] = replace(
                        current, **nested_overrides[component]
                    )
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=component) from e
            else:
                new_fields[component] = current

        for key, value in nested_overrides.items():
            if key not in _COMPONENTS:
                new_fields[key] = value

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {}
        for component in _COMPONENTS:
            value = getattr(self, component)
            result[component] = {
                name: getattr(value, name) for name in value.__dataclass_fields__
            }
        result["version"] = self.version
        result["name"] = self.name
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConverterConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected rather than ignored.
        """
        component_classes = {
            "decoder": DecoderConfig,
            "output": OutputConfig,
            "global_": GlobalConfig,
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_classes:
                try:
                    values[key] = component_classes[key](**value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key in ("version", "name"):
                values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}", field_name=key
                )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ConverterConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ConverterConfig":
        """Pretty-printed lxml output with a standalone UTF-8 declaration."""
        return cls(name="default")

    @classmethod
    def elementtree(cls) -> "ConverterConfig":
        """Standard library output, without the standalone flag."""
        return cls(
            output=OutputConfig(backend="elementtree", standalone=None),
            name="elementtree",
        )

    @classmethod
    def compact(cls) -> "ConverterConfig":
        """Single-line lxml output with metrics collection disabled."""
        return cls(
            decoder=DecoderConfig(enable_metrics=False),
            output=OutputConfig(pretty_print=False),
            name="compact",
        )
