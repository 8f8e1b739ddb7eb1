"""Main CLI entry point for the cryxml2xml command-line tool.

Converts CryXmlB files into textual XML and inspects their headers. Files
are processed one at a time; a file that fails to decode is reported and the
batch carries on with the next one.
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from cryxml_decoder import __version__
from cryxml_decoder.api import decode_file, get_adapter
from cryxml_decoder.binary import BufferSource, CryXmlError, read_header
from cryxml_decoder.shared import (
    ConfigError,
    ConverterConfig,
    configure_logging,
    get_logger,
)

PRESETS = {
    "default": ConverterConfig.default,
    "elementtree": ConverterConfig.elementtree,
    "compact": ConverterConfig.compact,
}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.converter_config = ConverterConfig.default()
        self.output_dir: Optional[Path] = None
        self.output_format = "text"
        self.recursive = False
        self.quiet = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file; missing files keep defaults."""
        config = cls()
        if not config_path.exists():
            return config

        try:
            with config_path.open() as f:
                data = json.load(f)

            preset = data.get("preset")
            if preset in PRESETS:
                config.converter_config = PRESETS[preset]()
            if "converter" in data:
                config.converter_config = ConverterConfig.from_dict(data["converter"])
            if data.get("output_dir"):
                config.output_dir = Path(data["output_dir"])
            config.output_format = data.get("output_format", config.output_format)
            config.recursive = data.get("recursive", config.recursive)

        except (OSError, ValueError, ConfigError) as e:
            print(f"Warning: Could not load config file: {e}", file=sys.stderr)

        return config


class ProgressTracker:
    """Progress tracking for batch conversions."""

    def __init__(self, total: int, description: str = "Converting", enabled: bool = True):
        self.total = total
        self.enabled = enabled
        self.completed = 0
        self.description = description
        self.start_time = time.time()
        self.last_update = 0.0

    def update(self, increment: int = 1) -> None:
        """Update progress and display if needed."""
        self.completed += increment
        current_time = time.time()

        # Update every second or on completion
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self) -> None:
        if not self.enabled or self.total == 0:
            return

        percentage = (self.completed / self.total) * 100
        elapsed = time.time() - self.start_time
        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))

        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total}, {elapsed:.1f}s)",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)


class CryXmlConverter:
    """Converts CryXmlB files to XML files on disk."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.logger = get_logger(__name__, None, "cli_converter")

    @property
    def suffix(self) -> str:
        return self.config.converter_config.output.suffix

    def output_path_for(self, input_path: Path) -> Path:
        """Return ``<name><suffix>`` next to the input or in the output dir."""
        directory = self.config.output_dir or input_path.parent
        return directory / f"{input_path.name}{self.suffix}"

    def find_input_files(self, path: Path) -> Iterator[Path]:
        """Yield files to convert, skipping outputs of earlier runs."""
        if path.is_file():
            yield path
        elif path.is_dir():
            pattern = "**/*.xml" if self.config.recursive else "*.xml"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and not candidate.name.endswith(self.suffix):
                    yield candidate
        else:
            # Reported as a failed file by convert_file
            yield path

    def convert_file(self, input_path: Path) -> Dict[str, Any]:
        """Decode one file and write its XML text."""
        converter_config = self.config.converter_config
        result = decode_file(input_path, converter_config)
        report: Dict[str, Any] = result.summary()
        report["file"] = str(input_path)

        if not result.success or result.document is None:
            return report

        output_path = self.output_path_for(input_path)
        adapter = get_adapter(converter_config.output.backend, result.correlation_id)
        if adapter is None:
            report["success"] = False
            report["error"] = f"Output backend unavailable: {converter_config.output.backend}"
            return report

        try:
            xml_bytes = adapter.serialize(result.document, converter_config.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(xml_bytes)
        except (OSError, ValueError) as e:
            self.logger.exception("Failed to write output", extra={"file": str(input_path)})
            report["success"] = False
            report["error"] = str(e)
            return report

        report["output"] = str(output_path)
        return report

    def batch_convert(self, paths: List[Path]) -> List[Dict[str, Any]]:
        """Convert every input sequentially."""
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_input_files(path))

        results = []
        progress = ProgressTracker(
            len(all_files), "Converting CryXmlB files", enabled=not self.config.quiet
        )
        for file_path in all_files:
            results.append(self.convert_file(file_path))
            progress.update()

        return results


def inspect_file(path: Path) -> Dict[str, Any]:
    """Read the header of one file."""
    try:
        header = read_header(BufferSource(path.read_bytes()))
    except (OSError, CryXmlError) as e:
        return {"file": str(path), "success": False, "error": str(e)}
    return {"file": str(path), "success": True, "header": header.to_dict()}


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="cryxml2xml",
        description="Convert CryXmlB binary XML files into text XML"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser("convert", help="Convert CryXmlB files")
    convert_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="CryXmlB files or directories to convert"
    )
    convert_parser.add_argument(
        "--output-dir", "-d",
        type=Path,
        help="Directory for converted files (default: next to each input)"
    )
    convert_parser.add_argument(
        "--suffix",
        help="Suffix appended to output file names (default: _new.xml)"
    )
    convert_parser.add_argument(
        "--backend",
        choices=["lxml", "elementtree"],
        help="XML emitter"
    )
    convert_parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Converter configuration preset"
    )
    convert_parser.add_argument(
        "--no-pretty",
        action="store_true",
        help="Write XML on a single line"
    )
    convert_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Search directories recursively for .xml files"
    )
    convert_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    convert_parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        help="Summary format (default: text)"
    )

    inspect_parser = subparsers.add_parser("inspect", help="Show CryXmlB headers")
    inspect_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="CryXmlB files to inspect"
    )
    inspect_parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format conversion results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No files to convert."

    successful = sum(1 for r in results if r.get("success", False))
    lines = [f"Converted {successful} of {len(results)} files", "-" * 60]

    for result in results:
        status = "OK  " if result.get("success", False) else "FAIL"
        lines.append(f"{status} {result['file']}")
        if result.get("output"):
            lines.append(
                f"     -> {result['output']} "
                f"({result.get('element_count', 0)} elements, "
                f"{result.get('metrics', {}).get('processing_time_ms', 0):.1f}ms)"
            )
        if result.get("error"):
            lines.append(f"     Error: {result['error']}")
        for diagnostic in result.get("diagnostics", []):
            if diagnostic.get("severity") in ("ERROR", "CRITICAL"):
                lines.append(f"     Error: {diagnostic.get('message', '')}")

    return "\n".join(lines)


def format_headers(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format header inspection results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    lines = []
    for result in results:
        lines.append(result["file"])
        if not result["success"]:
            lines.append(f"   Error: {result['error']}")
            continue
        header = result["header"]
        lines.append(f"   File size:  {header['file_size']}")
        lines.append(
            f"   Nodes:      {header['node_info_count']} at 0x{header['node_info_offset']:x}"
        )
        lines.append(
            f"   Attributes: {header['attributes_count']} at 0x{header['attributes_offset']:x}"
        )
        lines.append(
            f"   Hierarchy:  {header['node_hierarchy_count']} at "
            f"0x{header['node_hierarchy_offset']:x}"
        )
        lines.append(
            f"   Strings:    {header['string_list_count']} bytes at "
            f"0x{header['string_list_offset']:x}"
        )
    return "\n".join(lines)


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)

    if args.preset:
        config.converter_config = PRESETS[args.preset]()

    overrides: Dict[str, Any] = {}
    if args.suffix:
        overrides["output__suffix"] = args.suffix
    if args.backend:
        overrides["output__backend"] = args.backend
        if args.backend == "elementtree":
            overrides["output__standalone"] = None
    if args.no_pretty:
        overrides["output__pretty_print"] = False
    if overrides:
        try:
            config.converter_config = config.converter_config.override(**overrides)
        except ConfigError as e:
            print(f"Invalid configuration: {e}", file=sys.stderr)
            return 2

    configure_logging(args.log_level or config.converter_config.global_.logging_level)
    config.quiet = args.quiet

    if args.output_dir:
        config.output_dir = args.output_dir
    if args.recursive:
        config.recursive = True
    if args.format:
        config.output_format = args.format

    converter = CryXmlConverter(config)
    results = converter.batch_convert(args.paths)
    print(format_results(results, config.output_format))

    if not results:
        return 1
    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def cmd_inspect(args: argparse.Namespace) -> int:
    """Handle inspect command."""
    configure_logging(args.log_level or "WARNING")
    results = [inspect_file(path) for path in args.paths]
    print(format_headers(results, args.format))
    return 0 if all(r["success"] for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Command handlers fall back to the configured level when neither flag is set
    args.log_level = None
    if args.verbose:
        args.log_level = "DEBUG"
    elif args.quiet:
        args.log_level = "ERROR"

    try:
        if args.command == "convert":
            return cmd_convert(args)
        if args.command == "inspect":
            return cmd_inspect(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
