"""Tests for the CLI main module."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from cryxml_decoder.cli.main import (
    CLIConfig,
    CryXmlConverter,
    ProgressTracker,
    create_argument_parser,
    format_results,
    inspect_file,
    main,
)


@pytest.fixture(autouse=True)
def restore_root_level():
    """Keep the root logger level set by main() from leaking between tests."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture
def input_dir(tmp_path, sample_cryxml) -> Path:
    """Directory holding one good and one broken file."""
    directory = tmp_path / "input"
    directory.mkdir()
    (directory / "a_good.xml").write_bytes(sample_cryxml)
    (directory / "b_broken.xml").write_bytes(b"<not-binary/>")
    return directory


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig()

        assert config.converter_config.name == "default"
        assert config.output_dir is None
        assert config.output_format == "text"
        assert config.recursive is False

    def test_config_from_file(self, tmp_path):
        """Test loading configuration from file."""
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "preset": "compact",
            "output_dir": "out",
            "output_format": "json",
            "recursive": True,
        }))

        config = CLIConfig.from_file(config_path)

        assert config.converter_config.name == "compact"
        assert config.output_dir == Path("out")
        assert config.output_format == "json"
        assert config.recursive is True

    def test_config_with_converter_section(self, tmp_path):
        """A full converter configuration can be embedded."""
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "converter": {"output": {"suffix": ".txt.xml"}},
        }))

        config = CLIConfig.from_file(config_path)

        assert config.converter_config.output.suffix == ".txt.xml"

    def test_config_from_nonexistent_file(self, tmp_path):
        """Test handling non-existent config file."""
        config = CLIConfig.from_file(tmp_path / "nonexistent.json")
        assert config.output_format == "text"

    def test_invalid_config_file(self, tmp_path, capsys):
        """Broken files keep the defaults and print a warning."""
        config_path = tmp_path / "config.json"
        config_path.write_text("{broken")

        config = CLIConfig.from_file(config_path)

        assert config.output_format == "text"
        assert "Could not load config file" in capsys.readouterr().err


class TestProgressTracker:
    """Test progress tracking functionality."""

    def test_progress_update(self):
        """Test progress update functionality."""
        tracker = ProgressTracker(10, "Test")
        tracker.update(5)
        assert tracker.completed == 5

        tracker.update()
        assert tracker.completed == 6

    @patch('builtins.print')
    def test_progress_display(self, mock_print):
        """Completion is always displayed."""
        tracker = ProgressTracker(2, "Test")
        tracker.update(2)

        assert mock_print.called

    @patch('builtins.print')
    def test_disabled_progress_not_displayed(self, mock_print):
        """A disabled tracker counts without printing."""
        tracker = ProgressTracker(2, "Test", enabled=False)
        tracker.update(2)

        assert tracker.completed == 2
        assert not mock_print.called


class TestCryXmlConverter:
    """Test file conversion."""

    def test_output_path_next_to_input(self, tmp_path):
        """Output names append the suffix to the full input name."""
        converter = CryXmlConverter(CLIConfig())

        assert converter.output_path_for(tmp_path / "objects.xml") == (
            tmp_path / "objects.xml_new.xml"
        )

    def test_output_path_in_output_dir(self, tmp_path):
        """An output directory replaces the input directory."""
        config = CLIConfig()
        config.output_dir = tmp_path / "out"

        path = CryXmlConverter(config).output_path_for(Path("/data/objects.xml"))

        assert path == tmp_path / "out" / "objects.xml_new.xml"

    def test_convert_file(self, input_dir):
        """A good file is written as XML text."""
        converter = CryXmlConverter(CLIConfig())

        report = converter.convert_file(input_dir / "a_good.xml")

        output_path = input_dir / "a_good.xml_new.xml"
        assert report["success"] is True
        assert report["output"] == str(output_path)
        assert b"standalone='yes'" in output_path.read_bytes()

    def test_convert_broken_file(self, input_dir):
        """A broken file reports failure and writes nothing."""
        converter = CryXmlConverter(CLIConfig())

        report = converter.convert_file(input_dir / "b_broken.xml")

        assert report["success"] is False
        assert not (input_dir / "b_broken.xml_new.xml").exists()

    def test_find_input_files_skips_outputs(self, input_dir):
        """Converted files are not picked up again."""
        (input_dir / "a_good.xml_new.xml").write_text("<done/>")
        converter = CryXmlConverter(CLIConfig())

        files = list(converter.find_input_files(input_dir))

        assert [f.name for f in files] == ["a_good.xml", "b_broken.xml"]

    def test_batch_continues_after_failure(self, input_dir):
        """A failing file does not stop the batch."""
        converter = CryXmlConverter(CLIConfig())

        results = converter.batch_convert([input_dir / "b_broken.xml", input_dir / "a_good.xml"])

        assert [r["success"] for r in results] == [False, True]
        assert (input_dir / "a_good.xml_new.xml").exists()

    @patch('builtins.print')
    def test_quiet_batch_prints_no_progress(self, mock_print, input_dir):
        """Quiet runs convert without drawing the progress bar."""
        config = CLIConfig()
        config.quiet = True

        results = CryXmlConverter(config).batch_convert([input_dir])

        assert len(results) == 2
        assert not mock_print.called


class TestInspect:
    """Test header inspection."""

    def test_inspect_file(self, input_dir):
        report = inspect_file(input_dir / "a_good.xml")

        assert report["success"] is True
        assert report["header"]["node_info_count"] == 4

    def test_inspect_broken_file(self, input_dir):
        report = inspect_file(input_dir / "b_broken.xml")

        assert report["success"] is False
        assert "signature" in report["error"]


class TestFormatResults:
    """Test summary formatting."""

    def test_text_format(self):
        results = [
            {"file": "a.xml", "success": True, "output": "a.xml_new.xml",
             "element_count": 3, "metrics": {"processing_time_ms": 1.5}},
            {"file": "b.xml", "success": False,
             "diagnostics": [{"severity": "CRITICAL", "message": "bad signature"}]},
        ]

        text = format_results(results, "text")

        assert "Converted 1 of 2 files" in text
        assert "-> a.xml_new.xml (3 elements, 1.5ms)" in text
        assert "Error: bad signature" in text

    def test_json_format(self):
        results = [{"file": "a.xml", "success": True}]
        assert json.loads(format_results(results, "json")) == results

    def test_no_results(self):
        assert format_results([], "text") == "No files to convert."


class TestArgumentParser:
    """Test argument parsing."""

    def test_convert_arguments(self):
        parser = create_argument_parser()
        args = parser.parse_args([
            "convert", "a.xml", "b.xml", "--backend", "elementtree", "--no-pretty",
        ])

        assert args.command == "convert"
        assert args.paths == [Path("a.xml"), Path("b.xml")]
        assert args.backend == "elementtree"
        assert args.no_pretty is True

    def test_inspect_arguments(self):
        args = create_argument_parser().parse_args(["inspect", "a.xml", "-f", "json"])

        assert args.command == "inspect"
        assert args.format == "json"


class TestMain:
    """Test the CLI entry point."""

    def test_no_command(self, capsys):
        """Without a command help is printed."""
        assert main([]) == 1

    def test_convert_all_good(self, tmp_path, sample_cryxml):
        """Exit code 0 when every file converts."""
        path = tmp_path / "objects.xml"
        path.write_bytes(sample_cryxml)

        assert main(["--quiet", "convert", str(path)]) == 0
        assert (tmp_path / "objects.xml_new.xml").exists()

    def test_convert_with_failure(self, input_dir, capsys):
        """Exit code 1 when any file fails, after converting the rest."""
        exit_code = main(["--quiet", "convert", str(input_dir), "--format", "json"])

        assert exit_code == 1
        results = json.loads(capsys.readouterr().out)
        assert [r["success"] for r in results] == [True, False]
        assert (input_dir / "a_good.xml_new.xml").exists()

    def test_convert_elementtree_backend(self, tmp_path, sample_cryxml):
        """The standard library backend writes without standalone."""
        path = tmp_path / "objects.xml"
        path.write_bytes(sample_cryxml)
        out_dir = tmp_path / "out"

        exit_code = main([
            "--quiet", "convert", str(path),
            "--backend", "elementtree", "--output-dir", str(out_dir),
        ])

        assert exit_code == 0
        output = (out_dir / "objects.xml_new.xml").read_bytes()
        assert b"standalone" not in output

    def test_inspect(self, input_dir, capsys):
        """Inspect prints table locations."""
        exit_code = main(["inspect", str(input_dir / "a_good.xml")])

        assert exit_code == 0
        assert "Nodes:      4" in capsys.readouterr().out

    def test_configured_logging_level_applied(self, tmp_path, sample_cryxml):
        """Without -v or -q the config file's logging level is used."""
        path = tmp_path / "objects.xml"
        path.write_bytes(sample_cryxml)
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "converter": {"global_": {"logging_level": "ERROR"}},
        }))

        assert main(["convert", str(path), "--config", str(config_path)]) == 0
        assert logging.getLogger().level == logging.ERROR

    def test_verbose_overrides_configured_level(self, tmp_path, sample_cryxml):
        """The -v flag wins over the configured logging level."""
        path = tmp_path / "objects.xml"
        path.write_bytes(sample_cryxml)
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "converter": {"global_": {"logging_level": "ERROR"}},
        }))

        assert main(["--verbose", "convert", str(path), "--config", str(config_path)]) == 0
        assert logging.getLogger().level == logging.DEBUG

    def test_default_logging_level(self, tmp_path, sample_cryxml):
        """Without flags or a config file, warnings and above are logged."""
        path = tmp_path / "objects.xml"
        path.write_bytes(sample_cryxml)

        assert main(["convert", str(path)]) == 0
        assert logging.getLogger().level == logging.WARNING
