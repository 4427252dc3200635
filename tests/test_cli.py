"""
Tests for the command-line interface
"""

import json

import pytest

from circmap import __version__
from circmap.cli import (
    build_options,
    create_parser,
    infer_output_format,
    main,
    read_scaled_segment_file,
)
from circmap.config import MapOptions
from circmap.constants import OutputFormat

TRACKS = [
    {"glyph": "rectangle", "start-frac": 0.5, "end-frac": 0.6, "feat-type": "contig"},
    {"glyph": "ruler", "start-frac": 0.7, "end-frac": 0.72, "tick-interval": 1000,
     "label-interval": 5000, "label-units": "kb"},
]


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "map.json"
    path.write_text(json.dumps(TRACKS))
    return path


class TestParser:
    """Tests for argument parsing"""

    def test_version(self, capsys):
        """Test that --version prints the package version"""
        with pytest.raises(SystemExit) as excinfo:
            create_parser().parse_args(["--version"])

        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_config_required(self):
        """Test that --config is required"""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--seqlen", "100"])

    def test_data_and_contig_list_exclusive(self):
        """Test that --data and --contig-list cannot be combined"""
        with pytest.raises(SystemExit):
            create_parser().parse_args(
                ["-c", "map.json", "--data", "a.gb", "--contig-list", "contigs.txt"]
            )


class TestOptions:
    """Tests for command-line option handling"""

    def test_infer_output_format(self):
        """Test format inference from the output file name"""
        assert infer_output_format("map.svg", None) == OutputFormat.SVG
        assert infer_output_format("map.HTML", None) == OutputFormat.HTML
        assert infer_output_format("map.svg", "html") == OutputFormat.HTML
        assert infer_output_format(None, None) is None

    def test_segment_file(self, tmp_path):
        """Test reading a scaled segment file"""
        path = tmp_path / "segments.txt"
        path.write_text("# region of interest\n2000-3000:5\n\n4000-5000:0.5\n")

        assert read_scaled_segment_file(path) == "2000-3000:5,4000-5000:0.5"

    def test_command_line_overrides_file(self):
        """Test that flags override configuration options"""
        args = create_parser().parse_args(["-c", "map.json", "--seqlen", "100", "--pad", "10"])

        options = build_options(args, MapOptions(pad=500, rotate_degrees=30))

        assert options.pad == 10
        assert options.rotate_degrees == 30


class TestMain:
    """End-to-end tests for main()"""

    def test_render_svg(self, tmp_path, config_file):
        """Test rendering a map from a bare sequence length"""
        output = tmp_path / "map.svg"

        code = main(["-c", str(config_file), "--seqlen", "10000", "-o", str(output)])

        assert code == 0
        svg = output.read_text()
        assert "<svg" in svg
        assert "5.0kb" in svg

    def test_render_html(self, tmp_path, config_file):
        """Test rendering an interactive HTML map"""
        output = tmp_path / "map.html"

        assert main(["-c", str(config_file), "--seqlen", "10000", "-o", str(output)]) == 0
        assert "<html" in output.read_text().lower()

    def test_render_gff(self, tmp_path, config_file):
        """Test rendering from an annotation file"""
        data = tmp_path / "genes.gff"
        data.write_text(
            "##sequence-region chr1 1 8000\n"
            "chr1\ttest\tgene\t101\t900\t.\t+\t.\tID=g1\n"
        )
        output = tmp_path / "map.svg"

        code = main(["-c", str(config_file), "--data", str(data), "-o", str(output)])

        assert code == 0
        assert output.exists()

    def test_stdout(self, config_file, capsys):
        """Test that the map goes to stdout without --output"""
        assert main(["-c", str(config_file), "--seqlen", "5000"]) == 0
        assert "<svg" in capsys.readouterr().out

    def test_no_input(self, config_file):
        """Test that a sequence source is required"""
        assert main(["-c", str(config_file)]) == 1

    def test_missing_config(self, tmp_path):
        """Test that a missing configuration file is an error"""
        assert main(["-c", str(tmp_path / "missing.json"), "--seqlen", "100"]) == 1

    def test_bad_track(self, tmp_path):
        """Test that an unknown glyph is reported as an error"""
        config = tmp_path / "map.json"
        config.write_text(json.dumps([{"glyph": "synteny"}]))

        assert main(["-c", str(config), "--seqlen", "100"]) == 1
